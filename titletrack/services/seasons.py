from __future__ import annotations

"""Season rules shared by ratings, comments and group watched state."""

from typing import Any, Dict, Optional

from titletrack.core.exceptions import InvalidSeasonValue, SeasonDoesNotExist, SeasonRequired
from titletrack.schemas.titles import SERIES_TYPES


def is_series(title: Dict[str, Any]) -> bool:
    return title.get("type") in SERIES_TYPES


def season_keys(title: Dict[str, Any]) -> set:
    return {str(s.get("season")) for s in title.get("seasons") or [] if s.get("season") is not None}


def resolve_season_key(title: Dict[str, Any], season: Optional[int]) -> Optional[str]:
    """Map-key for `season` on this title, or `None` for movies.

    Series require a positive season listed in the title's `seasons`;
    movies reject any season.
    """
    if not is_series(title):
        if season is not None:
            raise SeasonDoesNotExist()
        return None
    if season is None:
        raise SeasonRequired()
    if season <= 0:
        raise InvalidSeasonValue()
    key = str(season)
    if key not in season_keys(title):
        raise SeasonDoesNotExist()
    return key


def existing_season_key(seasons_map: Optional[Dict[str, Any]], season: Optional[int]) -> str:
    """Key of a season already present on a rating/comment document."""
    if season is None:
        raise SeasonRequired()
    if season <= 0:
        raise InvalidSeasonValue()
    key = str(season)
    if key not in (seasons_map or {}):
        raise SeasonDoesNotExist()
    return key
