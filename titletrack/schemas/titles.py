from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from titletrack.schemas.common import CamelModel, IdField

SERIES_TYPES = ("tvSeries", "tvMiniSeries")


class Image(CamelModel):
    url: str = ""
    width: int = 0
    height: int = 0


class TitleRating(CamelModel):
    aggregate_rating: float = 0.0
    vote_count: int = 0


class Metacritic(CamelModel):
    score: int = 0
    review_count: int = 0


class Season(CamelModel):
    season: str
    episode_count: int = 0

    @field_validator("season", mode="before")
    @classmethod
    def _season_as_str(cls, v: Any) -> str:
        return str(v)


class Title(CamelModel):
    """Title as exposed by the API: people and countries flattened to names."""

    id: str = IdField()
    type: str = ""
    primary_title: str = ""
    primary_image: Optional[Image] = None
    start_year: Optional[int] = None
    runtime_seconds: Optional[int] = None
    genres: List[str] = Field(default_factory=list)
    rating: Optional[TitleRating] = None
    metacritic: Optional[Metacritic] = None
    plot: str = ""
    directors_names: List[str] = Field(default_factory=list)
    writers_names: List[str] = Field(default_factory=list)
    stars_names: List[str] = Field(default_factory=list)
    origin_countries: List[str] = Field(default_factory=list)
    seasons: Optional[List[Season]] = None
    episodes: Optional[List[Dict[str, Any]]] = None
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AddTitleRequest(CamelModel):
    url: str
