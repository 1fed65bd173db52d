from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from titletrack.schemas.common import CamelModel, IdField


class SeasonRating(CamelModel):
    rating: float
    added_at: datetime
    updated_at: datetime


class Rating(CamelModel):
    id: str = IdField()
    title_id: str
    user_id: str
    note: Optional[float] = None
    seasons_ratings: Optional[Dict[str, SeasonRating]] = None
    created_at: datetime
    updated_at: datetime


class NewRating(CamelModel):
    group_id: str
    title_id: str
    note: float
    season: Optional[int] = None


class UpdateRating(CamelModel):
    note: float
    season: Optional[int] = None


class RatingsList(CamelModel):
    ratings: List[Rating]


class RatingsBatchRequest(CamelModel):
    titles: List[str]


class TitlesRatings(CamelModel):
    titles: Dict[str, List[Rating]]
