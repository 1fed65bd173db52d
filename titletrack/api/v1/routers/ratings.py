# titletrack/api/v1/routers/ratings.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ ⭐ TitleTrack · Ratings API                                              ║
# ║                                                                          ║
# ║  - POST   /ratings                → Rate a title inside a group          ║
# ║  - POST   /ratings/batch          → Own ratings for many titles          ║
# ║  - GET    /ratings/{rating_id}    → Own rating                           ║
# ║  - PATCH  /ratings/{rating_id}    → Update note (per season for series)  ║
# ║  - DELETE /ratings/{rating_id}    → Delete rating or one season          ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from titletrack.api.http_utils import sanitize_object_id, sanitize_title_id
from titletrack.core.security import get_current_user
from titletrack.db.mongo import Database, get_database
from titletrack.schemas.common import DefaultResponse
from titletrack.schemas.ratings import NewRating, Rating, RatingsBatchRequest, TitlesRatings, UpdateRating
from titletrack.services import ratings_service

router = APIRouter(
    prefix="/ratings",
    tags=["Ratings"],
    responses={404: {"description": "Rating not found"}, 409: {"description": "Rating already exists"}},
)


def _rating_id(rating_id: str = Path(...)) -> str:
    return sanitize_object_id(rating_id, field="rating id")


@router.post(
    "",
    response_model=Rating,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_rating(
    payload: NewRating,
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Rating:
    payload.title_id = sanitize_title_id(payload.title_id)
    return await ratings_service.add_rating(db, user["_id"], payload)


@router.post("/batch", response_model=TitlesRatings, response_model_exclude_none=True)
async def ratings_batch(
    payload: RatingsBatchRequest,
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> TitlesRatings:
    title_ids = [sanitize_title_id(t) for t in payload.titles]
    return await ratings_service.get_ratings_batch(db, title_ids, [user["_id"]])


@router.get("/{rating_id}", response_model=Rating, response_model_exclude_none=True)
async def get_rating(
    rating_id: str = Depends(_rating_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Rating:
    return await ratings_service.get_rating_by_id(db, rating_id, user["_id"])


@router.patch("/{rating_id}", response_model=Rating, response_model_exclude_none=True)
async def update_rating(
    payload: UpdateRating,
    rating_id: str = Depends(_rating_id),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> Rating:
    return await ratings_service.update_rating(db, rating_id, user["_id"], payload)


@router.delete("/{rating_id}", response_model=DefaultResponse)
async def delete_rating(
    rating_id: str = Depends(_rating_id),
    season: Optional[int] = Query(None),
    db: Database = Depends(get_database),
    user: Dict[str, Any] = Depends(get_current_user),
) -> DefaultResponse:
    await ratings_service.delete_rating(db, rating_id, user["_id"], season)
    return DefaultResponse(message="Rating deleted")
