# titletrack/services/ratings_service.py
from __future__ import annotations

"""
TitleTrack — Ratings Service
============================

One rating document per (user, title). Movies carry a single `note`;
series carry a `seasonsRatings` map (`"<season>"` → `{rating, addedAt,
updatedAt}`) and their `note` is the mean of the season ratings.

Uniqueness is enforced by the `userId_and_titleId_unique` index: the
duplicate-key error on insert is the only "already rated" signal. For a
series, that error means "document exists, add the season to it", which is
done with an update filtered on the season key's absence.
"""

import logging
from typing import Any, Dict, List, Optional

from titletrack.core.exceptions import (
    InvalidNoteValue,
    InvalidSeasonValue,
    RatingAlreadyExists,
    RatingNotFound,
    SeasonDoesNotExist,
    SeasonRatingAlreadyExists,
    TitleNotFound,
    TitleNotInGroup,
)
from titletrack.db.mongo import Database
from titletrack.repositories.base import DuplicatedRecord, RecordNotFound, new_id, utcnow
from titletrack.repositories.ratings import RatingRepository
from titletrack.schemas.ratings import NewRating, Rating, RatingsList, TitlesRatings, UpdateRating
from titletrack.services.seasons import existing_season_key, resolve_season_key

logger = logging.getLogger(__name__)

MIN_NOTE = 0.0
MAX_NOTE = 10.0


def _check_note(note: float) -> None:
    if note is None or not (MIN_NOTE <= note <= MAX_NOTE):
        raise InvalidNoteValue()


def to_rating(doc: Dict[str, Any]) -> Rating:
    return Rating.model_validate(doc)


async def _refresh_mean(db: Database, doc: Dict[str, Any]) -> Dict[str, Any]:
    note = RatingRepository.mean_note(doc)
    await db.ratings.set_value(doc["_id"], note)
    doc["note"] = note
    return doc


async def add_rating(db: Database, user_id: str, payload: NewRating) -> Rating:
    """
    Create the user's rating for a title inside a group.

    Steps
    -----
    1) Note within [0, 10].
    2) Title must be in the group and the user a member (one check, 404 either way).
    3) Movie: insert; duplicate → `RatingAlreadyExists`.
    4) Series: insert with the season entry; on duplicate, add the season to
       the existing document (`SeasonRatingAlreadyExists` if already rated)
       and recompute the mean note.
    """
    _check_note(payload.note)
    if not await db.groups.contains_title(payload.group_id, payload.title_id, user_id):
        raise TitleNotInGroup()
    try:
        title = await db.titles.get_by_id(payload.title_id, projection={"type": 1, "seasons": 1})
    except RecordNotFound:
        raise TitleNotFound()

    season_key = resolve_season_key(title, payload.season)
    now = utcnow()
    doc: Dict[str, Any] = {
        "_id": new_id(),
        "titleId": payload.title_id,
        "userId": user_id,
        "note": payload.note,
        "createdAt": now,
        "updatedAt": now,
    }

    if season_key is None:
        try:
            await db.ratings.add(doc)
        except DuplicatedRecord:
            raise RatingAlreadyExists()
        return to_rating(doc)

    entry = {"rating": payload.note, "addedAt": now, "updatedAt": now}
    doc["seasonsRatings"] = {season_key: entry}
    try:
        await db.ratings.add(doc)
        return to_rating(doc)
    except DuplicatedRecord:
        pass

    updated = await db.ratings.add_season(user_id, payload.title_id, season_key, entry)
    if updated is None:
        raise SeasonRatingAlreadyExists()
    logger.debug("Season %s added to rating %s", season_key, updated["_id"])
    return to_rating(await _refresh_mean(db, updated))


async def get_ratings_by_title(db: Database, user_id: str, group_id: str, title_id: str) -> RatingsList:
    """Ratings of a title from the members of one group."""
    if not await db.groups.contains_title(group_id, title_id, user_id):
        raise TitleNotInGroup()
    try:
        group = await db.groups.get_by_id(group_id, user_id)
    except RecordNotFound:
        raise TitleNotInGroup()
    docs = await db.ratings.find_by_titles([title_id], group.get("users") or [])
    return RatingsList(ratings=[to_rating(d) for d in docs])


async def get_rating_by_id(db: Database, rating_id: str, user_id: str) -> Rating:
    try:
        return to_rating(await db.ratings.get_by_id(rating_id, user_id))
    except RecordNotFound:
        raise RatingNotFound()


async def get_ratings_batch(
    db: Database,
    title_ids: List[str],
    user_ids: Optional[List[str]] = None,
) -> TitlesRatings:
    """Ratings grouped per title; every requested id appears, possibly with `[]`."""
    grouped: Dict[str, List[Rating]] = {tid: [] for tid in title_ids}
    if title_ids:
        for doc in await db.ratings.find_by_titles(list(grouped), user_ids):
            grouped.setdefault(doc["titleId"], []).append(to_rating(doc))
    return TitlesRatings(titles=grouped)


async def update_rating(db: Database, rating_id: str, user_id: str, payload: UpdateRating) -> Rating:
    _check_note(payload.note)
    try:
        current = await db.ratings.get_by_id(rating_id, user_id)
        now = utcnow()
        if current.get("seasonsRatings"):
            key = existing_season_key(current["seasonsRatings"], payload.season)
            doc = await db.ratings.update_season(rating_id, user_id, key, payload.note, now)
            return to_rating(await _refresh_mean(db, doc))
        if payload.season is not None:
            raise SeasonDoesNotExist()
        doc = await db.ratings.update_value(rating_id, user_id, payload.note, now)
    except RecordNotFound:
        raise RatingNotFound()
    return to_rating(doc)


async def delete_rating(db: Database, rating_id: str, user_id: str, season: Optional[int] = None) -> None:
    """Delete the whole rating, or one season of it (the last season takes the document with it)."""
    if season is None:
        if await db.ratings.delete(rating_id, user_id) == 0:
            raise RatingNotFound()
        return

    if season <= 0:
        raise InvalidSeasonValue()
    try:
        current = await db.ratings.get_by_id(rating_id, user_id)
        key = existing_season_key(current.get("seasonsRatings"), season)
        doc = await db.ratings.remove_season(rating_id, user_id, key, utcnow())
    except RecordNotFound:
        raise RatingNotFound()

    if doc.get("seasonsRatings"):
        await _refresh_mean(db, doc)
    else:
        await db.ratings.delete(rating_id, user_id)
        logger.debug("Rating %s deleted with its last season", rating_id)
