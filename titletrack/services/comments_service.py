# titletrack/services/comments_service.py
from __future__ import annotations

"""
TitleTrack — Comments Service

Mirrors the ratings model: one comment document per (user, title), the
text in `comment` for movies and in the `seasonsComments` map for series.
"""

import logging
from typing import Any, Dict, Optional

from titletrack.core.exceptions import (
    CommentAlreadyExists,
    CommentIsNull,
    CommentNotFound,
    InvalidSeasonValue,
    SeasonCommentAlreadyExists,
    SeasonDoesNotExist,
    TitleNotFound,
    TitleNotInGroup,
)
from titletrack.db.mongo import Database
from titletrack.repositories.base import DuplicatedRecord, RecordNotFound, new_id, utcnow
from titletrack.schemas.comments import Comment, CommentsList, NewComment, UpdateComment
from titletrack.services.seasons import existing_season_key, resolve_season_key

logger = logging.getLogger(__name__)


def _clean_text(text: Optional[str]) -> str:
    text = (text or "").strip()
    if not text:
        raise CommentIsNull()
    return text


def to_comment(doc: Dict[str, Any]) -> Comment:
    return Comment.model_validate(doc)


async def add_comment(db: Database, user_id: str, payload: NewComment) -> Comment:
    text = _clean_text(payload.comment)
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
        "createdAt": now,
        "updatedAt": now,
    }

    if season_key is None:
        doc["comment"] = text
        try:
            await db.comments.add(doc)
        except DuplicatedRecord:
            raise CommentAlreadyExists()
        return to_comment(doc)

    entry = {"comment": text, "addedAt": now, "updatedAt": now}
    doc["seasonsComments"] = {season_key: entry}
    try:
        await db.comments.add(doc)
        return to_comment(doc)
    except DuplicatedRecord:
        pass

    updated = await db.comments.add_season(user_id, payload.title_id, season_key, entry)
    if updated is None:
        raise SeasonCommentAlreadyExists()
    return to_comment(updated)


async def get_comments_by_title(db: Database, user_id: str, group_id: str, title_id: str) -> CommentsList:
    if not await db.groups.contains_title(group_id, title_id, user_id):
        raise TitleNotInGroup()
    try:
        group = await db.groups.get_by_id(group_id, user_id)
    except RecordNotFound:
        raise TitleNotInGroup()
    docs = await db.comments.find_by_titles([title_id], group.get("users") or [])
    return CommentsList(comments=[to_comment(d) for d in docs])


async def get_comment_by_id(db: Database, comment_id: str, user_id: str) -> Comment:
    try:
        return to_comment(await db.comments.get_by_id(comment_id, user_id))
    except RecordNotFound:
        raise CommentNotFound()


async def update_comment(db: Database, comment_id: str, user_id: str, payload: UpdateComment) -> Comment:
    text = _clean_text(payload.comment)
    try:
        current = await db.comments.get_by_id(comment_id, user_id)
        now = utcnow()
        if current.get("seasonsComments"):
            key = existing_season_key(current["seasonsComments"], payload.season)
            doc = await db.comments.update_season(comment_id, user_id, key, text, now)
        elif payload.season is not None:
            raise SeasonDoesNotExist()
        else:
            doc = await db.comments.update_value(comment_id, user_id, text, now)
    except RecordNotFound:
        raise CommentNotFound()
    return to_comment(doc)


async def delete_comment(db: Database, comment_id: str, user_id: str, season: Optional[int] = None) -> None:
    if season is None:
        if await db.comments.delete(comment_id, user_id) == 0:
            raise CommentNotFound()
        return

    if season <= 0:
        raise InvalidSeasonValue()
    try:
        current = await db.comments.get_by_id(comment_id, user_id)
        key = existing_season_key(current.get("seasonsComments"), season)
        doc = await db.comments.remove_season(comment_id, user_id, key, utcnow())
    except RecordNotFound:
        raise CommentNotFound()
    if not doc.get("seasonsComments"):
        await db.comments.delete(comment_id, user_id)
        logger.debug("Comment %s deleted with its last season", comment_id)
