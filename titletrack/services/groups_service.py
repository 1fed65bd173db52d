# titletrack/services/groups_service.py
from __future__ import annotations

"""
TitleTrack — Groups Service
===========================

Purpose
-------
Groups own the per-group title state: which titles a group tracks and
whether (and when) the group watched them, per season for series.

Design notes
------------
- `group_contains_title` is the single authorization primitive for anything
  scoped to "a title inside a group this user can see". Not being a member
  and the title not being in the group are reported the same way.
- Title entries live in a map keyed by title id, so adding a title is one
  conditional update and duplicates cannot race in.
- `watchedAt` / `addedAt` sort on group fields, so those listings are
  ordered here and handed to the titles listing in that order.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from titletrack.clients.imdb import ImdbClient
from titletrack.core.exceptions import (
    GroupDuplicatedName,
    GroupNameInvalid,
    GroupNotFound,
    GroupNotOwnedByUser,
    NothingToUpdate,
    TitleAlreadyExists,
    TitleAlreadyInGroup,
    TitleNotFound,
    TitleNotInGroup,
    UpdatingWatchedAtWhenWatchedIsFalse,
    UserNotFound,
)
from titletrack.db.mongo import Database
from titletrack.repositories.base import DuplicatedRecord, RecordNotFound, new_id, utcnow
from titletrack.schemas.common import Page
from titletrack.schemas.groups import (
    Group,
    GroupTitle,
    GroupTitleDetail,
    GroupUser,
    GroupUsers,
    UpdateGroupTitleRequest,
)
from titletrack.services import titles_service
from titletrack.services.seasons import resolve_season_key

logger = logging.getLogger(__name__)

GROUP_SORT_FIELDS = ("watchedAt", "addedAt")


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────
def _title_entries(group: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Entries of `titles`, tolerating documents not yet migrated to the map shape."""
    titles = group.get("titles") or {}
    if isinstance(titles, list):
        return [t for t in titles if isinstance(t, dict) and t.get("titleId")]
    return [dict(entry, titleId=entry.get("titleId") or key) for key, entry in titles.items()]


def to_group(doc: Dict[str, Any]) -> Group:
    data = dict(doc)
    data["titles"] = sorted(_title_entries(doc), key=lambda e: e["titleId"])
    return Group.model_validate(data)


def sort_group_entries(entries: List[Dict[str, Any]], field: str, ascending: bool = True) -> List[str]:
    """Title ids ordered by a group-entry field: missing values last, ties by id."""
    present = [e for e in entries if e.get(field) is not None]
    missing = [e for e in entries if e.get(field) is None]
    present.sort(key=lambda e: e["titleId"])
    present.sort(key=lambda e: e[field], reverse=not ascending)
    missing.sort(key=lambda e: e["titleId"])
    return [e["titleId"] for e in present + missing]


def _watched_changes(
    current: Dict[str, Any],
    watched: Optional[bool],
    watched_at: Optional[datetime],
) -> Tuple[Dict[str, Any], List[str]]:
    """Fields to `$set` / `$unset` for one watched-state entry."""
    if watched_at is not None and not current.get("watched") and watched is not True:
        raise UpdatingWatchedAtWhenWatchedIsFalse()

    set_fields: Dict[str, Any] = {}
    unset: List[str] = []
    if watched is not None:
        set_fields["watched"] = watched
    if watched is False:
        unset.append("watchedAt")
    elif watched_at is not None:
        set_fields["watchedAt"] = watched_at
    return set_fields, unset


# ─────────────────────────────────────────────────────────────
# 👥 Groups & members
# ─────────────────────────────────────────────────────────────
async def create_group(db: Database, name: str, owner_id: str) -> Group:
    name = (name or "").strip()
    if not name:
        raise GroupNameInvalid()
    if not await db.users.exists(owner_id):
        raise UserNotFound()

    now = utcnow()
    doc = {
        "_id": new_id(),
        "name": name,
        "ownerId": owner_id,
        "users": [owner_id],
        "titles": {},
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        await db.groups.add(doc)
    except DuplicatedRecord:
        raise GroupDuplicatedName()
    await db.users.add_group(owner_id, doc["_id"])
    logger.info("Group %s created by %s", doc["_id"], owner_id)
    return to_group(doc)


async def get_group(db: Database, group_id: str, user_id: str) -> Group:
    try:
        return to_group(await db.groups.get_by_id(group_id, user_id))
    except RecordNotFound:
        raise GroupNotFound()


async def group_contains_title(db: Database, group_id: str, title_id: str, user_id: str) -> bool:
    return await db.groups.contains_title(group_id, title_id, user_id)


async def add_user_to_group(db: Database, group_id: str, owner_id: str, user_id: str) -> Group:
    try:
        group = await db.groups.get_by_id(group_id, owner_id)
    except RecordNotFound:
        raise GroupNotFound()
    if group.get("ownerId") != owner_id:
        raise GroupNotOwnedByUser()
    if not await db.users.exists(user_id):
        raise UserNotFound()

    await db.groups.add_user(group_id, user_id)
    await db.users.add_group(user_id, group_id)
    return await get_group(db, group_id, owner_id)


async def get_users_from_group(db: Database, group_id: str, user_id: str) -> GroupUsers:
    try:
        group = await db.groups.get_by_id(group_id, user_id)
    except RecordNotFound:
        raise GroupNotFound()
    docs = await db.users.get_names_by_ids(group.get("users") or [])
    return GroupUsers(users=[GroupUser.model_validate(d) for d in docs])


# ─────────────────────────────────────────────────────────────
# 🎬 Titles inside a group
# ─────────────────────────────────────────────────────────────
async def add_title_to_group(db: Database, imdb: ImdbClient, group_id: str, user_id: str, url: str) -> GroupTitle:
    """
    Add a title to a group from its IMDb URL.

    Steps
    -----
    1) Extract the title id from the URL.
    2) Membership check on the group.
    3) Import the title into the catalog if this is its first use.
    4) Insert the map entry, conditional on the key being absent.
    """
    title_id = titles_service.extract_title_id(url)
    if not await db.groups.exists(group_id, user_id):
        raise GroupNotFound()

    if not await db.titles.exists(title_id):
        try:
            await titles_service.add_new_title(db, imdb, title_id)
        except TitleAlreadyExists:
            logger.debug("Title %s imported concurrently", title_id)

    now = utcnow()
    entry = {"titleId": title_id, "watched": False, "addedAt": now, "updatedAt": now}
    if not await db.groups.add_title(group_id, title_id, entry):
        raise TitleAlreadyInGroup()
    return GroupTitle.model_validate(entry)


async def update_group_title_watched(
    db: Database,
    group_id: str,
    user_id: str,
    payload: UpdateGroupTitleRequest,
) -> GroupTitle:
    """
    Update watched state of a title (movies) or of one season (series).

    Rules
    -----
    - `watchedAt` can only be set on an entry that is watched, or in the
      same request that sets `watched=true`.
    - `watched=false` clears `watchedAt`.
    """
    if payload.watched is None and payload.watched_at is None:
        raise NothingToUpdate()
    title_id = payload.title_id
    if not await db.groups.contains_title(group_id, title_id, user_id):
        raise TitleNotInGroup()
    try:
        title = await db.titles.get_by_id(title_id, projection={"type": 1, "seasons": 1})
        group = await db.groups.get_by_id(group_id, user_id)
    except RecordNotFound:
        raise TitleNotFound()

    season_key = resolve_season_key(title, payload.season)
    entry = next((e for e in _title_entries(group) if e["titleId"] == title_id), None)
    if entry is None:
        raise TitleNotInGroup()

    now = utcnow()
    if season_key is None:
        set_fields, unset = _watched_changes(entry, payload.watched, payload.watched_at)
    else:
        current = (entry.get("seasonsWatched") or {}).get(season_key) or {}
        changes, season_unset = _watched_changes(current, payload.watched, payload.watched_at)
        prefix = f"seasonsWatched.{season_key}"
        set_fields = {f"{prefix}.{k}": v for k, v in changes.items()}
        set_fields[f"{prefix}.updatedAt"] = now
        if not current:
            set_fields[f"{prefix}.addedAt"] = now
            set_fields.setdefault(f"{prefix}.watched", False)
        unset = [f"{prefix}.{k}" for k in season_unset]
    set_fields["updatedAt"] = now

    try:
        updated = await db.groups.update_title(group_id, title_id, set_fields, unset)
    except RecordNotFound:
        raise TitleNotInGroup()
    return GroupTitle.model_validate(dict(updated, titleId=title_id))


async def remove_title_from_group(db: Database, group_id: str, title_id: str, user_id: str) -> None:
    if not await db.groups.contains_title(group_id, title_id, user_id):
        raise TitleNotInGroup()
    if not await db.groups.remove_title(group_id, title_id):
        raise TitleNotInGroup()


async def get_titles_from_group(
    db: Database,
    group_id: str,
    user_id: str,
    size: Optional[int] = None,
    page: Optional[int] = None,
    order_by: Optional[str] = None,
    watched: Optional[bool] = None,
    ascending: Optional[bool] = None,
) -> Page[GroupTitleDetail]:
    """
    Paginated titles of a group, each with the members' ratings and the
    group's watched state. `watched` is tri-state: `None` means no filter.
    """
    try:
        group = await db.groups.get_by_id(group_id, user_id)
    except RecordNotFound:
        raise GroupNotFound()

    entries = _title_entries(group)
    if watched is not None:
        entries = [e for e in entries if bool(e.get("watched")) == watched]
    if not entries:
        size_, page_ = titles_service.normalize_paging(size, page)
        return Page[GroupTitleDetail](page=page_, size=size_, total_pages=0, total_results=0, content=[])

    ascending = True if ascending is None else ascending
    if order_by in GROUP_SORT_FIELDS:
        ids = sort_group_entries(entries, order_by, ascending)
        titles_page = await titles_service.get_page_of_titles(
            db, size, page, ascending=ascending, ids=ids, preserve_order=True
        )
    else:
        ids = [e["titleId"] for e in entries]
        titles_page = await titles_service.get_page_of_titles(db, size, page, order_by, ascending, ids=ids)

    page_ids = [t.id for t in titles_page.content]
    ratings: Dict[str, List[Any]] = {tid: [] for tid in page_ids}
    if page_ids:
        for doc in await db.ratings.find_by_titles(page_ids, group.get("users") or []):
            ratings.setdefault(doc["titleId"], []).append(doc)

    by_id = {e["titleId"]: e for e in entries}
    content = []
    for title in titles_page.content:
        entry = by_id[title.id]
        content.append(
            GroupTitleDetail.model_validate(
                {
                    "title": title,
                    "ratings": ratings.get(title.id, []),
                    "watched": bool(entry.get("watched")),
                    "addedAt": entry.get("addedAt"),
                    "updatedAt": entry.get("updatedAt"),
                    "watchedAt": entry.get("watchedAt"),
                    "seasonsWatched": entry.get("seasonsWatched"),
                }
            )
        )
    return Page[GroupTitleDetail](
        page=titles_page.page,
        size=titles_page.size,
        total_pages=titles_page.total_pages,
        total_results=titles_page.total_results,
        content=content,
    )
