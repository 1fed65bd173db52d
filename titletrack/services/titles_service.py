# titletrack/services/titles_service.py
from __future__ import annotations

"""
TitleTrack — Titles Service
===========================

Purpose
-------
Owns the global title catalog: importing a title from IMDb the first time
any group adds it, paginated listings with whitelisted sorting, and the
cascade delete that removes a title together with everything that
references it.

Design notes
------------
- Titles are keyed by the IMDb id (`tt…`); one document per title no matter
  how many groups reference it.
- Sorting fails closed: unknown `order_by` values fall back to `addedAt`
  and are never forwarded to MongoDB.
- `cascade_delete_title` runs without a transaction. Each step is
  idempotent, so re-running after a crash finishes the cleanup, except that
  the first step reports `TitleNotFound` once the title is gone.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from titletrack.clients.imdb import ImdbClient, ImdbError, ImdbNotFound
from titletrack.core.exceptions import InvalidTitleUrl, TitleAlreadyExists, TitleNotFound, UpstreamError
from titletrack.db.mongo import Database
from titletrack.repositories.base import DuplicatedRecord, QueryOptions, RecordNotFound, utcnow
from titletrack.schemas.common import Page
from titletrack.schemas.titles import SERIES_TYPES, Title

logger = logging.getLogger(__name__)

_TITLE_URL_RE = re.compile(r"^https?://(?:www\.)?imdb\.com/title/(tt[0-9]+)/?")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# wire name → stored field
_ALLOWED_SORT: Dict[str, str] = {
    "addedAt": "addedAt",
    "updatedAt": "updatedAt",
    "primaryTitle": "primaryTitle",
    "startYear": "startYear",
    "runtimeSeconds": "runtimeSeconds",
    "rating": "rating.aggregateRating",
    "type": "type",
}

_IMDB_FIELDS = (
    "type",
    "primaryTitle",
    "primaryImage",
    "startYear",
    "runtimeSeconds",
    "genres",
    "rating",
    "metacritic",
    "plot",
    "directors",
    "writers",
    "stars",
    "originCountries",
    "spokenLanguages",
    "interests",
)


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────
def extract_title_id(url: str) -> str:
    """`https://www.imdb.com/title/tt0111161/` → `tt0111161`."""
    match = _TITLE_URL_RE.match((url or "").strip())
    if not match:
        raise InvalidTitleUrl()
    return match.group(1)


def _validated_sort(order_by: Optional[str]) -> str:
    if order_by and order_by in _ALLOWED_SORT:
        return _ALLOWED_SORT[order_by]
    return _ALLOWED_SORT["addedAt"]


def normalize_paging(size: Optional[int], page: Optional[int]) -> tuple[int, int]:
    size = DEFAULT_PAGE_SIZE if size is None else max(1, min(MAX_PAGE_SIZE, size))
    page = 1 if page is None or page < 1 else page
    return size, page


def _names(people: Optional[List[Dict[str, Any]]], key: str = "displayName") -> List[str]:
    return [p.get(key, "") for p in people or [] if isinstance(p, dict)]


def map_imdb_title(raw: Dict[str, Any], seasons: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """IMDb payload → stored title document."""
    now = utcnow()
    doc: Dict[str, Any] = {"_id": raw["id"]}
    for field in _IMDB_FIELDS:
        if raw.get(field) is not None:
            doc[field] = raw[field]
    if seasons is not None:
        doc["seasons"] = seasons
    doc["addedAt"] = now
    doc["updatedAt"] = now
    return doc


def to_title(doc: Dict[str, Any]) -> Title:
    """Stored document → API model (people and countries flattened to names)."""
    data = dict(doc)
    data["directorsNames"] = _names(doc.get("directors"))
    data["writersNames"] = _names(doc.get("writers"))
    data["starsNames"] = _names(doc.get("stars"))
    data["originCountries"] = _names(doc.get("originCountries"), key="name")
    return Title.model_validate(data)


# ─────────────────────────────────────────────────────────────
# 🎬 Operations
# ─────────────────────────────────────────────────────────────
async def add_new_title(db: Database, imdb: ImdbClient, title_id: str) -> Title:
    """
    Import a title from IMDb.

    Steps
    -----
    1) Existence check first; a stored title is a conflict, never re-imported.
    2) Fetch the title, plus its seasons for TV series.
    3) Map to the storage shape and insert.
    """
    if await db.titles.exists(title_id):
        raise TitleAlreadyExists()

    try:
        raw = await imdb.get_title(title_id)
        seasons = await imdb.get_seasons(title_id) if raw.get("type") in SERIES_TYPES else None
    except ImdbNotFound:
        raise TitleNotFound()
    except ImdbError as exc:
        logger.warning("IMDb fetch failed for %s: %s", title_id, exc)
        raise UpstreamError()

    raw.setdefault("id", title_id)
    doc = map_imdb_title(raw, seasons)
    try:
        await db.titles.add(doc)
    except DuplicatedRecord:
        raise TitleAlreadyExists()
    logger.info("Title %s imported (%s)", doc["_id"], doc.get("type"))
    return to_title(doc)


async def get_title(db: Database, title_id: str) -> Title:
    try:
        doc = await db.titles.get_by_id(title_id)
    except RecordNotFound:
        raise TitleNotFound()
    return to_title(doc)


async def get_page_of_titles(
    db: Database,
    size: Optional[int] = None,
    page: Optional[int] = None,
    order_by: Optional[str] = None,
    ascending: Optional[bool] = None,
    ids: Optional[List[str]] = None,
    preserve_order: bool = False,
) -> Page[Title]:
    """
    Paginated title listing.

    `ids` restricts the listing to those titles. With `preserve_order`, the
    order of `ids` is the sort order (used for group-level sort fields that
    do not live on the title document).
    """
    size, page = normalize_paging(size, page)
    ascending = True if ascending is None else ascending
    skip = (page - 1) * size

    if preserve_order and ids is not None:
        # group entries may point at titles deleted since
        present = {d["_id"] for d in await db.titles.find_by_ids(ids, projection={"_id": 1})} if ids else set()
        ids = [i for i in ids if i in present]
        total = len(ids)
        page_ids = ids[skip : skip + size]
        docs = await db.titles.find_by_ids(page_ids) if page_ids else []
        by_id = {d["_id"]: d for d in docs}
        content = [to_title(by_id[i]) for i in page_ids if i in by_id]
    else:
        filter_: Dict[str, Any] = {"_id": {"$in": ids}} if ids is not None else {}
        total = await db.titles.count(filter_)
        direction = 1 if ascending else -1
        docs = await db.titles.find(
            QueryOptions(
                filter=filter_,
                sort=[(_validated_sort(order_by), direction), ("_id", 1)],
                skip=skip,
                limit=size,
            )
        )
        content = [to_title(d) for d in docs]

    return Page[Title](
        page=page,
        size=size,
        total_pages=math.ceil(total / size) if total else 0,
        total_results=total,
        content=content,
    )


async def cascade_delete_title(db: Database, title_id: str) -> Dict[str, int]:
    """
    Delete a title and everything referencing it.

    Order: title → ratings → comments → group entries. No transaction; a
    crash midway can leave orphaned ratings/comments behind.
    """
    if not await db.titles.delete(title_id):
        raise TitleNotFound()
    ratings = await db.ratings.delete_by_title(title_id)
    comments = await db.comments.delete_by_title(title_id)
    groups = await db.groups.remove_title_everywhere(title_id)
    logger.info(
        "Title %s deleted with %d rating(s), %d comment(s), removed from %d group(s)",
        title_id,
        ratings,
        comments,
        groups,
    )
    return {"ratings": ratings, "comments": comments, "groups": groups}
