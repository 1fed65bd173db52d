# titletrack/db/migrations.py
from __future__ import annotations

"""
TitleTrack — Document migrations

One-off, re-runnable data migrations. Each one inspects the shape it
actually finds in a document instead of assuming it, so running a migration
twice (or after a partial run) is a no-op for already-migrated documents.
"""

import logging
import os
from typing import Any, Dict, List

from bson import json_util

from titletrack.db.mongo import Database
from titletrack.repositories.base import QueryOptions

log = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────
# 🗺️ groups.titles: array → map
# ──────────────────────────────────────────────────────────────
def titles_list_to_map(entries: List[Any]) -> Dict[str, Any]:
    """Map keyed by `titleId`; entries without an id are dropped, first occurrence wins."""
    out: Dict[str, Any] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        title_id = entry.get("titleId")
        if not title_id or title_id in out:
            continue
        out[title_id] = entry
    return out


async def migrate_group_titles_to_map(db: Database) -> Dict[str, int]:
    stats = {"checked": 0, "migrated": 0, "skipped": 0}
    groups = await db.groups.list_all(QueryOptions(projection={"_id": 1, "titles": 1}))
    for group in groups:
        stats["checked"] += 1
        titles = group.get("titles")
        if isinstance(titles, list):
            mapped = titles_list_to_map(titles)
            await db.groups.set_titles(group["_id"], mapped)
            stats["migrated"] += 1
            log.info("Group %s: %d title(s) converted to map", group["_id"], len(mapped))
        elif titles is None:
            await db.groups.set_titles(group["_id"], {})
            stats["migrated"] += 1
            log.info("Group %s: missing titles initialised to an empty map", group["_id"])
        else:
            stats["skipped"] += 1
    log.info(
        "titles-to-map finished: checked=%d migrated=%d skipped=%d",
        stats["checked"],
        stats["migrated"],
        stats["skipped"],
    )
    return stats


# ──────────────────────────────────────────────────────────────
# 🧹 Remove non-movie titles (backup first)
# ──────────────────────────────────────────────────────────────
def write_backup(path: str, docs: List[Dict[str, Any]]) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(json_util.dumps(docs, indent=2))


async def backup_and_remove_non_movies(db: Database, backup_path: str) -> Dict[str, int]:
    """Back up every title whose type is not `movie`, then delete it and its references.

    The backup is written before anything is deleted; if writing it fails the
    exception propagates and storage is left untouched.
    """
    titles = await db.titles.find(QueryOptions(filter={"type": {"$ne": "movie"}}))
    result = {"titles": 0, "ratings": 0, "comments": 0, "groups": 0}
    if not titles:
        log.info("No non-movie titles found, nothing to remove")
        return result

    write_backup(backup_path, titles)
    log.info("Backed up %d non-movie title(s) to %s", len(titles), backup_path)

    ids = [t["_id"] for t in titles]
    for title_id in ids:
        result["groups"] += await db.groups.remove_title_everywhere(title_id)
    result["ratings"] = await db.ratings.delete_by_titles(ids)
    result["comments"] = await db.comments.delete_by_titles(ids)
    for title_id in ids:
        if await db.titles.delete(title_id):
            result["titles"] += 1

    log.info(
        "Removed %d title(s), %d rating(s), %d comment(s); %d group entr(ies) unset",
        result["titles"],
        result["ratings"],
        result["comments"],
        result["groups"],
    )
    return result
