# titletrack/db/indexes.py
from __future__ import annotations

"""
TitleTrack — Index management

The index set is part of the durable storage contract: each index is
identified by a stable name and a collection. Creation is idempotent
("create if absent"); renaming or changing an index goes through the
explicit reset path (drop, then create).

    report = await ensure_indexes(db)              # create missing ones
    report = await ensure_indexes(db, reset=True)  # drop & recreate all
    await delete_all_indexes(db)                   # keep only `_id_`
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pymongo import ASCENDING

from titletrack.db.mongo import COLLECTIONS, COMMENTS, GROUPS, RATINGS, USERS, Database

log = logging.getLogger(__name__)

CREATED = "created"
SKIPPED = "skipped"
RECREATED = "recreated"

_CASE_INSENSITIVE = {"locale": "en", "strength": 2}


def _non_empty_string(*fields: str) -> Dict[str, Any]:
    return {f: {"$type": "string", "$gt": ""} for f in fields}


@dataclass(frozen=True)
class IndexSpec:
    name: str
    collection: str
    keys: Sequence[Tuple[str, int]]
    unique: bool = False
    partial_filter: Optional[Dict[str, Any]] = None
    collation: Optional[Dict[str, Any]] = None

    def create_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"name": self.name}
        if self.unique:
            kwargs["unique"] = True
        if self.partial_filter:
            kwargs["partialFilterExpression"] = self.partial_filter
        if self.collation:
            kwargs["collation"] = self.collation
        return kwargs


INDEXES: List[IndexSpec] = [
    IndexSpec(
        name="email_unique",
        collection=USERS,
        keys=[("email", ASCENDING)],
        unique=True,
        partial_filter=_non_empty_string("email"),
        collation=_CASE_INSENSITIVE,
    ),
    IndexSpec(
        name="username_unique",
        collection=USERS,
        keys=[("username", ASCENDING)],
        unique=True,
        partial_filter=_non_empty_string("username"),
        collation=_CASE_INSENSITIVE,
    ),
    IndexSpec(
        name="userId_and_titleId_unique",
        collection=RATINGS,
        keys=[("userId", ASCENDING), ("titleId", ASCENDING)],
        unique=True,
    ),
    IndexSpec(
        name="userId_and_titleId_unique",
        collection=COMMENTS,
        keys=[("userId", ASCENDING), ("titleId", ASCENDING)],
        unique=True,
    ),
    IndexSpec(
        name="ownerId_and_name_unique",
        collection=GROUPS,
        keys=[("ownerId", ASCENDING), ("name", ASCENDING)],
        unique=True,
        partial_filter=_non_empty_string("ownerId", "name"),
    ),
    IndexSpec(name="titleId_idx", collection=RATINGS, keys=[("titleId", ASCENDING)]),
    IndexSpec(name="titleId_idx", collection=COMMENTS, keys=[("titleId", ASCENDING)]),
    IndexSpec(name="users_idx", collection=GROUPS, keys=[("users", ASCENDING)]),
]


@dataclass
class IndexReport:
    actions: Dict[str, str] = field(default_factory=dict)

    def record(self, spec: IndexSpec, action: str) -> None:
        self.actions[f"{spec.collection}.{spec.name}"] = action

    def count(self, action: str) -> int:
        return sum(1 for a in self.actions.values() if a == action)


async def list_index_names(collection) -> List[str]:
    info = await collection.index_information()
    return sorted(info.keys())


async def create_index_if_not_exists(collection, spec: IndexSpec, reset: bool = False) -> str:
    """Apply one index spec; returns `created`, `skipped` or `recreated`."""
    existing = await list_index_names(collection)
    if spec.name in existing:
        if not reset:
            log.debug("Index %s.%s already exists, skipping", spec.collection, spec.name)
            return SKIPPED
        await collection.drop_index(spec.name)
        await collection.create_index(list(spec.keys), **spec.create_kwargs())
        log.info("Index %s.%s dropped and recreated", spec.collection, spec.name)
        return RECREATED

    await collection.create_index(list(spec.keys), **spec.create_kwargs())
    log.info("Index %s.%s created", spec.collection, spec.name)
    return CREATED


async def ensure_indexes(db: Database, reset: bool = False) -> IndexReport:
    report = IndexReport()
    for spec in INDEXES:
        action = await create_index_if_not_exists(db.collection(spec.collection), spec, reset=reset)
        report.record(spec, action)
    log.info(
        "Indexes ensured: %d created, %d recreated, %d skipped",
        report.count(CREATED),
        report.count(RECREATED),
        report.count(SKIPPED),
    )
    return report


async def delete_all_indexes(db: Database) -> Dict[str, List[str]]:
    """Drop every index except `_id_` on every collection; returns what was dropped."""
    dropped: Dict[str, List[str]] = {}
    for name in COLLECTIONS:
        collection = db.collection(name)
        names = [n for n in await list_index_names(collection) if n != "_id_"]
        for index_name in names:
            await collection.drop_index(index_name)
        dropped[name] = names
        if names:
            log.info("Dropped %d index(es) on %s: %s", len(names), name, ", ".join(names))
    return dropped


async def describe_indexes(db: Database) -> Dict[str, List[str]]:
    return {name: await list_index_names(db.collection(name)) for name in COLLECTIONS}
