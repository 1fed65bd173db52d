from __future__ import annotations

"""Shared pieces for the MongoDB repositories.

Repositories return plain dicts (raw documents) and signal two conditions
with sentinel exceptions:

- `RecordNotFound`: the filtered document does not exist (or is not
  visible to the requesting user; both look the same on purpose).
- `DuplicatedRecord`: a unique index rejected the write.

Any other `pymongo` error is a storage fault and propagates untouched.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo.errors import DuplicateKeyError


class RecordNotFound(Exception):
    """No document matched the filter."""


class DuplicatedRecord(Exception):
    """A unique index rejected the insert/update."""


def new_id() -> str:
    """Application-assigned document id (ObjectId hex, URL-safe)."""
    return str(ObjectId())


def utcnow() -> datetime:
    """Timestamps are stored at millisecond precision, like MongoDB does."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


@dataclass
class QueryOptions:
    """Explicit find options: filter document, projection, sort and pagination."""

    filter: Optional[Dict[str, Any]] = None
    projection: Optional[Dict[str, Any]] = None
    sort: Optional[Sequence[Tuple[str, int]]] = None
    skip: int = 0
    limit: int = 0

    def find_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"filter": self.filter or {}}
        if self.projection:
            kwargs["projection"] = self.projection
        if self.sort:
            kwargs["sort"] = list(self.sort)
        if self.skip:
            kwargs["skip"] = self.skip
        if self.limit:
            kwargs["limit"] = self.limit
        return kwargs


class MongoRepository:
    """Base class holding one collection handle."""

    collection_name: str = ""

    def __init__(self, database: Any) -> None:
        self._db = database

    @property
    def collection(self):
        return self._db[self.collection_name]

    async def _insert(self, doc: Mapping[str, Any]) -> None:
        try:
            await self.collection.insert_one(dict(doc))
        except DuplicateKeyError as exc:
            raise DuplicatedRecord(str(exc)) from exc

    async def _find(self, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        options = options or QueryOptions()
        cursor = self.collection.find(**options.find_kwargs())
        return await cursor.to_list(length=None)

    async def _exists(self, filter_: Dict[str, Any]) -> bool:
        doc = await self.collection.find_one(filter_, projection={"_id": 1})
        return doc is not None

    async def count(self, filter_: Optional[Dict[str, Any]] = None) -> int:
        return await self.collection.count_documents(filter_ or {})
