from __future__ import annotations

"""Titles collection.

Documents are keyed by the external catalog id (`tt…`) and hold the catalog
metadata plus, for series, `seasons` and `episodes` lists. One copy per
title regardless of how many groups reference it.
"""

from typing import Any, Dict, List, Optional

from titletrack.repositories.base import MongoRepository, QueryOptions, RecordNotFound

SYNC_PROJECTION = {
    "_id": 1,
    "type": 1,
    "primaryImage": 1,
    "seasons": 1,
    "episodes": 1,
    "rating": 1,
    "metacritic": 1,
}


class TitleRepository(MongoRepository):
    collection_name = "titles"

    async def exists(self, title_id: str) -> bool:
        """Projection-only existence check; a missing title is `False`, never an error."""
        return await self._exists({"_id": title_id})

    async def get_by_id(self, title_id: str, projection: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        doc = await self.collection.find_one({"_id": title_id}, projection=projection)
        if doc is None:
            raise RecordNotFound(title_id)
        return doc

    async def add(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        if not doc.get("_id"):
            raise ValueError("title document is missing _id")
        await self._insert(doc)
        return doc

    async def delete(self, title_id: str) -> bool:
        result = await self.collection.delete_one({"_id": title_id})
        return result.deleted_count > 0

    async def find(self, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        return await self._find(options)

    async def find_by_ids(self, title_ids: List[str], projection: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._find(QueryOptions(filter={"_id": {"$in": title_ids}}, projection=projection))

    async def get_all_ids(self) -> List[str]:
        docs = await self._find(QueryOptions(projection={"_id": 1}))
        return [d["_id"] for d in docs]

    async def get_for_sync(self, title_id: str) -> Optional[Dict[str, Any]]:
        """Stored fields the sync routine compares; `None` when the title is gone."""
        return await self.collection.find_one({"_id": title_id}, projection=SYNC_PROJECTION)

    async def set_fields(self, title_id: str, fields: Dict[str, Any]) -> bool:
        result = await self.collection.update_one({"_id": title_id}, {"$set": fields})
        return result.matched_count > 0
