from __future__ import annotations

"""Per-user, per-title annotations (ratings and comments).

Both collections share one document shape:

    {_id, titleId, userId, <value_field>, <seasons_field>?, createdAt, updatedAt}

with at most one document per (userId, titleId), enforced by the
`userId_and_titleId_unique` index. Series keep per-season entries in the
`<seasons_field>` map keyed by the season number as a string; a season is
added with an update filtered on the key's absence, so a repeated season
never overwrites and never needs a read-before-write.
"""

from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from titletrack.repositories.base import MongoRepository, QueryOptions, RecordNotFound


class AnnotationRepository(MongoRepository):
    value_field: str = ""
    seasons_field: str = ""
    season_value_field: str = ""

    async def add(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        await self._insert(doc)
        return doc

    async def add_season(
        self,
        user_id: str,
        title_id: str,
        season_key: str,
        entry: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """Attach a season entry to the user's existing document.

        Returns the updated document, or `None` when the season is already
        present (or the document vanished in between).
        """
        path = f"{self.seasons_field}.{season_key}"
        return await self.collection.find_one_and_update(
            {"userId": user_id, "titleId": title_id, path: {"$exists": False}},
            {"$set": {path: entry, "updatedAt": entry["addedAt"]}},
            return_document=ReturnDocument.AFTER,
        )

    async def get_by_id(self, doc_id: str, user_id: str) -> Dict[str, Any]:
        doc = await self.collection.find_one({"_id": doc_id, "userId": user_id})
        if doc is None:
            raise RecordNotFound(doc_id)
        return doc

    async def find_by_titles(self, title_ids: List[str], user_ids: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        filter_: Dict[str, Any] = {"titleId": {"$in": title_ids}}
        if user_ids is not None:
            filter_["userId"] = {"$in": user_ids}
        return await self._find(QueryOptions(filter=filter_, sort=[("createdAt", 1)]))

    async def find(self, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        return await self._find(options)

    async def update_value(self, doc_id: str, user_id: str, value: Any, now: Any) -> Dict[str, Any]:
        """Set the top-level value; zero matches (unknown id or someone else's) → RecordNotFound."""
        doc = await self.collection.find_one_and_update(
            {"_id": doc_id, "userId": user_id},
            {"$set": {self.value_field: value, "updatedAt": now}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise RecordNotFound(doc_id)
        return doc

    async def update_season(self, doc_id: str, user_id: str, season_key: str, value: Any, now: Any) -> Dict[str, Any]:
        path = f"{self.seasons_field}.{season_key}"
        doc = await self.collection.find_one_and_update(
            {"_id": doc_id, "userId": user_id, path: {"$exists": True}},
            {"$set": {f"{path}.{self.season_value_field}": value, f"{path}.updatedAt": now, "updatedAt": now}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise RecordNotFound(doc_id)
        return doc

    async def remove_season(self, doc_id: str, user_id: str, season_key: str, now: Any) -> Dict[str, Any]:
        path = f"{self.seasons_field}.{season_key}"
        doc = await self.collection.find_one_and_update(
            {"_id": doc_id, "userId": user_id, path: {"$exists": True}},
            {"$unset": {path: ""}, "$set": {"updatedAt": now}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise RecordNotFound(doc_id)
        return doc

    async def set_value(self, doc_id: str, value: Any) -> None:
        await self.collection.update_one({"_id": doc_id}, {"$set": {self.value_field: value}})

    async def delete(self, doc_id: str, user_id: str) -> int:
        result = await self.collection.delete_one({"_id": doc_id, "userId": user_id})
        return result.deleted_count

    async def delete_by_title(self, title_id: str) -> int:
        result = await self.collection.delete_many({"titleId": title_id})
        return result.deleted_count

    async def delete_by_titles(self, title_ids: List[str]) -> int:
        result = await self.collection.delete_many({"titleId": {"$in": title_ids}})
        return result.deleted_count
