from __future__ import annotations

"""Groups collection.

A group's `titles` field is a map keyed by title id:

    {"tt0111161": {"titleId": "tt0111161", "watched": false,
                   "addedAt": ..., "updatedAt": ..., "watchedAt": ...,
                   "seasonsWatched": {"1": {"watched": true, ...}}}}

Membership of a title is a key lookup, and every read that takes a
`user_id` is filtered on `users` so non-members see "not found".
"""

from typing import Any, Dict, Iterable, List, Optional

from pymongo import ReturnDocument

from titletrack.repositories.base import MongoRepository, QueryOptions, RecordNotFound, utcnow


def _member_filter(group_id: str, user_id: Optional[str]) -> Dict[str, Any]:
    filter_: Dict[str, Any] = {"_id": group_id}
    if user_id is not None:
        filter_["users"] = user_id
    return filter_


class GroupRepository(MongoRepository):
    collection_name = "groups"

    async def add(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        await self._insert(doc)
        return doc

    async def get_by_id(self, group_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        doc = await self.collection.find_one(_member_filter(group_id, user_id))
        if doc is None:
            raise RecordNotFound(group_id)
        return doc

    async def exists(self, group_id: str, user_id: Optional[str] = None) -> bool:
        return await self._exists(_member_filter(group_id, user_id))

    async def contains_title(self, group_id: str, title_id: str, user_id: str) -> bool:
        """True only when the user is a member AND the title is a key of `titles`."""
        filter_ = _member_filter(group_id, user_id)
        filter_[f"titles.{title_id}"] = {"$exists": True}
        return await self._exists(filter_)

    async def add_user(self, group_id: str, user_id: str) -> None:
        result = await self.collection.update_one(
            {"_id": group_id},
            {"$addToSet": {"users": user_id}, "$set": {"updatedAt": utcnow()}},
        )
        if result.matched_count == 0:
            raise RecordNotFound(group_id)

    async def add_title(self, group_id: str, title_id: str, entry: Dict[str, Any]) -> bool:
        """Insert a title entry; `False` when the key already exists."""
        result = await self.collection.update_one(
            {"_id": group_id, f"titles.{title_id}": {"$exists": False}},
            {"$set": {f"titles.{title_id}": entry, "updatedAt": entry["addedAt"]}},
        )
        return result.matched_count > 0

    async def update_title(
        self,
        group_id: str,
        title_id: str,
        set_fields: Dict[str, Any],
        unset_fields: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """Patch fields of one title entry (paths relative to the entry); returns the entry."""
        prefix = f"titles.{title_id}"
        update: Dict[str, Any] = {"$set": {f"{prefix}.{k}": v for k, v in set_fields.items()}}
        unset = {f"{prefix}.{k}": "" for k in unset_fields}
        if unset:
            update["$unset"] = unset
        doc = await self.collection.find_one_and_update(
            {"_id": group_id, prefix: {"$exists": True}},
            update,
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise RecordNotFound(title_id)
        return doc["titles"][title_id]

    async def remove_title(self, group_id: str, title_id: str) -> bool:
        result = await self.collection.update_one(
            {"_id": group_id, f"titles.{title_id}": {"$exists": True}},
            {"$unset": {f"titles.{title_id}": ""}, "$set": {"updatedAt": utcnow()}},
        )
        return result.modified_count > 0

    async def remove_title_everywhere(self, title_id: str) -> int:
        result = await self.collection.update_many(
            {f"titles.{title_id}": {"$exists": True}},
            {"$unset": {f"titles.{title_id}": ""}},
        )
        return result.modified_count

    async def set_titles(self, group_id: str, titles: Dict[str, Any]) -> None:
        await self.collection.update_one({"_id": group_id}, {"$set": {"titles": titles}})

    async def list_all(self, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        return await self._find(options)
