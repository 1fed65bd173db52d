from __future__ import annotations

"""Users collection.

`username` and `email` are unique case-insensitively, but only when present
and non-empty (partial unique indexes), so several users may omit an email.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from titletrack.repositories.base import MongoRepository, QueryOptions, RecordNotFound, utcnow

PUBLIC_PROJECTION = {"passwordHash": 0}


def username_filter(username: str) -> Dict[str, Any]:
    """Case-insensitive exact match, agreeing with the `username_unique` collation."""
    return {"username": {"$regex": f"^{re.escape(username)}$", "$options": "i"}}


class UserRepository(MongoRepository):
    collection_name = "users"

    async def exists(self, user_id: str) -> bool:
        return await self._exists({"_id": user_id})

    async def add(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        # Empty optional credentials are dropped so the partial indexes ignore them.
        doc = {k: v for k, v in doc.items() if not (k in ("email", "username") and not v)}
        await self._insert(doc)
        return doc

    async def get_by_id(self, user_id: str) -> Dict[str, Any]:
        doc = await self.collection.find_one({"_id": user_id})
        if doc is None:
            raise RecordNotFound(user_id)
        return doc

    async def get_by_username_or_email(self, username: Optional[str], email: Optional[str]) -> Dict[str, Any]:
        """Username or email match, both ignoring case."""
        clauses: List[Dict[str, Any]] = []
        if username:
            clauses.append(username_filter(username.strip()))
        if email:
            clauses.append({"email": email.strip().lower()})
        if not clauses:
            raise RecordNotFound("no username or email given")
        doc = await self.collection.find_one({"$or": clauses})
        if doc is None:
            raise RecordNotFound(username or email)
        return doc

    async def list_all(self, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        options = options or QueryOptions(projection=PUBLIC_PROJECTION, sort=[("createdAt", 1)])
        return await self._find(options)

    async def get_names_by_ids(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        return await self._find(
            QueryOptions(filter={"_id": {"$in": user_ids}}, projection={"_id": 1, "name": 1}, sort=[("name", 1)])
        )

    async def add_group(self, user_id: str, group_id: str) -> None:
        result = await self.collection.update_one(
            {"_id": user_id},
            {"$addToSet": {"groups": group_id}, "$set": {"updatedAt": utcnow()}},
        )
        if result.matched_count == 0:
            raise RecordNotFound(user_id)

    async def set_last_login(self, user_id: str, when: datetime) -> None:
        await self.collection.update_one({"_id": user_id}, {"$set": {"lastLoginAt": when}})
