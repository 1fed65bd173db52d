# titletrack/db/mongo.py
from __future__ import annotations

"""
TitleTrack — MongoDB handle

`Database` is the explicitly owned storage resource: built once at startup
(`Database.connect()`), handed to every service, closed on shutdown. It
exposes one repository per collection so services never touch raw
collections directly.

    db = Database.connect()
    await db.ping()
    title = await db.titles.get_by_id("tt0111161")
    db.close()
"""

import logging
from typing import Any, Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient

from titletrack.core.config import settings
from titletrack.repositories.comments import CommentRepository
from titletrack.repositories.groups import GroupRepository
from titletrack.repositories.ratings import RatingRepository
from titletrack.repositories.titles import TitleRepository
from titletrack.repositories.users import UserRepository

log = logging.getLogger(__name__)

USERS = "users"
TITLES = "titles"
GROUPS = "groups"
RATINGS = "ratings"
COMMENTS = "comments"
COLLECTIONS = (USERS, TITLES, GROUPS, RATINGS, COMMENTS)


class Database:
    """Owned MongoDB client + database with typed repositories."""

    def __init__(self, client: Any, name: str) -> None:
        self.client = client
        self.name = name
        self.db = client[name]
        self.users = UserRepository(self.db)
        self.titles = TitleRepository(self.db)
        self.groups = GroupRepository(self.db)
        self.ratings = RatingRepository(self.db)
        self.comments = CommentRepository(self.db)

    @classmethod
    def connect(cls, uri: Optional[str] = None, name: Optional[str] = None) -> "Database":
        """Create the motor client from settings (the driver connects lazily)."""
        client = AsyncIOMotorClient(
            uri or settings.mongo_uri,
            tz_aware=True,
            serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
            uuidRepresentation="standard",
        )
        db_name = name or settings.MONGODB_DB
        log.info("MongoDB client created for database '%s'", db_name)
        return cls(client, db_name)

    def collection(self, name: str):
        return self.db[name]

    async def ping(self) -> bool:
        """True when the server answers `ping`; connection errors propagate."""
        result = await self.client.admin.command("ping")
        return bool(result.get("ok"))

    def close(self) -> None:
        self.client.close()
        log.info("MongoDB client closed")


def get_database(request: Request) -> Database:
    """FastAPI dependency: the `Database` created in the app lifespan."""
    return request.app.state.db
