from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from titletrack.schemas.common import CamelModel, IdField
from titletrack.schemas.ratings import Rating
from titletrack.schemas.titles import Title


class SeasonWatched(CamelModel):
    watched: bool = False
    watched_at: Optional[datetime] = None
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GroupTitle(CamelModel):
    title_id: str
    watched: bool = False
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    watched_at: Optional[datetime] = None
    seasons_watched: Optional[Dict[str, SeasonWatched]] = None


class Group(CamelModel):
    id: str = IdField()
    name: str
    owner_id: str
    users: List[str] = Field(default_factory=list)
    titles: List[GroupTitle] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GroupTitleDetail(CamelModel):
    """One row of a group's title listing: catalog data plus group state."""

    title: Title
    ratings: List[Rating] = Field(default_factory=list)
    watched: bool = False
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    watched_at: Optional[datetime] = None
    seasons_watched: Optional[Dict[str, SeasonWatched]] = None


class CreateGroupRequest(CamelModel):
    name: str


class AddUserToGroupRequest(CamelModel):
    user_id: str


class AddTitleToGroupRequest(CamelModel):
    url: str


class UpdateGroupTitleRequest(CamelModel):
    title_id: str
    watched: Optional[bool] = None
    watched_at: Optional[datetime] = None
    season: Optional[int] = None


class GroupUser(CamelModel):
    id: str = IdField()
    name: str = ""


class GroupUsers(CamelModel):
    users: List[GroupUser]
