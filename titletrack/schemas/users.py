from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from titletrack.schemas.common import CamelModel, IdField


class NewUser(CamelModel):
    name: str = ""
    username: Optional[str] = None
    email: Optional[str] = None
    password: str


class User(CamelModel):
    """Public view of a user; the password hash never leaves the service layer."""

    id: str = IdField()
    name: str = ""
    username: Optional[str] = None
    email: Optional[str] = None
    role: str = "user"
    is_active: bool = True
    groups: List[str] = Field(default_factory=list)
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: User


class UsersList(CamelModel):
    users: List[User]
