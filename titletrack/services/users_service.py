# titletrack/services/users_service.py
from __future__ import annotations

"""
TitleTrack — Users Service
==========================
Account creation, lookup and password login.

- Emails are stored lower-cased; the unique indexes additionally compare
  usernames and emails case-insensitively.
- A user needs at least one of username / email.
- Login accepts either identifier and answers `InvalidCredentials` for any
  mismatch (unknown user, wrong password, inactive account).
"""

import logging
import re
from typing import Any, Dict, Optional

from titletrack.core.exceptions import (
    CredentialsAlreadyExists,
    InvalidCredentials,
    InvalidEmail,
    InvalidPassword,
    InvalidUsername,
    InvalidUsernameSize,
    MissingCredentials,
    UserNotFound,
)
from titletrack.core.security import ADMIN_ROLE, create_access_token, get_password_hash, verify_password
from titletrack.db.mongo import Database
from titletrack.repositories.base import DuplicatedRecord, RecordNotFound, new_id, utcnow
from titletrack.schemas.users import LoginResponse, NewUser, User, UsersList

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 4
USER_ROLE = "user"


def _validate_new_user(payload: NewUser) -> tuple[Optional[str], Optional[str]]:
    username = (payload.username or "").strip() or None
    email = (payload.email or "").strip().lower() or None
    if not username and not email:
        raise MissingCredentials()
    if email and not _EMAIL_RE.match(email):
        raise InvalidEmail()
    if username:
        if len(username) < MIN_USERNAME_LENGTH:
            raise InvalidUsernameSize()
        if not _USERNAME_RE.match(username):
            raise InvalidUsername()
    if len(payload.password or "") < MIN_PASSWORD_LENGTH:
        raise InvalidPassword()
    return username, email


def to_user(doc: Dict[str, Any]) -> User:
    return User.model_validate(doc)


async def add_user(db: Database, payload: NewUser, role: str = USER_ROLE) -> User:
    username, email = _validate_new_user(payload)
    now = utcnow()
    doc = {
        "_id": new_id(),
        "name": (payload.name or "").strip() or (username or email),
        "username": username,
        "email": email,
        "passwordHash": get_password_hash(payload.password),
        "role": role,
        "isActive": True,
        "groups": [],
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        doc = await db.users.add(doc)
    except DuplicatedRecord:
        raise CredentialsAlreadyExists()
    logger.info("User %s created (role=%s)", doc["_id"], role)
    return to_user(doc)


async def get_all_users(db: Database) -> UsersList:
    return UsersList(users=[to_user(d) for d in await db.users.list_all()])


async def get_user(db: Database, user_id: str) -> User:
    try:
        return to_user(await db.users.get_by_id(user_id))
    except RecordNotFound:
        raise UserNotFound()


async def authenticate(db: Database, username: Optional[str], email: Optional[str], password: str) -> Dict[str, Any]:
    if not username and not email:
        raise MissingCredentials()
    try:
        doc = await db.users.get_by_username_or_email(username, email)
    except RecordNotFound:
        raise InvalidCredentials()
    if not doc.get("isActive", True) or not verify_password(password, doc.get("passwordHash", "")):
        raise InvalidCredentials()
    return doc


async def login(db: Database, username: Optional[str], email: Optional[str], password: str) -> LoginResponse:
    doc = await authenticate(db, username, email, password)
    now = utcnow()
    await db.users.set_last_login(doc["_id"], now)
    doc["lastLoginAt"] = now
    return LoginResponse(access_token=create_access_token(doc["_id"]), user=to_user(doc))


async def create_superuser(
    db: Database,
    name: str,
    username: Optional[str],
    email: Optional[str],
    password: str,
) -> tuple[User, bool]:
    """Create the admin account unless one with these credentials exists; returns `(user, created)`."""
    try:
        existing = await db.users.get_by_username_or_email(username, email)
    except RecordNotFound:
        existing = None
    if existing is not None:
        logger.info("Superuser already present (%s), nothing to do", existing["_id"])
        return to_user(existing), False
    user = await add_user(db, NewUser(name=name, username=username, email=email, password=password), role=ADMIN_ROLE)
    return user, True
