# titletrack/api/v1/routers/users.py
from __future__ import annotations

"""
TitleTrack · Users API

- POST /users      → sign up (public)
- GET  /users      → all users (admin)
- GET  /users/me   → current user
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from titletrack.core.security import get_current_user, require_admin
from titletrack.db.mongo import Database, get_database
from titletrack.schemas.users import NewUser, User, UsersList
from titletrack.services import users_service

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={409: {"description": "Username or email already exists"}},
)


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED, summary="Create a user")
async def create_user(payload: NewUser, db: Database = Depends(get_database)) -> User:
    return await users_service.add_user(db, payload)


@router.get("", response_model=UsersList, summary="List users (admin)")
async def list_users(
    db: Database = Depends(get_database),
    _admin: Dict[str, Any] = Depends(require_admin),
) -> UsersList:
    return await users_service.get_all_users(db)


@router.get("/me", response_model=User, summary="Current user")
async def me(user: Dict[str, Any] = Depends(get_current_user)) -> User:
    return users_service.to_user(user)
