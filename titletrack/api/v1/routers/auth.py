# titletrack/api/v1/routers/auth.py
from __future__ import annotations

"""
TitleTrack · Auth API

- POST /auth/login → bearer token + public user (username or email + password)
"""

import logging

from fastapi import APIRouter, Depends

from titletrack.db.mongo import Database, get_database
from titletrack.schemas.users import LoginRequest, LoginResponse
from titletrack.services import users_service

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse, summary="Log in with username or email")
async def login(payload: LoginRequest, db: Database = Depends(get_database)) -> LoginResponse:
    return await users_service.login(db, payload.username, payload.email, payload.password)
