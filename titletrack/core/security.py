# titletrack/core/security.py
from __future__ import annotations

"""
TitleTrack — Authentication helpers
===================================
- bcrypt password hashing (passlib)
- HS256 access tokens (python-jose) carrying `sub`, `iat`, `exp`, `jti`
- FastAPI dependencies resolving the **current user** from a bearer token
  and gating admin-only routes
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
import logging

from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from titletrack.core.config import settings
from titletrack.core.exceptions import AppException, InvalidTokenException
from titletrack.db.mongo import Database, get_database
from titletrack.repositories.base import RecordNotFound

# ───────────────────────────────────────────────
# 🔐 Security Constants and Setup
# ───────────────────────────────────────────────
ALGORITHM: str = settings.JWT_ALGORITHM
ADMIN_ROLE = "admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
security = HTTPBearer(auto_error=False)
log = logging.getLogger(__name__)


# ───────────────────────────────────────────────
# 🔐 Password Hashing Utilities
# ───────────────────────────────────────────────
def get_password_hash(password: str) -> str:
    """Return a salted hash using Passlib's bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


# ───────────────────────────────────────────────
# 🪪 JWT — Access Token
# ───────────────────────────────────────────────
def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: Dict[str, Any] = {
        "sub": user_id,
        "iat": now,
        "exp": expire,
        "jti": str(uuid4()),
        "token_type": "access",
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; any failure is an `InvalidTokenException`."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY.get_secret_value(), algorithms=[ALGORITHM])
    except JWTError as exc:
        log.debug("Token rejected: %s", exc)
        raise InvalidTokenException() from exc
    if payload.get("token_type") != "access" or not payload.get("sub"):
        raise InvalidTokenException()
    return payload


# ───────────────────────────────────────────────
# 👤 Current user dependencies
# ───────────────────────────────────────────────
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_database),
) -> Dict[str, Any]:
    """Resolve the bearer token to an active user document (401 otherwise)."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidTokenException(detail="Not authenticated")
    payload = decode_access_token(credentials.credentials)
    try:
        user = await db.users.get_by_id(payload["sub"])
    except RecordNotFound:
        raise InvalidTokenException(detail="Invalid or inactive user")
    if not user.get("isActive", True):
        raise InvalidTokenException(detail="Invalid or inactive user")
    return user


async def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != ADMIN_ROLE:
        raise AppException(status_code=status.HTTP_403_FORBIDDEN, message="Admin privileges required")
    return user
