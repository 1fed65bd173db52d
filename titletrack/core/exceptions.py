# titletrack/core/exceptions.py
from __future__ import annotations

"""
TitleTrack — Application & Domain Exceptions
============================================
Two layers:

1. `AppException`: a thin `HTTPException` subclass for errors raised
   directly by the HTTP layer (auth, malformed ids). Rendered by
   `titletrack.core.exception_handlers` as problem+json.
2. `DomainError`: raised by services. Each concrete class is a fixed
   sentinel with a stable message. `ERROR_STATUS_CODES` is the single
   table translating them to HTTP status codes; anything missing from the
   table is an unexpected fault (500, logged, generic message to clients).

Usage
-----
    raise RatingAlreadyExists()

    try:
        ...
    except DomainError as exc:
        status_code = status_for(exc)   # 409
"""

from typing import Any, Dict, Optional, Type

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "InvalidTokenException",
    "DomainError",
    "ERROR_STATUS_CODES",
    "status_for",
    "format_error_message",
]


# ──────────────────────────────────────────────────────────────
# 📦 HTTP-layer exception
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """HTTP error with an optional machine-readable `details` payload."""

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message: str = message
        self.details: Optional[Any] = details


class InvalidTokenException(AppException):
    """Raised for missing, invalid or expired bearer tokens (401)."""

    def __init__(self, *, detail: str = "Invalid or expired token") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


# ──────────────────────────────────────────────────────────────
# 🧩 Domain taxonomy
# ──────────────────────────────────────────────────────────────
class DomainError(Exception):
    """Base class for service-level sentinels. Subclasses set `message`."""

    message: str = "unexpected error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(DomainError):
    message = "invalid request"


class UnauthorizedError(DomainError):
    message = "unauthorized"


class ForbiddenError(DomainError):
    message = "you do not have permission to perform this action"


class NotFoundError(DomainError):
    message = "resource not found"


class ConflictError(DomainError):
    message = "resource already exists"


class UpstreamError(DomainError):
    message = "external metadata service failed"


# ── Titles ────────────────────────────────────────────────────
class TitleNotFound(NotFoundError):
    message = "title not found"


class TitleAlreadyExists(ConflictError):
    message = "title already exists"


class InvalidTitleUrl(ValidationError):
    message = "invalid IMDb title URL"


# ── Seasons (shared by ratings, comments and watched state) ───
class SeasonRequired(ValidationError):
    message = "season number is required for TV series"


class InvalidSeasonValue(ValidationError):
    message = "season number must be greater than 0"


class SeasonDoesNotExist(ValidationError):
    message = "season does not exist for this title"


# ── Ratings ───────────────────────────────────────────────────
class RatingNotFound(NotFoundError):
    message = "rating not found"


class RatingAlreadyExists(ConflictError):
    message = "user rating already exists for this title"


class SeasonRatingAlreadyExists(ConflictError):
    message = "rating already exists for this season"


class InvalidNoteValue(ValidationError):
    message = "rating note must be between 0 and 10"


# ── Comments ──────────────────────────────────────────────────
class CommentNotFound(NotFoundError):
    message = "comment not found"


class CommentAlreadyExists(ConflictError):
    message = "user comment already exists for this title"


class SeasonCommentAlreadyExists(ConflictError):
    message = "comment already exists for this season"


class CommentIsNull(ValidationError):
    message = "comment cannot be empty"


# ── Groups ────────────────────────────────────────────────────
class GroupNotFound(NotFoundError):
    message = "group not found"


class GroupNameInvalid(ValidationError):
    message = "group name cannot be empty"


class GroupDuplicatedName(ConflictError):
    message = "a group with this name already exists for this user"


class GroupNotOwnedByUser(ForbiddenError):
    message = "only the group owner can perform this action"


class TitleNotInGroup(NotFoundError):
    message = "title not found in group"


class TitleAlreadyInGroup(ConflictError):
    message = "title already in group"


class UpdatingWatchedAtWhenWatchedIsFalse(ValidationError):
    message = "cannot set watchedAt while the title is not watched"


class NothingToUpdate(ValidationError):
    message = "no fields to update"


# ── Users ─────────────────────────────────────────────────────
class UserNotFound(NotFoundError):
    message = "user not found"


class CredentialsAlreadyExists(ConflictError):
    message = "username or email already exists"


class InvalidEmail(ValidationError):
    message = "email format is not valid"


class InvalidUsernameSize(ValidationError):
    message = "username must have at least 3 characters"


class InvalidUsername(ValidationError):
    message = "username must contain only letters, numbers, '-' or '_'"


class InvalidPassword(ValidationError):
    message = "password must have at least 4 characters"


class MissingCredentials(ValidationError):
    message = "one of username or email is required"


class InvalidCredentials(UnauthorizedError):
    message = "invalid credentials"


# ──────────────────────────────────────────────────────────────
# 🗺️ Error → status table
# ──────────────────────────────────────────────────────────────
ERROR_STATUS_CODES: Dict[Type[DomainError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    UpstreamError: status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: BaseException) -> Optional[int]:
    """Status code for a domain error, or None when the error is not in the table."""
    for klass in type(exc).__mro__:
        code = ERROR_STATUS_CODES.get(klass)  # type: ignore[arg-type]
        if code is not None:
            return code
    return None


def format_error_message(exc: BaseException) -> str:
    """Message with its first letter upper-cased ("rating not found" → "Rating not found")."""
    msg = str(exc)
    return msg[:1].upper() + msg[1:] if msg else ""
