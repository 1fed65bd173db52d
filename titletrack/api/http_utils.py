from __future__ import annotations

"""
TitleTrack · HTTP Utilities
===========================

Shared helpers for API routers:

- ID sanitization (IMDb title ids, ObjectId-hex document ids)
- Tri-state query booleans (`true` / `false` / absent)

All helpers return the cleaned value or raise a 400 `AppException`.
"""

import re
from typing import Optional

from fastapi import status

from titletrack.core.exceptions import AppException

__all__ = [
    "sanitize_title_id",
    "sanitize_object_id",
    "parse_tri_state_bool",
]


# ─────────────────────────────────────────────────────────────────────────────
# 🧩 ID Sanitization
# ─────────────────────────────────────────────────────────────────────────────

_TITLE_ID_RE = re.compile(r"^tt\d{1,12}$")
_OBJECT_ID_RE = re.compile(r"^[0-9a-f]{24}$")


def _bad_request(message: str) -> AppException:
    return AppException(status_code=status.HTTP_400_BAD_REQUEST, message=message)


def sanitize_title_id(title_id: str) -> str:
    """Validate an IMDb title id (`tt` + digits).

    Title ids become keys of the group `titles` map, so anything else
    (dots, `$`) is rejected before it can reach a field path.
    """
    title_id = (title_id or "").strip()
    if _TITLE_ID_RE.match(title_id):
        return title_id
    raise _bad_request("Invalid title id format")


def sanitize_object_id(value: str, *, field: str = "id") -> str:
    value = (value or "").strip().lower()
    if _OBJECT_ID_RE.match(value):
        return value
    raise _bad_request(f"Invalid {field} format")


# ─────────────────────────────────────────────────────────────────────────────
# ☑️ Tri-state booleans
# ─────────────────────────────────────────────────────────────────────────────

def parse_tri_state_bool(value: Optional[str], *, field: str) -> Optional[bool]:
    """`"true"` → True, `"false"` → False, absent/empty → None; anything else is a 400."""
    if value is None or value.strip() == "":
        return None
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise _bad_request(f"Invalid value for '{field}': expected true or false")
