"""
🧭 TitleTrack • API v1 Router Aggregator
========================================

Exports the **combined `router`** and a `build_v1_router()` factory.

Quick usage
-----------
    from titletrack.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")

Auth lives in the child routers' dependencies; this module only composes.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .comments import router as comments_router
from .groups import router as groups_router
from .ratings import router as ratings_router
from .titles import router as titles_router
from .users import router as users_router


def build_v1_router() -> APIRouter:
    r = APIRouter()
    r.include_router(auth_router)
    r.include_router(users_router)
    r.include_router(titles_router)
    r.include_router(groups_router)
    r.include_router(ratings_router)
    r.include_router(comments_router)
    return r


router = build_v1_router()
