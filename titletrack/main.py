# titletrack/main.py
from __future__ import annotations

"""
# TitleTrack API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle.

## Lifecycle
- Startup: create the MongoDB `Database` (unless one was injected on
  `app.state.db`), ensure indexes, create the IMDb client.
- Shutdown: close what startup created.

## Middleware order
1) request id → 2) CORS → 3) gzip

## Probes
- `/healthz`: liveness (process up).
- `/readyz`: readiness (MongoDB ping).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from titletrack.core import logger as _logsetup  # noqa: F401

from titletrack.api.v1.routers import router as api_v1_router
from titletrack.clients.imdb import ImdbClient
from titletrack.core.config import settings
from titletrack.core.exception_handlers import (
    domain_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from titletrack.core.exceptions import DomainError
from titletrack.db.indexes import ensure_indexes
from titletrack.db.mongo import Database
from titletrack.middleware.request_id import RequestIDMiddleware

logger = logging.getLogger("titletrack")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("✅ TitleTrack API starting up")

    owns_db = getattr(app.state, "db", None) is None
    if owns_db:
        app.state.db = Database.connect()
    if settings.ENSURE_INDEXES_ON_STARTUP:
        try:
            await ensure_indexes(app.state.db)
        except Exception:
            logger.exception("Index creation failed (continuing; run scripts/manage_indexes.py)")

    owns_imdb = getattr(app.state, "imdb", None) is None
    if owns_imdb:
        app.state.imdb = ImdbClient()

    try:
        yield
    finally:
        if owns_imdb:
            await app.state.imdb.aclose()
            app.state.imdb = None
        if owns_db:
            app.state.db.close()
            app.state.db = None
        logger.info("🛑 TitleTrack API shutting down")


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: application with middleware, exception handlers, the v1
        routers and health/readiness endpoints.
    """
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(DomainError, domain_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers (versioned API) ─────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz(request: Request) -> JSONResponse:
        """Readiness: MongoDB answers `ping`."""
        db = getattr(request.app.state, "db", None)
        db_ok = False
        if db is not None:
            try:
                db_ok = await db.ping()
            except Exception:
                logger.warning("Readiness check: MongoDB ping failed", exc_info=True)
        return JSONResponse(
            {"ready": db_ok, "checks": {"mongodb": db_ok}},
            status_code=200 if db_ok else 503,
        )

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "titletrack.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
