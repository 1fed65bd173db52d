from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

Registered by `titletrack.main.create_app`. Every error leaves the API as
application/problem+json with a stable schema; domain errors are translated
through `ERROR_STATUS_CODES` and anything unclassified becomes a generic 500.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from titletrack.core.exceptions import DomainError, format_error_message, status_for

log = logging.getLogger(__name__)

_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    502: "Bad Gateway",
}


def _problem(title: str, detail: str, status_code: int, request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "type": "about:blank",
            "title": title,
            "detail": detail,
            "status": status_code,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


def _internal_error(request: Request) -> JSONResponse:
    return _problem(
        "Internal Server Error",
        "An unexpected error occurred.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        request,
    )


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code is None:
        log.error("Unmapped domain error on %s %s: %r", request.method, request.url.path, exc)
        return _internal_error(request)
    return _problem(_TITLES.get(status_code, "Error"), format_error_message(exc), status_code, request)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    response = _problem(_TITLES.get(exc.status_code, "Error"), detail, exc.status_code, request)
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    detail = "Validation error"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "type": "about:blank",
            "title": detail,
            "detail": detail,
            "status": status.HTTP_400_BAD_REQUEST,
            "instance": str(request.url.path),
            "errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in exc.errors()
            ],
        },
        media_type="application/problem+json",
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals from the caller; keep the stack trace in the logs.
    log.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _internal_error(request)


__all__ = [
    "domain_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]
