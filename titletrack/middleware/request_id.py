# titletrack/middleware/request_id.py
from __future__ import annotations

"""
# TitleTrack — Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` when it is short and made of
  safe characters; otherwise generates an 8-hex id.
- Exposes it on `request.state.request_id` and the response header.
- Binds it into the **loguru** context for the whole request, and logs
  "Request received" / "Request completed in Nms (status S)".

## Usage
    from titletrack.middleware.request_id import RequestIDMiddleware, get_request_id
    app.add_middleware(RequestIDMiddleware)
"""

import re
import time
import uuid

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = "X-Request-ID"
MAX_ID_LENGTH = 64

_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware:
    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = self._choose_request_id(Headers(scope=scope))
        state = scope.setdefault("state", {})
        state["request_id"] = req_id

        status_holder = {"code": 500}
        started = time.perf_counter()

        async def _send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                status_holder["code"] = message.get("status", 500)
                name_bytes = self.header_name.encode("latin-1")
                headers = [(k, v) for (k, v) in message.get("headers", []) if k.lower() != name_bytes.lower()]
                headers.append((name_bytes, req_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        with logger.contextualize(request_id=req_id):
            logger.info("Request received: {} {}", scope.get("method"), scope.get("path"))
            try:
                await self.app(scope, receive, _send_wrapper)
            finally:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.info("Request completed in {:.0f}ms (status {})", elapsed_ms, status_holder["code"])

    def _choose_request_id(self, headers: Headers) -> str:
        incoming = (headers.get(self.header_name) or "").strip()
        if 0 < len(incoming) <= MAX_ID_LENGTH and _SAFE_ID_RE.fullmatch(incoming):
            return incoming
        return new_request_id()


def get_request_id(request) -> str:
    """Current request id from `request.state` ("" when absent)."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "get_request_id"]
