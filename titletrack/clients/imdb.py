# titletrack/clients/imdb.py
from __future__ import annotations

"""
TitleTrack — IMDb metadata client (imdbapi.dev)

Thin async wrapper over `httpx.AsyncClient`. Responses are returned as
plain JSON dicts; mapping to the storage shape happens in the services.

Error contract
--------------
- 404 → `ImdbNotFound`
- 429 → `ImdbRateLimited` (the only error `with_rate_limit_retry` retries)
- any other non-2xx → `ImdbError(status_code, body)`
- transport failures (DNS, timeouts, resets) → `ImdbError(None, str(exc))`
- a 2xx body that is not JSON → `ImdbError(status_code, ...)`

Usage
-----
    async with ImdbClient() as imdb:
        title = await imdb.get_title("tt0111161")
        episodes = await imdb.get_all_episodes("tt0903747")
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

import httpx
from fastapi import Request

from titletrack.core.config import settings

log = logging.getLogger(__name__)

T = TypeVar("T")


class ImdbError(Exception):
    def __init__(self, status_code: Optional[int], body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"IMDb API error (status={status_code}): {body[:200]}")


class ImdbNotFound(ImdbError):
    pass


class ImdbRateLimited(ImdbError):
    pass


class ImdbClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.IMDB_API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.IMDB_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ImdbClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Transport ───────────────────────────────────────────────
    async def _get(self, path: str, params: Any = None) -> Dict[str, Any]:
        try:
            resp = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise ImdbError(None, str(exc)) from exc

        if resp.status_code == 404:
            raise ImdbNotFound(404, resp.text)
        if resp.status_code == 429:
            raise ImdbRateLimited(429, resp.text)
        if not resp.is_success:
            raise ImdbError(resp.status_code, resp.text)
        try:
            return resp.json()
        except ValueError as exc:
            raise ImdbError(resp.status_code, f"invalid JSON body: {resp.text}") from exc

    # ── Endpoints ───────────────────────────────────────────────
    async def get_title(self, title_id: str) -> Dict[str, Any]:
        return await self._get(f"/titles/{title_id}")

    async def batch_get_titles(self, title_ids: List[str]) -> List[Dict[str, Any]]:
        if not title_ids:
            return []
        params = [("titleIds", tid) for tid in title_ids]
        data = await self._get("/titles:batchGet", params=params)
        return data.get("titles") or []

    async def get_seasons(self, title_id: str) -> List[Dict[str, Any]]:
        data = await self._get(f"/titles/{title_id}/seasons")
        return data.get("seasons") or []

    async def get_episodes_page(
        self,
        title_id: str,
        page_size: int = 50,
        page_token: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        params: Dict[str, Any] = {"pageSize": page_size}
        if page_token:
            params["pageToken"] = page_token
        data = await self._get(f"/titles/{title_id}/episodes", params=params)
        return data.get("episodes") or [], data.get("nextPageToken") or None

    async def get_all_episodes(self, title_id: str, page_size: int = 50) -> List[Dict[str, Any]]:
        """Follow `nextPageToken` until the API stops returning one."""
        episodes: List[Dict[str, Any]] = []
        token: Optional[str] = None
        while True:
            page, token = await self.get_episodes_page(title_id, page_size=page_size, page_token=token)
            episodes.extend(page)
            if not token:
                return episodes


async def with_rate_limit_retry(
    call: Callable[[], Awaitable[T]],
    max_retries: int,
    cooldown_seconds: float,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run `call`, sleeping `cooldown_seconds` after each 429, at most `max_retries` attempts."""
    attempts = max(1, max_retries)
    for attempt in range(1, attempts + 1):
        try:
            return await call()
        except ImdbRateLimited:
            if attempt == attempts:
                raise
            log.warning(
                "IMDb rate limit hit (attempt %d/%d), cooling down %.0fs",
                attempt,
                attempts,
                cooldown_seconds,
            )
            await sleep(cooldown_seconds)
    raise AssertionError("unreachable")


def get_imdb_client(request: Request) -> ImdbClient:
    """FastAPI dependency: the client created in the app lifespan."""
    return request.app.state.imdb
