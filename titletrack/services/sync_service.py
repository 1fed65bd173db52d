# titletrack/services/sync_service.py
from __future__ import annotations

"""
TitleTrack — Title Sync Routine
===============================

Batch job reconciling stored titles with IMDb.

Flow
----
1) Read all title ids once (projection-only) and chunk them into batches.
2) Fill a queue with the batches, followed by one stop sentinel per worker.
3) A fixed pool of workers drains the queue; `sync_titles` returns only
   after every worker has exited.

Per batch: one `titles:batchGet` call under the rate-limit retry policy. If
it fails (retries exhausted or any other upstream error) the batch is
logged and abandoned; the run moves on.

Per title: the stored projection is compared field by field with the fresh
data; changed fields are written together with `updatedAt`, which is set on
every processed title even when nothing else changed. Titles missing from
storage are skipped. Series episodes are read page by page, each page
request under its own rate-limit retry. Per-title failures are logged and
absorbed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from titletrack.clients.imdb import ImdbClient, ImdbError, with_rate_limit_retry
from titletrack.core.config import settings
from titletrack.db.mongo import Database
from titletrack.repositories.base import utcnow
from titletrack.schemas.titles import SERIES_TYPES

logger = logging.getLogger(__name__)

SYNC_FIELDS = ("primaryImage", "seasons", "episodes", "rating", "metacritic")

_STOP = None


@dataclass
class SyncConfig:
    batch_size: int = 5
    workers: int = 5
    max_retries: int = 3
    cooldown_seconds: float = 60.0
    episodes_page_size: int = 50

    @classmethod
    def from_settings(cls) -> "SyncConfig":
        return cls(
            batch_size=settings.SYNC_BATCH_SIZE,
            workers=settings.SYNC_WORKERS,
            max_retries=settings.SYNC_MAX_RETRIES,
            cooldown_seconds=settings.SYNC_RATE_LIMIT_COOLDOWN_SECONDS,
            episodes_page_size=settings.SYNC_EPISODES_PAGE_SIZE,
        )


@dataclass
class SyncReport:
    total: int = 0
    updated: int = 0
    touched: int = 0
    skipped: int = 0
    failed: int = 0
    failed_batches: List[List[str]] = field(default_factory=list)


def chunk(ids: List[str], size: int) -> List[List[str]]:
    size = max(1, size)
    return [ids[i : i + size] for i in range(0, len(ids), size)]


def compute_title_changes(stored: Dict[str, Any], fresh: Dict[str, Any]) -> Dict[str, Any]:
    """Fields of `fresh` that differ from `stored` (deep equality); absent keys are not compared."""
    changes: Dict[str, Any] = {}
    for name in SYNC_FIELDS:
        if name not in fresh:
            continue
        if fresh[name] != stored.get(name):
            changes[name] = fresh[name]
    return changes


class TitleSyncer:
    def __init__(self, db: Database, imdb: ImdbClient, config: SyncConfig, sleep=asyncio.sleep) -> None:
        self.db = db
        self.imdb = imdb
        self.config = config
        self.report = SyncReport()
        self._sleep = sleep

    async def _retry(self, call):
        return await with_rate_limit_retry(call, self.config.max_retries, self.config.cooldown_seconds, sleep=self._sleep)

    async def fresh_fields(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        title_id = raw["id"]
        fresh: Dict[str, Any] = {
            "primaryImage": raw.get("primaryImage"),
            "rating": raw.get("rating"),
            "metacritic": raw.get("metacritic"),
        }
        if raw.get("type") not in SERIES_TYPES:
            return fresh

        try:
            fresh["seasons"] = await self._retry(lambda: self.imdb.get_seasons(title_id))
        except ImdbError as exc:
            logger.warning("Seasons fetch failed for %s: %s", title_id, exc)
        try:
            episodes = await self.fetch_episodes(title_id)
            if episodes:
                fresh["episodes"] = episodes
        except ImdbError as exc:
            logger.warning("Episodes fetch failed for %s: %s", title_id, exc)
        return fresh

    async def fetch_episodes(self, title_id: str) -> List[Dict[str, Any]]:
        """Every episode page; the rate-limit retry applies to each page request on its own."""
        episodes: List[Dict[str, Any]] = []
        token: Optional[str] = None
        while True:
            page, token = await self._retry(
                lambda token=token: self.imdb.get_episodes_page(
                    title_id, page_size=self.config.episodes_page_size, page_token=token
                )
            )
            episodes.extend(page)
            if not token:
                return episodes

    async def process_title(self, raw: Dict[str, Any]) -> None:
        title_id = raw.get("id")
        if not title_id:
            return
        stored = await self.db.titles.get_for_sync(title_id)
        if stored is None:
            logger.info("Title %s not found in database, skipping", title_id)
            self.report.skipped += 1
            return

        changes = compute_title_changes(stored, await self.fresh_fields(raw))
        await self.db.titles.set_fields(title_id, dict(changes, updatedAt=utcnow()))
        if changes:
            self.report.updated += 1
            logger.info("Title %s: fields changed (%s)", title_id, ", ".join(sorted(changes)))
        else:
            self.report.touched += 1
            logger.debug("Title %s: updatedAt only", title_id)

    def _abandon(self, batch: List[str]) -> None:
        self.report.failed += len(batch)
        self.report.failed_batches.append(batch)

    async def process_batch(self, batch: List[str]) -> None:
        try:
            titles = await self._retry(lambda: self.imdb.batch_get_titles(batch))
        except ImdbError as exc:
            logger.error("Batch %s abandoned: %s", ",".join(batch), exc)
            self._abandon(batch)
            return
        except Exception:
            logger.exception("Batch %s abandoned on unexpected error", ",".join(batch))
            self._abandon(batch)
            return

        for raw in titles:
            try:
                await self.process_title(raw)
            except Exception:
                logger.exception("Failed processing title %s", raw.get("id"))
                self.report.failed += 1

    async def _worker(self, queue: "asyncio.Queue[Optional[List[str]]]") -> None:
        while True:
            batch = await queue.get()
            try:
                if batch is _STOP:
                    return
                await self.process_batch(batch)
            finally:
                queue.task_done()

    async def run(self, title_ids: List[str]) -> SyncReport:
        self.report.total = len(title_ids)
        batches = chunk(title_ids, self.config.batch_size)
        workers = max(1, self.config.workers)

        queue: asyncio.Queue = asyncio.Queue()
        for batch in batches:
            queue.put_nowait(batch)
        for _ in range(workers):
            queue.put_nowait(_STOP)

        await asyncio.gather(*(self._worker(queue) for _ in range(workers)))
        return self.report


async def sync_titles(db: Database, imdb: ImdbClient, config: Optional[SyncConfig] = None, sleep=asyncio.sleep) -> SyncReport:
    """Run one full sync; only failing to enumerate title ids propagates."""
    config = config or SyncConfig.from_settings()
    title_ids = await db.titles.get_all_ids()
    logger.info("Syncing %d title(s) in batches of %d with %d worker(s)", len(title_ids), config.batch_size, config.workers)

    report = await TitleSyncer(db, imdb, config, sleep=sleep).run(title_ids)
    logger.info(
        "Sync finished: total=%d updated=%d touched=%d skipped=%d failed=%d",
        report.total,
        report.updated,
        report.touched,
        report.skipped,
        report.failed,
    )
    return report
