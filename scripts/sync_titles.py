#!/usr/bin/env python3
"""
TitleTrack • Sync Titles with IMDb
==================================

One full pass of the sync routine over every stored title. Batch size,
worker count and the rate-limit policy come from `SYNC_*` settings and can
be overridden per run.

Exit codes
----------
0  run finished (individual batch/title failures are logged, not fatal)
1  startup failure: MongoDB unreachable or title ids could not be read

Usage
-----
    python scripts/sync_titles.py
    python scripts/sync_titles.py --workers 2 --batch-size 10
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from titletrack.core import logger as _logsetup  # noqa: F401
from titletrack.clients.imdb import ImdbClient
from titletrack.db.mongo import Database
from titletrack.services.sync_service import SyncConfig, sync_titles

log = logging.getLogger("scripts.sync_titles")


async def run(config: SyncConfig) -> int:
    db = Database.connect()
    try:
        try:
            await db.ping()
        except Exception:
            log.exception("Cannot reach MongoDB")
            return 1

        async with ImdbClient() as imdb:
            try:
                report = await sync_titles(db, imdb, config)
            except Exception:
                log.exception("Sync aborted before processing any batch")
                return 1
    finally:
        db.close()

    print(
        f"total={report.total} updated={report.updated} touched={report.touched} "
        f"skipped={report.skipped} failed={report.failed}"
    )
    return 0


def main() -> int:
    defaults = SyncConfig.from_settings()
    ap = argparse.ArgumentParser(description="Refresh stored titles from IMDb")
    ap.add_argument("--batch-size", type=int, default=defaults.batch_size)
    ap.add_argument("--workers", type=int, default=defaults.workers)
    ap.add_argument("--max-retries", type=int, default=defaults.max_retries)
    ap.add_argument("--cooldown", type=float, default=defaults.cooldown_seconds, help="seconds after a 429")
    args = ap.parse_args()

    config = SyncConfig(
        batch_size=args.batch_size,
        workers=args.workers,
        max_retries=args.max_retries,
        cooldown_seconds=args.cooldown,
        episodes_page_size=defaults.episodes_page_size,
    )
    return asyncio.run(run(config))


if __name__ == "__main__":
    sys.exit(main())
