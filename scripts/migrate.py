#!/usr/bin/env python3
"""
TitleTrack • Data Migrations
============================

Usage
-----
    # groups.titles: array → map keyed by title id (re-runnable)
    python scripts/migrate.py titles-to-map

    # back up every non-movie title, then delete it and its references
    python scripts/migrate.py remove-non-movies --backup backups/non_movies.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from titletrack.core import logger as _logsetup  # noqa: F401
from titletrack.db.migrations import backup_and_remove_non_movies, migrate_group_titles_to_map
from titletrack.db.mongo import Database

log = logging.getLogger("scripts.migrate")


async def run(args: argparse.Namespace) -> int:
    db = Database.connect()
    try:
        if args.command == "titles-to-map":
            stats = await migrate_group_titles_to_map(db)
        else:
            stats = await backup_and_remove_non_movies(db, args.backup)
    finally:
        db.close()
    print(" ".join(f"{k}={v}" for k, v in stats.items()))
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Run a TitleTrack data migration")
    sub = ap.add_subparsers(dest="command", required=True)
    sub.add_parser("titles-to-map", help="convert groups.titles arrays into maps")
    rm = sub.add_parser("remove-non-movies", help="back up and delete every non-movie title")
    rm.add_argument("--backup", required=True, help="JSON file the removed titles are written to first")
    args = ap.parse_args()

    try:
        return asyncio.run(run(args))
    except Exception:
        log.exception("Migration '%s' failed", args.command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
