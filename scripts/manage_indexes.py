#!/usr/bin/env python3
"""
TitleTrack • Manage MongoDB Indexes
===================================

Create, reset, drop or list the indexes of the storage contract.

Usage
-----
    python scripts/manage_indexes.py create     # create missing indexes
    python scripts/manage_indexes.py reset      # drop & recreate every index
    python scripts/manage_indexes.py delete     # drop all but `_id_`
    python scripts/manage_indexes.py list
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from titletrack.core import logger as _logsetup  # noqa: F401
from titletrack.db.indexes import (
    CREATED,
    RECREATED,
    SKIPPED,
    delete_all_indexes,
    describe_indexes,
    ensure_indexes,
)
from titletrack.db.mongo import Database

log = logging.getLogger("scripts.manage_indexes")

COMMANDS = ("create", "reset", "delete", "list")


async def run(command: str) -> int:
    db = Database.connect()
    try:
        if command in ("create", "reset"):
            report = await ensure_indexes(db, reset=command == "reset")
            for key, action in sorted(report.actions.items()):
                print(f"{action:<10} {key}")
            print(
                f"created={report.count(CREATED)} recreated={report.count(RECREATED)} "
                f"skipped={report.count(SKIPPED)}"
            )
        elif command == "delete":
            dropped = await delete_all_indexes(db)
            for collection, names in dropped.items():
                print(f"{collection}: {', '.join(names) if names else '-'}")
        else:
            for collection, names in (await describe_indexes(db)).items():
                print(f"{collection}: {', '.join(names)}")
    finally:
        db.close()
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Manage TitleTrack MongoDB indexes")
    ap.add_argument("command", choices=COMMANDS)
    args = ap.parse_args()

    try:
        return asyncio.run(run(args.command))
    except Exception:
        log.exception("Index command '%s' failed", args.command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
