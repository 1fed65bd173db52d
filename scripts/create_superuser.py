#!/usr/bin/env python3
"""
TitleTrack • Create Superuser
=============================

Creates the admin account from `SUPERUSER_*` settings (or flags). Running it
again with the same credentials is a no-op.

Usage
-----
    SUPERUSER_USERNAME=admin SUPERUSER_PASSWORD=change-me \
      python scripts/create_superuser.py

    python scripts/create_superuser.py --email admin@example.com --password change-me
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from titletrack.core import logger as _logsetup  # noqa: F401
from titletrack.core.config import settings
from titletrack.core.exceptions import DomainError
from titletrack.db.mongo import Database
from titletrack.services.users_service import create_superuser

log = logging.getLogger("scripts.create_superuser")


async def run(name: str, username: str | None, email: str | None, password: str) -> int:
    db = Database.connect()
    try:
        user, created = await create_superuser(db, name, username, email, password)
    finally:
        db.close()
    print(f"{'Created' if created else 'Already present'}: {user.id} ({user.username or user.email})")
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Create the TitleTrack admin account")
    ap.add_argument("--name", default=settings.SUPERUSER_NAME)
    ap.add_argument("--username", default=settings.SUPERUSER_USERNAME)
    ap.add_argument("--email", default=settings.SUPERUSER_EMAIL)
    ap.add_argument("--password", default=None, help="defaults to SUPERUSER_PASSWORD")
    args = ap.parse_args()

    password = args.password
    if password is None and settings.SUPERUSER_PASSWORD is not None:
        password = settings.SUPERUSER_PASSWORD.get_secret_value()
    if not password or not (args.username or args.email):
        print("A password and a username or email are required (flags or SUPERUSER_* env).")
        return 2

    try:
        return asyncio.run(run(args.name, args.username, args.email, password))
    except DomainError as exc:
        print(f"Refused: {exc}")
        return 2
    except Exception:
        log.exception("Superuser creation failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
