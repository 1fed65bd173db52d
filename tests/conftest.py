# tests/conftest.py
"""
Global test bootstrap
- Sets the environment BEFORE anything imports `titletrack.core.config`
- Fast bcrypt, no log files, no index creation at app startup
- Pulls in the shared fixtures (db, app, users, titles, IMDb mock)
"""

from __future__ import annotations

import os

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env
#   NOTE: These are set BEFORE importing the app/fixtures so they take effect.
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_TO_FILE", "0")
os.environ.setdefault("ENSURE_INDEXES_ON_STARTUP", "false")
os.environ.setdefault("MONGODB_DB", "titletrack_test")

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Pull in the rest of the fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *              # noqa: F401,F403,E402
from tests.fixtures.mocks.imdb import *      # noqa: F401,F403,E402
from tests.fixtures.app import *             # noqa: F401,F403,E402
from tests.fixtures.users import *           # noqa: F401,F403,E402
from tests.fixtures.titles import *          # noqa: F401,F403,E402
