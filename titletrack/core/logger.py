# titletrack/core/logger.py
from __future__ import annotations

"""
TitleTrack — Logging (Loguru)
-----------------------------
- Pretty console logs by default; JSON lines via `LOG_JSON=1`
- Every record carries `request_id` (bound by RequestIDMiddleware, "-" outside requests)
- Stdlib loggers (uvicorn, fastapi, titletrack.*, pymongo) are routed into Loguru
- Optional rotating file sink

Env
---
LOG_LEVEL=INFO|DEBUG|WARNING|ERROR (default: INFO)
LOG_JSON=1 (JSON logs; pretty otherwise)
LOG_TO_FILE=1 (write to LOG_DIR/LOG_FILE with rotation; default: 0)
LOG_DIR=logs
LOG_FILE=titletrack.log
LOG_ROTATION=10 MB
APP_DEBUG=1 (backtrace/diagnose on the console sink)
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv
from loguru import logger

# ─────────────────────────────────────────────────────────────
# ⚙️ Env
# ─────────────────────────────────────────────────────────────
load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = _env_flag("LOG_JSON")
APP_DEBUG = _env_flag("APP_DEBUG")

LOG_TO_FILE = _env_flag("LOG_TO_FILE")
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FILE = os.getenv("LOG_FILE", "titletrack.log")
LOG_ROTATION = os.getenv("LOG_ROTATION", "10 MB")

INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "fastapi", "titletrack", "scripts", "pymongo")


# ─────────────────────────────────────────────────────────────
# 🧾 Formatters
# ─────────────────────────────────────────────────────────────
def _fmt_pretty(record) -> str:
    record["extra"].setdefault("request_id", "-")
    name = record["name"].replace("<", "[").replace(">", "]")
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level:<8}</level> | "
        "[{extra[request_id]}] "
        f"<cyan>{name}</cyan>:<cyan>{{line}}</cyan> - "
        "<level>{message}</level>\n{exception}"
    )


def _serialize(record) -> str:
    payload: Dict[str, Any] = {
        "time": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f%z"),
        "level": record["level"].name,
        "logger": record["name"],
        "line": record["line"],
        "message": record["message"],
        "request_id": record["extra"].get("request_id", "-"),
    }
    for k, v in record["extra"].items():
        if k not in payload and k != "serialized":
            payload[k] = v
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    return json.dumps(payload, ensure_ascii=False, default=str)


def _patch_json(record) -> None:
    record["extra"]["serialized"] = _serialize(record)


def _fmt_json(record) -> str:
    return "{extra[serialized]}\n"


# ─────────────────────────────────────────────────────────────
# 🔁 Intercept stdlib logging → Loguru
# ─────────────────────────────────────────────────────────────
class InterceptHandler(logging.Handler):
    """Forward standard logging records to Loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


# ─────────────────────────────────────────────────────────────
# 📤 Sinks
# ─────────────────────────────────────────────────────────────
def setup_logging() -> None:
    """(Re)install sinks and stdlib interception. Safe to call more than once."""
    logger.remove()
    logger.configure(extra={"request_id": "-"}, patcher=_patch_json if LOG_JSON else None)

    fmt = _fmt_json if LOG_JSON else _fmt_pretty
    logger.add(sys.stdout, level=LOG_LEVEL, format=fmt, backtrace=APP_DEBUG, diagnose=APP_DEBUG)

    if LOG_TO_FILE:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(LOG_DIR / LOG_FILE),
            rotation=LOG_ROTATION,
            level=LOG_LEVEL,
            format=fmt,
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    for name in INTERCEPTED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.setLevel(LOG_LEVEL if name != "pymongo" else "WARNING")
        std_logger.propagate = False


setup_logging()
