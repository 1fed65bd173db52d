#!/usr/bin/env python3
"""
TitleTrack • Generate Title Fixtures
====================================

Fetches a handful of real titles from IMDb and writes them as JSON, for
seeding a local database or refreshing test payloads. Series are written
with their seasons and every episode page.

Usage
-----
    python scripts/generate_fixtures.py --out tests/fixtures/data
    python scripts/generate_fixtures.py --movies tt0133093 --series tt0903747
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List

from titletrack.core import logger as _logsetup  # noqa: F401
from titletrack.clients.imdb import ImdbClient, ImdbError

log = logging.getLogger("scripts.generate_fixtures")

DEFAULT_MOVIES = ["tt0068646", "tt0075148", "tt1092016", "tt0381707", "tt0133093"]
DEFAULT_SERIES = ["tt1190634", "tt0903747"]


def _csv(value: str) -> List[str]:
    return [s.strip() for s in value.split(",") if s.strip()]


async def fetch_movies(imdb: ImdbClient, ids: List[str]) -> List[Dict[str, Any]]:
    titles = []
    for title_id in ids:
        log.info("Fetching movie %s", title_id)
        titles.append(await imdb.get_title(title_id))
    return titles


async def fetch_series(imdb: ImdbClient, ids: List[str]) -> List[Dict[str, Any]]:
    titles = []
    for title_id in ids:
        log.info("Fetching series %s (with seasons and episodes)", title_id)
        title = await imdb.get_title(title_id)
        title["seasons"] = await imdb.get_seasons(title_id)
        title["episodes"] = await imdb.get_all_episodes(title_id)
        titles.append(title)
    return titles


def write_fixture(path: str, data: List[Dict[str, Any]]) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)
    log.info("Wrote %d title(s) to %s", len(data), path)


async def run(out_dir: str, movies: List[str], series: List[str]) -> int:
    async with ImdbClient() as imdb:
        write_fixture(os.path.join(out_dir, "movie_titles.json"), await fetch_movies(imdb, movies))
        write_fixture(os.path.join(out_dir, "tv_series_titles.json"), await fetch_series(imdb, series))
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Write IMDb title fixtures as JSON")
    ap.add_argument("--out", default="tests/fixtures/data", help="output directory")
    ap.add_argument("--movies", type=_csv, default=DEFAULT_MOVIES, help="comma-separated movie ids")
    ap.add_argument("--series", type=_csv, default=DEFAULT_SERIES, help="comma-separated series ids")
    args = ap.parse_args()

    try:
        return asyncio.run(run(args.out, args.movies, args.series))
    except ImdbError as exc:
        log.error("IMDb request failed: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
