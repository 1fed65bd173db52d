from __future__ import annotations

"""
FakeImdbClient (async): in-memory stand-in for `ImdbClient`
============================================================
Same method surface as the real client, answering from dictionaries.

Knobs
-----
- `rate_limited`      : number of upcoming `batch_get_titles` calls that raise 429
- `always_rate_limited`: every `batch_get_titles` call raises 429
- `broken`            : title ids whose `get_title` raises a 503 `ImdbError`
- `calls`             : list of `(method, arg)` tuples, for assertions
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from titletrack.clients.imdb import ImdbError, ImdbNotFound, ImdbRateLimited

MOVIE_ID = "tt0111161"
SERIES_ID = "tt0903747"

MOVIE_PAYLOAD: Dict[str, Any] = {
    "id": MOVIE_ID,
    "type": "movie",
    "primaryTitle": "The Shawshank Redemption",
    "primaryImage": {"url": "https://img.example/shawshank.jpg", "width": 1000, "height": 1500},
    "startYear": 1994,
    "runtimeSeconds": 8520,
    "genres": ["Drama"],
    "rating": {"aggregateRating": 9.3, "voteCount": 3000000},
    "metacritic": {"score": 82, "reviewCount": 22},
    "plot": "Two imprisoned men bond over a number of years.",
    "directors": [{"id": "nm0001104", "displayName": "Frank Darabont"}],
    "writers": [{"id": "nm0000175", "displayName": "Stephen King"}],
    "stars": [{"id": "nm0000209", "displayName": "Tim Robbins"}],
    "originCountries": [{"code": "US", "name": "United States"}],
}

SERIES_PAYLOAD: Dict[str, Any] = {
    "id": SERIES_ID,
    "type": "tvSeries",
    "primaryTitle": "Breaking Bad",
    "primaryImage": {"url": "https://img.example/bb.jpg", "width": 800, "height": 1200},
    "startYear": 2008,
    "genres": ["Crime", "Drama"],
    "rating": {"aggregateRating": 9.5, "voteCount": 2000000},
    "plot": "A chemistry teacher turns to crime.",
    "stars": [{"id": "nm0186505", "displayName": "Bryan Cranston"}],
}

SERIES_SEASONS: List[Dict[str, Any]] = [
    {"season": "1", "episodeCount": 7},
    {"season": "2", "episodeCount": 13},
]

SERIES_EPISODES: List[Dict[str, Any]] = [
    {"id": "tt0959621", "title": "Pilot", "season": "1", "episodeNumber": 1},
    {"id": "tt1054724", "title": "Cat's in the Bag...", "season": "1", "episodeNumber": 2},
]


class FakeImdbClient:
    def __init__(
        self,
        titles: Optional[Dict[str, Dict[str, Any]]] = None,
        seasons: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        episodes: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> None:
        self.titles = dict(titles or {})
        self.seasons = dict(seasons or {})
        self.episodes = dict(episodes or {})
        self.rate_limited = 0
        self.always_rate_limited = False
        self.broken: set = set()
        self.calls: List[tuple] = []
        self.closed = False

    async def get_title(self, title_id: str) -> Dict[str, Any]:
        self.calls.append(("get_title", title_id))
        if title_id in self.broken:
            raise ImdbError(503, "upstream unavailable")
        if title_id not in self.titles:
            raise ImdbNotFound(404, "not found")
        return dict(self.titles[title_id])

    async def batch_get_titles(self, title_ids: List[str]) -> List[Dict[str, Any]]:
        self.calls.append(("batch_get_titles", tuple(title_ids)))
        if self.always_rate_limited:
            raise ImdbRateLimited(429, "slow down")
        if self.rate_limited > 0:
            self.rate_limited -= 1
            raise ImdbRateLimited(429, "slow down")
        return [dict(self.titles[t]) for t in title_ids if t in self.titles]

    async def get_seasons(self, title_id: str) -> List[Dict[str, Any]]:
        self.calls.append(("get_seasons", title_id))
        return [dict(s) for s in self.seasons.get(title_id, [])]

    async def get_episodes_page(
        self, title_id: str, page_size: int = 50, page_token: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """Tokens are plain offsets into the episode list."""
        self.calls.append(("get_episodes_page", title_id, page_token))
        start = int(page_token or 0)
        episodes = self.episodes.get(title_id, [])
        end = start + page_size
        return [dict(e) for e in episodes[start:end]], (str(end) if end < len(episodes) else None)

    async def get_all_episodes(self, title_id: str, page_size: int = 50) -> List[Dict[str, Any]]:
        self.calls.append(("get_all_episodes", title_id))
        return [dict(e) for e in self.episodes.get(title_id, [])]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_imdb() -> FakeImdbClient:
    """
    🧪 IMDb stand-in knowing one movie and one two-season series.
    """
    return FakeImdbClient(
        titles={MOVIE_ID: MOVIE_PAYLOAD, SERIES_ID: SERIES_PAYLOAD},
        seasons={SERIES_ID: SERIES_SEASONS},
        episodes={SERIES_ID: SERIES_EPISODES},
    )
