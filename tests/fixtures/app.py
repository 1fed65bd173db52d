# tests/fixtures/app.py

"""
🧩 App Fixture:
- Builds the real application via `create_app()`
- Injects the test database and the fake IMDb client on `app.state`
  (the ASGI transport does not run the lifespan)
- Returns HTTP client fixture for integration tests
"""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from titletrack.db.mongo import Database
from titletrack.main import create_app
from tests.fixtures.mocks.imdb import FakeImdbClient


@pytest.fixture()
async def app(db: Database, fake_imdb: FakeImdbClient) -> FastAPI:
    """
    🧪 Application instance wired to the in-memory database.
    """
    application = create_app()
    application.state.db = db
    application.state.imdb = fake_imdb
    return application


@pytest.fixture()
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    🌐 Async HTTP client over the ASGI app.
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
