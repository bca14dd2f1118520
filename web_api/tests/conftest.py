# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

The app is driven through httpx's ASGI transport inside the test's own
event loop, so the in-memory database from the root conftest is shared.
The lifespan does not run: the per-process services are installed on
app.state here instead.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from core.notifications.dispatcher import FanoutService
from core.notifications.presence import PresenceRouter
from web_api.auth import create_jwt


@pytest.fixture
def app():
    from main import app

    return app


@pytest.fixture
def presence(app):
    presence = PresenceRouter()
    app.state.presence = presence
    return presence


@pytest.fixture
def push_sender():
    return AsyncMock(return_value=True)


@pytest_asyncio.fixture
async def client(app, db_engine, presence, push_sender, notifier):
    app.state.fanout = FanoutService(presence, push_sender=push_sender)
    app.state.notifier = notifier
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a seeded user row."""

    def _headers(user: dict) -> dict:
        return {"Authorization": f"Bearer {create_jwt(user['user_id'])}"}

    return _headers
