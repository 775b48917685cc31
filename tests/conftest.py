"""Test fixtures — a fresh app and in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app via create_app(settings) with an
   in-memory SQLite URL (aiosqlite driver, StaticPool → one shared
   connection), and creates the schema up front.
2. Requests go through httpx.AsyncClient over ASGITransport — no server,
   but the real middleware, dependencies and cookie handling.
3. Each simulated user gets their own client, so each has its own cookie
   jar and session.

When the test ends the engine is disposed and the database is gone, so
tests never see each other's data.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from notekeeper.config import Settings
from notekeeper.db.engine import create_schema
from notekeeper.main import create_app

TEST_SETTINGS = {
    "database_url": "sqlite+aiosqlite:///:memory:",
    "jwt_secret": "test-secret-that-is-long-enough-for-hs256-keys",
    "bcrypt_rounds": 4,
    "environment": "test",
    "log_level": "WARNING",
}

PASSWORD = "password_123"


def make_settings(**overrides) -> Settings:
    return Settings(**{**TEST_SETTINGS, **overrides})


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture()
async def app(settings):
    app = create_app(settings)
    await create_schema(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def db_session(app):
    """Direct session on the test database (for setup the API can't do)."""
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def make_client(app):
    """Factory for independent clients — one per simulated browser."""
    clients = []

    async def _make() -> AsyncClient:
        c = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(c)
        return c

    yield _make

    for c in clients:
        await c.aclose()


@pytest_asyncio.fixture()
async def client(make_client):
    """An anonymous client."""
    return await make_client()


@pytest_asyncio.fixture()
async def signup(make_client):
    """Register an account on a fresh client. Returns (client, user dict)."""

    async def _signup(role: str = "user", name: str = "Test User", email: str | None = None):
        c = await make_client()
        email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        r = await c.post(
            "/auth/signup",
            json={"name": name, "email": email, "password": PASSWORD, "role": role},
        )
        assert r.status_code == 201, r.text
        return c, r.json()["user"]

    return _signup


@pytest_asyncio.fixture()
async def alice(signup):
    return await signup(name="Alice")


@pytest_asyncio.fixture()
async def bob(signup):
    return await signup(name="Bob")


@pytest_asyncio.fixture()
async def admin(signup):
    return await signup(role="admin", name="Root")
