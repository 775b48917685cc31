"""Health check endpoint tests."""

import pytest

from notekeeper import __version__

from .test_middleware import FakeRedis


@pytest.mark.asyncio
async def test_health_without_redis_is_degraded(client):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["redis"] == "unavailable"
    assert data["status"] == "degraded"
    assert data["version"] == __version__


@pytest.mark.asyncio
async def test_health_with_redis_is_healthy(app, client):
    app.state.redis = FakeRedis()
    data = (await client.get("/health")).json()
    assert data["redis"] == "ok"
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_health_needs_no_session(client):
    r = await client.get("/health")
    assert r.status_code == 200
