"""Error mapping and health endpoint tests."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine

from postfeed.db.engine import get_db
from postfeed.realtime.pubsub import PostNotifier


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    data = r.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["redis"] == "disabled"
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_unknown_route_is_not_found(client):
    r = await client.get("/api/v1/nope")
    assert r.status_code == 404
    assert r.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_database_failure_is_internal(app):
    """Collaborator failures become a generic 500 with no detail leaked."""

    async def broken_db():
        raise OperationalError("SELECT 1", {}, Exception("connection refused on 10.0.0.5"))
        yield  # pragma: no cover

    app.dependency_overrides[get_db] = broken_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/api/v1/feed/posts")
    app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json() == {"kind": "internal", "message": "Internal server error"}
    assert "10.0.0.5" not in r.text


class _UnreachableRedis:
    async def ping(self):
        raise ConnectionError("Error 111 connecting to 10.0.0.7:6379")

    async def aclose(self):
        pass


@pytest.mark.asyncio
async def test_health_hides_dependency_errors(app, client):
    healthy_engine = app.state.engine
    app.state.engine = create_async_engine(
        "sqlite+aiosqlite:////nonexistent-dir-10-0-0-9/postfeed.db"
    )
    app.state.notifier = PostNotifier(_UnreachableRedis())
    try:
        r = await client.get("/api/v1/health")
    finally:
        await app.state.engine.dispose()
        app.state.engine = healthy_engine

    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "degraded"
    assert data["database"] == "error"
    assert data["redis"] == "error"
    assert "10.0.0.7" not in r.text
    assert "nonexistent-dir" not in r.text


@pytest.mark.asyncio
async def test_method_not_allowed_keeps_taxonomy(client):
    r = await client.put("/api/v1/health")
    assert r.status_code == 405
    assert r.json()["kind"] == "not_found"
