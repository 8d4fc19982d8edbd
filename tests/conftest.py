"""Test fixtures — a fresh app and in-memory database per test.

Learn: Each test builds its own app through create_app() with test
settings: in-memory SQLite (one shared connection via StaticPool), a
cheap bcrypt cost and a page size of 2. httpx's ASGITransport doesn't run
the lifespan, so Redis is never contacted and the notifier stays a no-op.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from postfeed.config import Settings
from postfeed.db.engine import create_schema
from postfeed.main import create_app


@pytest.fixture()
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret="test-secret-do-not-use-0123456789abcdef",
        bcrypt_rounds=4,
        posts_per_page=2,
        environment="test",
    )


@pytest_asyncio.fixture()
async def app(settings):
    app = create_app(settings)
    await create_schema(app.state.engine)
    try:
        yield app
    finally:
        await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """Direct session for repository-level tests."""
    async with app.state.session_factory() as session:
        yield session


async def signup_and_login(client, name="Ann", password="pass1", email=None):
    """Register a user and return (user_id, auth headers)."""
    email = email or f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com"
    r = await client.post(
        "/api/v1/auth/signup",
        json={"email": email, "name": name, "password": password},
    )
    assert r.status_code == 201, r.text
    r = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    return body["user_id"], {"Authorization": f"Bearer {body['access_token']}"}


@pytest_asyncio.fixture()
async def ann(client):
    return await signup_and_login(client, name="Ann")


@pytest_asyncio.fixture()
async def bob(client):
    return await signup_and_login(client, name="Bob")


@pytest.fixture()
def register(client):
    """Factory fixture: `user_id, headers = await register("Cid")`."""
    async def _register(name="Cid", password="pass1", email=None):
        return await signup_and_login(client, name=name, password=password, email=email)
    return _register
