"""Test fixtures — a fresh app on an in-memory database for every test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app with create_app(test_settings). The
   settings point at in-memory SQLite, so every test starts from an
   empty database and nothing leaks between tests.
2. ASGITransport doesn't run the lifespan, so the fixture creates the
   tables itself.
3. bcrypt rounds drop to 4 (the minimum) — hashing at the production
   cost would dominate the test run.

There is no auth override: tests register real users and send real
tokens, so the middleware, codec and ownership checks all run.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from taskmaster.config import Settings
from taskmaster.db.engine import init_models
from taskmaster.main import create_app

TEST_JWT_SECRET = "test-secret-key-with-at-least-32-bytes!!"


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
        environment="test",
        log_level="WARNING",
    )


@pytest_asyncio.fixture()
async def app(test_settings):
    app = create_app(test_settings)
    await init_models(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """Session on the same database the app uses."""
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture()
def register_user(client):
    """Register a user through the API; returns the LoginResponse JSON."""

    async def _register(
        name: str = "Alice",
        email: str = "alice@example.com",
        password: str = "secret1",
    ) -> dict:
        r = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _register


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def alice(register_user) -> dict:
    return await register_user()


@pytest_asyncio.fixture()
async def bob(register_user) -> dict:
    return await register_user(name="Bob", email="bob@example.com", password="hunter22")


@pytest.fixture()
def alice_headers(alice) -> dict:
    return bearer(alice["token"])


@pytest.fixture()
def bob_headers(bob) -> dict:
    return bearer(bob["token"])
