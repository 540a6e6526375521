"""
Test configuration and fixtures for the GroupChat backend tests.
"""
import os

# Set test environment BEFORE any imports
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("SESSION_SECRET", "test-session-secret-key-for-testing-only")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from groupchat.config import Settings
from groupchat.context import AppContext
from groupchat.database import init_models
from groupchat.main import create_app
from groupchat.services import session_store


class FakeClock:
    """Deterministic millisecond clock; every reading advances by ``step``."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings_overrides() -> dict:
    """Override in a test module to tweak settings."""
    return {}


@pytest.fixture
def settings(tmp_path, settings_overrides) -> Settings:
    # File database: concurrent sessions need separate connections
    values = {
        "environment": "test",
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "session_secret": "test-session-secret-key-for-testing-only",
        "log_level": "WARNING",
    }
    values.update(settings_overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def app(settings, clock):
    application = create_app(settings)
    application.state.ctx.clock = clock
    await init_models(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest.fixture
def ctx(app) -> AppContext:
    return app.state.ctx


@pytest_asyncio.fixture
async def db(app):
    async with app.state.sessionmaker() as session:
        yield session


@pytest.fixture
def new_session(app):
    """Factory for extra database sessions, one per concurrent caller."""
    return app.state.sessionmaker


@pytest_asyncio.fixture
async def async_client(app):
    transport = ASGITransport(app=app, client=("203.0.113.7", 50000))
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def make_user(app, ctx):
    """Register a user in its own database session and return its id."""
    async def _make(name="U1", surname="A", password="wow"):
        async with app.state.sessionmaker() as session:
            return await session_store.register(session, ctx, name, surname, password)
    return _make


@pytest.fixture
def login_user(app, ctx):
    """Log a user in from a device in its own database session."""
    async def _login(user_id, password="wow", ip="10.0.0.1", device="laptop"):
        async with app.state.sessionmaker() as session:
            return await session_store.login(session, ctx, user_id, password, ip, device)
    return _login
