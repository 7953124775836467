"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time; configure them before importing the app
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_eventconnect.db")
os.environ.setdefault("OIDC_SIGNING_KEY", "test-signing-key-not-for-production")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from eventconnect.main import app
from eventconnect.db.session import Base, get_session, enable_sqlite_foreign_keys
from eventconnect.core.rate_limit import limiter
from eventconnect.db.models import User, Event
from tests.helpers import make_user, make_event


# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Disable connection pooling for tests
    echo=False,
)
if TEST_DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(test_engine)


# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh schema for each test and hand out a session on it.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory(db_session):
    """Factory bound to the per-test schema, for code that opens its own sessions."""
    return TestSessionLocal


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.
    Overrides the database session dependency.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    """Disable rate limiting for all tests."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest_asyncio.fixture
async def organizer(db_session: AsyncSession) -> User:
    return await make_user(db_session, "organizer", first_name="Olivia", last_name="Organizer")


@pytest_asyncio.fixture
async def attendee(db_session: AsyncSession) -> User:
    return await make_user(db_session, "attendee", first_name="Ada")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "bystander", first_name="Ben")


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, organizer: User) -> Event:
    """A paid event with ten seats, a week out."""
    return await make_event(db_session, organizer)


@pytest_asyncio.fixture
async def free_event(db_session: AsyncSession, organizer: User) -> Event:
    return await make_event(
        db_session, organizer, title="Park Cleanup", category="Community", price="0", capacity=None
    )
