"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time, so the environment must be ready first
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_eventplanner.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
import fakeredis
from typing import AsyncGenerator
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.session import Base, get_session, configure_sqlite
from app.core.security import hash_password, create_access_token, identity_claims
from app.core.rate_limit import limiter
from app.cache.redis_client import cache
from app.db.models import User, RoleEnum, Event, EventStatusEnum, RSVP, RSVPStatusEnum


PASSWORD = "Test123!@#"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Disable connection pooling for tests
    echo=False,
)
if TEST_DATABASE_URL.startswith("sqlite"):
    configure_sqlite(test_engine)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    A database session on freshly created tables.
    Tables are dropped again after the test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client bound to the app, sharing the test's database session.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Back the cache and revocation list with an in-process fake Redis."""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    monkeypatch.setattr(cache, "_client", client)
    return client


@pytest.fixture(autouse=True)
def mock_password_hashing(monkeypatch):
    """
    Replace bcrypt with a cheap reversible scheme so tests stay fast.
    """
    class MockPasswordContext:
        def hash(self, password: str) -> str:
            return f"$2b$12$mockedhash{password}"

        def verify(self, plain: str, hashed: str) -> bool:
            return hashed == f"$2b$12$mockedhash{plain}"

    from app.core import security
    monkeypatch.setattr(security, "pwd_context", MockPasswordContext())


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory creating users directly in the database."""
    async def _make_user(username: str, role: RoleEnum = RoleEnum.user, **kwargs) -> User:
        user = User(
            username=username,
            email=kwargs.pop("email", f"{username}@example.com"),
            password_hash=hash_password(kwargs.pop("password", PASSWORD)),
            first_name=kwargs.pop("first_name", username.title()),
            last_name=kwargs.pop("last_name", "Tester"),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_event(db_session: AsyncSession):
    """Factory creating events directly in the database, one week out by default."""
    async def _make_event(creator: User, **kwargs) -> Event:
        event = Event(
            title=kwargs.pop("title", "Test Event"),
            description=kwargs.pop("description", "A test event description"),
            location=kwargs.pop("location", "Test Location"),
            event_date=kwargs.pop("event_date", datetime.now(timezone.utc) + timedelta(days=7)),
            max_attendees=kwargs.pop("max_attendees", None),
            status=kwargs.pop("status", EventStatusEnum.active),
            created_by=creator.id,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event
    return _make_event


def token_for(user: User) -> str:
    return create_access_token(identity_claims(user))


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def headers_for():
    """Bearer headers for any user created during a test."""
    return auth_headers


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    return await make_user("testuser")


@pytest_asyncio.fixture
async def other_user(make_user) -> User:
    return await make_user("otheruser")


@pytest_asyncio.fixture
async def test_admin(make_user) -> User:
    return await make_user("admin", role=RoleEnum.admin)


@pytest.fixture
def user_token(test_user: User) -> str:
    return token_for(test_user)


@pytest.fixture
def other_token(other_user: User) -> str:
    return token_for(other_user)


@pytest.fixture
def admin_token(test_admin: User) -> str:
    return token_for(test_admin)


@pytest_asyncio.fixture
async def test_event(make_event, test_user: User) -> Event:
    """An active event a week out, created by test_user, capped at 50."""
    return await make_event(test_user, max_attendees=50)


@pytest_asyncio.fixture
async def past_event(make_event, test_user: User) -> Event:
    return await make_event(
        test_user,
        title="Past Event",
        event_date=datetime.now(timezone.utc) - timedelta(days=1),
    )


@pytest_asyncio.fixture
async def test_rsvp(db_session: AsyncSession, other_user: User, test_event: Event) -> RSVP:
    """other_user attending test_event."""
    rsvp = RSVP(
        user_id=other_user.id,
        event_id=test_event.id,
        status=RSVPStatusEnum.attending,
        notes="See you there",
        rsvp_date=datetime.now(timezone.utc),
    )
    db_session.add(rsvp)
    await db_session.commit()
    await db_session.refresh(rsvp)
    return rsvp


@pytest.fixture
def session_factory():
    """Independent sessions on the test database, one per simulated request."""
    return TestSessionLocal
