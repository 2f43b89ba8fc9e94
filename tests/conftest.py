"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- Test database engine and sessions (PostgreSQL via DATABASE_TEST_URL,
  otherwise a throwaway SQLite file)
- HTTP client for API and page testing
- Common identity records (users, sessions)
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import blogauth.models  # noqa: F401  (registers tables on Base.metadata)
from blogauth.config import settings
from blogauth.database import Base, build_engine, get_db
from blogauth.identity.cookies import sign_token
from blogauth.identity.passwords import hash_password
from blogauth.main import app
from blogauth.models import Account, Session, User

TEST_PASSWORD = "Password123"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create test database engine with automatic schema management.

    Creates all tables before tests, drops them after.
    Uses DATABASE_TEST_URL env var if set, otherwise a SQLite file per test.
    """
    db_url = os.environ.get("DATABASE_TEST_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"

    engine = build_engine(db_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    """Create test database session with automatic rollback.

    Each test gets a fresh session that rolls back on completion,
    ensuring test isolation.
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(session_maker):
    """Async test client for FastAPI app with test database.

    Overrides the app's get_db dependency to use the test database,
    ensuring API tests use the same database as other test fixtures.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def cookie_header():
    """Build a Cookie header carrying a signed session token."""

    def build(token: str) -> dict[str, str]:
        return {"cookie": f"{settings.session_cookie_name}={sign_token(token, settings.auth_secret)}"}

    return build


# =============================================================================
# Identity Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def registered_user(session_maker) -> User:
    """A committed user with a hashed credential account."""
    async with session_maker() as session:
        user = User(name="Test User", email="test-user@example.com")
        session.add(user)
        await session.flush()
        session.add(
            Account(
                accountId=user.id,
                providerId="credential",
                userId=user.id,
                password=hash_password(TEST_PASSWORD),
            )
        )
        await session.commit()
    return user


@pytest_asyncio.fixture
async def active_session(session_maker, registered_user) -> Session:
    """A committed remembered session for registered_user, issued two days ago."""
    issued = datetime.now(timezone.utc) - timedelta(days=2)
    async with session_maker() as session:
        auth_session = Session(
            token="valid-test-token",
            userId=registered_user.id,
            expiresAt=issued + timedelta(seconds=settings.session_expires_in),
            createdAt=issued,
            updatedAt=issued,
        )
        session.add(auth_session)
        await session.commit()
    return auth_session


@pytest_asyncio.fixture
async def expired_session(session_maker, registered_user) -> Session:
    """A committed session whose expiry has passed."""
    async with session_maker() as session:
        auth_session = Session(
            token="expired-test-token",
            userId=registered_user.id,
            expiresAt=datetime.now(timezone.utc) - timedelta(hours=1),
        )
        session.add(auth_session)
        await session.commit()
    return auth_session
