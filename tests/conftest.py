"""
Shared pytest fixtures for testing the investment API.

Uses an in-memory SQLite database for fast, isolated tests.
"""

import os

# Cheap hashing, no exporters and no email during tests; read at import time
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("OTLP_ENABLED", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from invest_api.database import Base, enforce_foreign_keys, get_session
from invest_api.main import app
from invest_api.models import User
from invest_api.services.security import create_access_token, generate_id, hash_password

# Use in-memory SQLite for tests (fast, isolated)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "Secret123"


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine.

    Creates tables at the start, drops them at the end.
    Each test gets a fresh database.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    enforce_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_session(session_factory):
    """Provide a database session for a test.

    Rolls back the session after each test for isolation.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(session_factory):
    """Provide a FastAPI test client with test database.

    Overrides the get_session dependency to use our test database.
    """

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Helper fixtures for creating test data ---


@pytest_asyncio.fixture
async def make_user(test_session):
    """Factory for accounts inserted straight into the database."""

    async def _make(
        username: str = "alice",
        balance: str = "1000",
        profit: str = "0",
        activated: bool = True,
        admin: bool = False,
        password: str = DEFAULT_PASSWORD,
        activation_key: str | None = None,
        email: str | None = None,
    ) -> User:
        user = User(
            id=generate_id(),
            username=username,
            email=email or f"{username}@example.com",
            phone="+15550001234",
            nationality="Canada",
            fullname=f"{username.title()} Tester",
            password_hash=hash_password(password),
            balance=balance,
            profit=profit,
            is_activated=activated,
            is_admin=admin,
            activation_key=activation_key,
        )
        test_session.add(user)
        await test_session.commit()
        await test_session.refresh(user)
        return user

    return _make


@pytest_asyncio.fixture
async def sample_user(make_user):
    """An activated investor with a balance of 1000."""
    return await make_user()


@pytest_asyncio.fixture
async def admin_user(make_user):
    return await make_user(username="admin", balance="0", admin=True)


def auth_headers(user: User) -> dict[str, str]:
    """Bearer header for a user."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def user_headers(sample_user):
    return auth_headers(sample_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def headers_for():
    """Bearer header builder for users created inside a test."""
    return auth_headers
