"""
Shared test fixtures and configuration.
"""

import os

# Settings are read at import time; point them at SQLite before tvdom loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tvdom import models  # noqa: F401
from tvdom.client.api_client import ResourceAPIClient
from tvdom.core.security import create_user_token_data, security_manager
from tvdom.database import Base, get_db
from tvdom.main import create_app
from tvdom.models.user import User

TEST_PASSWORD = "correct-horse-9"
BASE_URL = "http://testserver/api/v1"

# bcrypt is slow on purpose; hash the shared password once
_PASSWORD_HASH = security_manager.create_password_hash(TEST_PASSWORD)


@pytest.fixture
def user_password():
    """Plain-text password of every user built by make_user."""
    return TEST_PASSWORD


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    redis_mock = AsyncMock()
    redis_mock.ping = AsyncMock(return_value=True)
    redis_mock.get = AsyncMock(return_value=None)
    redis_mock.set = AsyncMock(return_value=True)
    redis_mock.setex = AsyncMock(return_value=True)
    redis_mock.delete = AsyncMock(return_value=1)
    return redis_mock


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session_factory):
    """Factory inserting committed users whose password is TEST_PASSWORD."""

    async def _make_user(username: str, **overrides) -> User:
        values = {
            "username": username,
            "email": f"{username}@example.com",
            "display_name": username.title(),
            "hashed_password": _PASSWORD_HASH,
        }
        values.update(overrides)
        async with session_factory() as session:
            user = User(**values)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


@pytest.fixture
def app(session_factory):
    """FastAPI app whose requests use the test database."""
    application = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def asgi_transport(app):
    return httpx.ASGITransport(app=app)


@pytest_asyncio.fixture
async def http_client(asgi_transport):
    """Raw httpx client against the app, for status code assertions."""
    async with httpx.AsyncClient(transport=asgi_transport, base_url=BASE_URL) as client:
        yield client


@pytest_asyncio.fixture
async def api(asgi_transport):
    client = ResourceAPIClient(BASE_URL, transport=asgi_transport)
    yield client
    await client.aclose()


@pytest.fixture
def auth_headers():
    """Build a bearer header for a user."""

    def _auth_headers(user: User) -> dict:
        token = security_manager.create_access_token(create_user_token_data(user.id, user.email))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
