"""
Fixtures for service tests running against the in-memory database.
"""

from unittest.mock import AsyncMock

import pytest

from tvdom.core.cache import CacheInvalidator, CacheManager
from tvdom.models.user import User


@pytest.fixture
def invalidator():
    mock_invalidator = AsyncMock(spec=CacheInvalidator)
    mock_invalidator.cache = AsyncMock(spec=CacheManager)
    mock_invalidator.cache.get.return_value = None
    return mock_invalidator


@pytest.fixture
def reload_user(session_factory):
    """Read a user back through a fresh session; counters change via bulk UPDATE."""

    async def _reload(user_id: int) -> User:
        async with session_factory() as session:
            return await session.get(User, user_id)

    return _reload
