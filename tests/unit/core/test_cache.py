"""
Unit tests for the Redis cache manager and the in-process TTL cache.
"""

import json
from unittest.mock import AsyncMock

import pytest

from tvdom.core.cache import CacheInvalidator, CacheManager, TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.mark.unit
@pytest.mark.cache
class TestCacheManager:
    """Test Redis cache manager functionality."""

    @pytest.fixture
    def cache_manager(self, mock_redis):
        """Create cache manager with mocked Redis."""
        cache = CacheManager()
        cache.redis_client = mock_redis
        return cache

    @pytest.mark.asyncio
    async def test_cache_set_get_cycle(self, cache_manager, mock_redis):
        profile = {"id": 1, "username": "alice", "follower_count": 3}
        mock_redis.get = AsyncMock(return_value=json.dumps(profile).encode("utf-8"))

        assert await cache_manager.set("user_profile:1", profile, namespace="users", cache_layer="hot")
        key, ttl, _ = mock_redis.setex.call_args.args
        assert key == "tvdom:users:user_profile:1"
        assert ttl == cache_manager.cache_layers["hot"]

        assert await cache_manager.get("user_profile:1", namespace="users") == profile

    @pytest.mark.asyncio
    async def test_cache_miss(self, cache_manager, mock_redis):
        mock_redis.get = AsyncMock(return_value=None)

        assert await cache_manager.get("nonexistent_key") is None
        mock_redis.get.assert_awaited_once_with("tvdom:nonexistent_key")

    @pytest.mark.asyncio
    async def test_redis_errors_degrade_to_miss(self, cache_manager, mock_redis):
        mock_redis.get = AsyncMock(side_effect=ConnectionError("Redis down"))
        mock_redis.setex = AsyncMock(side_effect=ConnectionError("Redis down"))

        assert await cache_manager.get("key") is None
        assert await cache_manager.set("key", {"a": 1}) is False

    @pytest.mark.asyncio
    async def test_disconnected_cache_is_noop(self):
        cache = CacheManager()

        assert not cache.is_connected
        assert await cache.get("key") is None
        assert await cache.set("key", 1) is False
        assert await cache.delete("key") is False


@pytest.mark.unit
@pytest.mark.cache
class TestCacheInvalidator:
    @pytest.mark.asyncio
    async def test_counter_change_drops_each_profile_once(self):
        cache = AsyncMock(spec=CacheManager)
        invalidator = CacheInvalidator(cache)

        await invalidator.invalidate_users(1, 2, 1)

        deleted = sorted(call.args[0] for call in cache.delete.call_args_list)
        assert deleted == ["user_profile:1", "user_profile:2"]
        for call in cache.delete.call_args_list:
            assert call.kwargs["namespace"] == "users"

    @pytest.mark.asyncio
    async def test_profile_update_drops_profile_key(self):
        cache = AsyncMock(spec=CacheManager)
        invalidator = CacheInvalidator(cache)

        await invalidator.invalidate_for_event("user_update", user_id=7)

        cache.delete.assert_awaited_once_with("user_profile:7", namespace="users")

    @pytest.mark.asyncio
    async def test_unknown_event_is_ignored(self):
        cache = AsyncMock(spec=CacheManager)
        invalidator = CacheInvalidator(cache)

        await invalidator.invalidate_for_event("no_such_event", user_id=1)

        cache.delete.assert_not_called()


@pytest.mark.unit
@pytest.mark.cache
class TestTTLCache:
    def test_value_available_until_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl=30, clock=clock)
        cache.set((1, 2), True)

        clock.advance(29.9)
        assert cache.get((1, 2)) is True

        clock.advance(0.1)
        assert cache.get((1, 2)) is None
        assert (1, 2) not in cache

    def test_false_values_are_cached(self):
        cache = TTLCache(ttl=30, clock=FakeClock())
        cache.set((1, 2), False)

        assert cache.get((1, 2)) is False
        assert (1, 2) in cache

    def test_set_refreshes_timestamp(self):
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(8)
        cache.set("k", 2)
        clock.advance(8)

        assert cache.get("k") == 2

    def test_invalidate(self):
        cache = TTLCache(ttl=30, clock=FakeClock())
        cache.set("k", "v")

        assert cache.invalidate("k") is True
        assert cache.invalidate("k") is False
        assert cache.get("k", "default") == "default"

    def test_len_and_keys_skip_expired(self):
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("old", 1)
        clock.advance(5)
        cache.set("new", 2)
        clock.advance(6)

        assert cache.keys() == ["new"]
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValueError):
            TTLCache(ttl=0)
