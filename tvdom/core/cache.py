"""
Caching layer.

This provides:
1. CacheManager - Redis cache for server-side read paths (user profiles)
2. CacheInvalidator - event based invalidation of related keys
3. TTLCache - in-process value-with-expiry cache used by the client stores
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

import redis.asyncio as redis

from tvdom.config import settings

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class CacheManager:
    """
    Redis cache manager for profile reads.

    Every operation degrades to a miss / no-op when Redis is not connected,
    so callers never need to special-case a missing cache.
    """

    def __init__(self, redis_url: Optional[str] = None):
        self.redis_client = None
        self._connection_pool = None
        self.redis_url = redis_url or settings.redis_url

        self.default_ttl = settings.redis_cache_ttl
        self.key_prefix = "tvdom:"

        # TTL per cache layer in seconds
        self.cache_layers = {"hot": 300}

    async def connect(self):
        """Establish the Redis connection pool."""
        try:
            connection_kwargs = {
                "max_connections": 20,
                "retry_on_timeout": True,
                "decode_responses": False,
                "socket_keepalive": True,
            }
            if settings.redis_ssl:
                connection_kwargs["ssl"] = True
                connection_kwargs["ssl_cert_reqs"] = None

            self._connection_pool = redis.ConnectionPool.from_url(
                self.redis_url, **connection_kwargs
            )
            self.redis_client = redis.Redis(connection_pool=self._connection_pool)

            await self.redis_client.ping()
            logger.info("Redis connection established successfully")

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.redis_client = None
            raise ConnectionError(f"Redis connection failed: {e}")

    async def disconnect(self):
        """Clean up Redis connections."""
        if self.redis_client:
            await self.redis_client.close()
        if self._connection_pool:
            await self._connection_pool.disconnect()
        self.redis_client = None

    @property
    def is_connected(self) -> bool:
        return self.redis_client is not None

    def _generate_key(self, key: str, namespace: str = "") -> str:
        if namespace:
            return f"{self.key_prefix}{namespace}:{key}"
        return f"{self.key_prefix}{key}"

    def _serialize_value(self, value: Any) -> bytes:
        return json.dumps(value, default=str).encode("utf-8")

    def _deserialize_value(self, value: bytes) -> Any:
        try:
            return json.loads(value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to deserialize cache value: {e}")
            return None

    async def get(self, key: str, namespace: str = "") -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found
        """
        if not self.redis_client:
            return None

        try:
            value = await self.redis_client.get(self._generate_key(key, namespace))

            if value is not None:
                return self._deserialize_value(value)
            return None

        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        namespace: str = "",
        cache_layer: str = "hot",
    ) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Time to live in seconds (overrides cache_layer)
            namespace: Optional namespace
            cache_layer: Cache layer determining TTL
        """
        if not self.redis_client:
            return False

        try:
            if ttl is None:
                ttl = self.cache_layers.get(cache_layer, self.default_ttl)

            await self.redis_client.setex(
                self._generate_key(key, namespace), ttl, self._serialize_value(value)
            )
            return True

        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    async def delete(self, key: str, namespace: str = "") -> bool:
        if not self.redis_client:
            return False

        try:
            result = await self.redis_client.delete(self._generate_key(key, namespace))
            return result > 0

        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False


class CacheInvalidator:
    """
    Invalidates related cache entries when data changes.
    """

    def __init__(self, cache_manager: CacheManager):
        self.cache = cache_manager

        self.invalidation_patterns = {
            "user_update": ["user_profile:{user_id}"],
            "user_counters": ["user_profile:{user_id}"],
            "user_delete": ["user_profile:{user_id}"],
        }

    async def invalidate_for_event(self, event_type: str, **event_data):
        """
        Invalidate cache entries for a data change event.

        Args:
            event_type: user_update, user_counters or user_delete
            **event_data: Values used to format the key patterns
        """
        patterns = self.invalidation_patterns.get(event_type, [])

        invalidation_tasks = []
        for pattern in patterns:
            try:
                key = pattern.format(**event_data)
                invalidation_tasks.append(self.cache.delete(key, namespace="users"))
            except KeyError as e:
                logger.warning(f"Missing event data for pattern {pattern}: {e}")

        if invalidation_tasks:
            await asyncio.gather(*invalidation_tasks, return_exceptions=True)
            logger.debug(f"Cache invalidation completed for event: {event_type}")

    async def invalidate_users(self, *user_ids: int):
        """Drop cached profiles for every user whose counters changed."""
        await asyncio.gather(
            *(
                self.invalidate_for_event("user_counters", user_id=user_id)
                for user_id in set(user_ids)
            )
        )


class TTLCache(Generic[K, V]):
    """
    In-process cache whose entries expire a fixed time after they are set.

    An expired entry is treated as absent and dropped on access.

    Usage:
        cache = TTLCache(ttl=30)
        cache.set((follower_id, following_id), True)
        cache.get((follower_id, following_id))  # True for 30 seconds
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[K, Tuple[V, float]] = {}

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return default

        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return default
        return value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = (value, self._clock())

    def invalidate(self, key: K) -> bool:
        """Remove one entry. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[K]:
        """Keys of entries that have not expired."""
        now = self._clock()
        return [key for key, (_, stored_at) in self._entries.items() if now - stored_at < self.ttl]

    def __contains__(self, key: K) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self.keys())


_MISSING: Any = object()


# Initialize global instances
cache_manager = CacheManager()
cache_invalidator = CacheInvalidator(cache_manager)


async def init_cache():
    """Initialize cache connection."""
    await cache_manager.connect()
    logger.info("Cache system initialized successfully")


async def cleanup_cache():
    """Cleanup cache connections."""
    await cache_manager.disconnect()
    logger.info("Cache system cleaned up")
