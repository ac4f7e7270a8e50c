"""Cache manager for TrustReport.

High-level JSON cache over Redis used for configuration lookups that are
read on every report request.
"""

import json
from typing import Any, Awaitable, Callable, Optional

from trustreport.core.config import get_settings
from trustreport.database.redis_client import RedisClient
from trustreport.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class CacheManager:
    """High-level cache management interface."""

    def __init__(self, redis_client: Optional[RedisClient] = None):
        """Initialize cache manager.

        Args:
            redis_client: Optional Redis client instance
        """
        self.redis = redis_client or RedisClient
        self.enabled = settings.ENABLE_CACHE

    async def get(self, key: str, default: Any = None) -> Any:
        """Get value from cache.

        Args:
            key: Cache key
            default: Default value if key not found

        Returns:
            Cached value or default
        """
        if not self.enabled:
            return default

        value = await self.redis.get(key)
        if value is None:
            return default

        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache, serializing to JSON.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful
        """
        if not self.enabled:
            return True

        try:
            serialized = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Cache set error for key {key}: {str(e)}")
            return False

        return await self.redis.set(key, serialized, ttl=ttl)

    async def delete(self, *keys: str) -> int:
        if not self.enabled or not keys:
            return 0
        return await self.redis.delete(*keys)

    async def get_or_set(
        self,
        key: str,
        func: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
        force_refresh: bool = False
    ) -> Any:
        """Get value from cache or compute and cache it.

        ``None`` results are not cached so that a configuration created later
        becomes visible without waiting for the TTL.

        Args:
            key: Cache key
            func: Async function to compute value
            ttl: Time to live in seconds
            force_refresh: Force recompute value

        Returns:
            Cached or computed value
        """
        if not self.enabled:
            return await func()

        if not force_refresh:
            cached = await self.get(key)
            if cached is not None:
                logger.debug(f"Cache hit for key: {key}")
                return cached

        logger.debug(f"Cache miss for key: {key}")

        value = await func()
        if value is not None:
            await self.set(key, value, ttl=ttl)

        return value


__all__ = ["CacheManager"]
