"""Redis client for TrustReport.

Redis only fronts read-mostly lookups (report and system configuration);
every call degrades to a cache miss when Redis is unreachable.
"""

import asyncio
from typing import Any, Optional, Union

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from trustreport.core.config import get_settings
from trustreport.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


class RedisClient:
    """Redis client manager with connection pooling."""

    _pool: Optional[ConnectionPool] = None
    _client: Optional[redis.Redis] = None
    _initialized: bool = False
    _lock: asyncio.Lock = asyncio.Lock()

    @classmethod
    async def connect(
        cls,
        url: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """Connect to Redis with connection pooling.

        Args:
            url: Redis connection URL
            **kwargs: Additional connection parameters
        """
        async with cls._lock:
            if cls._initialized:
                logger.warning("Redis already connected")
                return

            try:
                connection_url = url or settings.REDIS_URL

                pool_kwargs = {
                    "max_connections": kwargs.get("max_connections", settings.REDIS_MAX_CONNECTIONS),
                    "decode_responses": True,
                    "encoding": "utf-8",
                    "socket_keepalive": kwargs.get("socket_keepalive", True),
                    "socket_connect_timeout": kwargs.get("socket_connect_timeout", 5),
                    "retry_on_timeout": kwargs.get("retry_on_timeout", True),
                    "retry_on_error": [RedisConnectionError, RedisTimeoutError],
                }

                if settings.REDIS_PASSWORD:
                    pool_kwargs["password"] = settings.REDIS_PASSWORD

                cls._pool = ConnectionPool.from_url(connection_url, **pool_kwargs)
                cls._client = redis.Redis(connection_pool=cls._pool)

                await cls._client.ping()

                cls._initialized = True
                logger.info(
                    "Redis connected successfully",
                    extra={"max_connections": pool_kwargs["max_connections"]}
                )

            except Exception as e:
                cls._pool = None
                cls._client = None
                cls._initialized = False
                logger.error(f"Redis connection failed: {str(e)}", exc_info=True)
                raise

    @classmethod
    async def disconnect(cls) -> None:
        """Disconnect from Redis and release the pool."""
        async with cls._lock:
            if cls._client is None:
                return

            try:
                await cls._client.aclose()
                if cls._pool is not None:
                    await cls._pool.disconnect()
                logger.info("Redis disconnected successfully")
            except RedisError as e:
                logger.error(f"Error disconnecting from Redis: {str(e)}", exc_info=True)
            finally:
                cls._client = None
                cls._pool = None
                cls._initialized = False

    @classmethod
    async def ping(cls) -> bool:
        if not cls._initialized or cls._client is None:
            return False

        try:
            return await cls._client.ping() is True
        except RedisError as e:
            logger.error(f"Redis ping failed: {str(e)}")
            return False

    @classmethod
    def get_client(cls) -> Optional[redis.Redis]:
        return cls._client

    @classmethod
    async def get(cls, key: str) -> Optional[str]:
        """Get value by key.

        Args:
            key: Cache key

        Returns:
            Value or None if not found or Redis is unavailable
        """
        if cls._client is None:
            return None

        try:
            return await cls._client.get(key)
        except RedisError as e:
            logger.error(f"Redis GET error for key {key}: {str(e)}")
            return None

    @classmethod
    async def set(
        cls,
        key: str,
        value: Union[str, int, float],
        ttl: Optional[int] = None,
    ) -> bool:
        """Set key-value pair with optional TTL.

        Args:
            key: Cache key
            value: Value to store
            ttl: Time to live in seconds

        Returns:
            bool: Success status
        """
        if cls._client is None:
            return False

        try:
            result = await cls._client.set(key, value, ex=ttl or None)
            return bool(result)
        except RedisError as e:
            logger.error(f"Redis SET error for key {key}: {str(e)}")
            return False

    @classmethod
    async def delete(cls, *keys: str) -> int:
        if cls._client is None or not keys:
            return 0

        try:
            return await cls._client.delete(*keys)
        except RedisError as e:
            logger.error(f"Redis DELETE error: {str(e)}")
            return 0


__all__ = ["RedisClient"]
