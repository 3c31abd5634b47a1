"""
Redis cache for pool listings.
"""

import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
import ujson
from redis.asyncio import Redis

from .base import CacheInterface, ConnectionError, DataError, StorageBase

logger = logging.getLogger(__name__)

POOLS_KEY_PREFIX = "pools"


def pools_cache_key(dex: Optional[str] = None, is_active: Optional[bool] = None) -> str:
    """Cache key for one ``find_all`` filter combination."""
    active = "any" if is_active is None else ("active" if is_active else "inactive")
    return f"{POOLS_KEY_PREFIX}:{dex or 'all'}:{active}"


class RedisStorage(StorageBase, CacheInterface):
    """
    Redis storage implementation for caching.

    Features:
    - Key-value caching with TTL support
    - JSON serialization for complex objects
    - Pool listing helpers keyed by filter
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize Redis storage.

        Args:
            config: Configuration with keys:
                - url: Redis URL (default: redis://localhost:6379/0)
                - decode_responses: Whether to decode responses (default: True)
                - socket_timeout: Socket timeout in seconds (default: 5)
                - default_ttl: TTL applied when ``set`` gets none (optional)
        """
        super().__init__(config)
        self.client: Optional[Redis] = None
        self.default_ttl: Optional[int] = config.get("default_ttl")

    async def connect(self) -> None:
        """Establish connection to Redis."""
        try:
            self.client = redis.from_url(
                self.config.get("url", "redis://localhost:6379/0"),
                decode_responses=self.config.get("decode_responses", True),
                socket_timeout=self.config.get("socket_timeout", 5),
            )

            # Test connection
            await self.client.ping()

            self.is_connected = True
            logger.info("Redis connection established")

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise ConnectionError(f"Redis connection failed: {e}")

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None

        self.is_connected = False
        logger.info("Redis connection closed")

    async def health_check(self) -> bool:
        """Check Redis connection health."""
        if not self.client:
            return False

        try:
            response = await self.client.ping()
            return response is True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    def _require_client(self) -> Redis:
        if not self.client:
            raise ConnectionError("Not connected to Redis")
        return self.client

    # Cache Interface Implementation

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set a cache value with optional TTL.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized if not string)
            ttl: Time-to-live in seconds (falls back to ``default_ttl``)

        Returns:
            bool: True if successful
        """
        client = self._require_client()
        ttl = ttl or self.default_ttl

        try:
            if not isinstance(value, str):
                value = ujson.dumps(value)

            if ttl:
                result = await client.setex(key, ttl, value)
            else:
                result = await client.set(key, value)

            return bool(result)

        except Exception as e:
            logger.error(f"Failed to set cache key {key}: {e}")
            raise DataError(f"Cache set failed: {e}")

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        client = self._require_client()

        try:
            value = await client.get(key)
        except Exception as e:
            logger.error(f"Failed to get cache key {key}: {e}")
            raise DataError(f"Cache get failed: {e}")

        if value is None:
            return None

        try:
            return ujson.loads(value)
        except (ValueError, TypeError):
            return value

    async def delete(self, key: str) -> bool:
        """Delete a cached value; True if the key existed."""
        client = self._require_client()

        try:
            result = await client.delete(key)
            return result > 0
        except Exception as e:
            logger.error(f"Failed to delete cache key {key}: {e}")
            raise DataError(f"Cache delete failed: {e}")

    async def exists(self, key: str) -> bool:
        """Check if a key exists in cache."""
        client = self._require_client()

        try:
            result = await client.exists(key)
            return result > 0
        except Exception as e:
            logger.error(f"Failed to check key existence {key}: {e}")
            raise DataError(f"Cache exists check failed: {e}")

    # Pool-specific methods

    async def set_pools(
        self,
        pools: List[Dict[str, Any]],
        dex: Optional[str] = None,
        is_active: Optional[bool] = None,
        ttl: Optional[int] = None,
    ) -> bool:
        """Cache a pool listing for one filter combination."""
        return await self.set(pools_cache_key(dex, is_active), pools, ttl)

    async def get_pools(
        self, dex: Optional[str] = None, is_active: Optional[bool] = None
    ) -> Optional[List[Dict[str, Any]]]:
        """Get a cached pool listing, or None if not cached."""
        return await self.get(pools_cache_key(dex, is_active))

    async def invalidate_pools(self) -> int:
        """Drop every cached pool listing; returns the number of keys removed."""
        client = self._require_client()

        try:
            keys = [key async for key in client.scan_iter(match=f"{POOLS_KEY_PREFIX}:*")]
            if not keys:
                return 0
            return await client.delete(*keys)
        except Exception as e:
            logger.error(f"Failed to invalidate pool cache: {e}")
            raise DataError(f"Cache invalidation failed: {e}")
