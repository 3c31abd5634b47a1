"""
Storage manager that provides unified access to the storage backends.
"""

import logging
from typing import Dict, Optional

from ...config import ConfigManager
from .base import StorageError
from .memory import MemoryPoolStorage
from .postgres import PostgresPoolStorage
from .redis import RedisStorage

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Unified storage manager for pool data.

    Owns the pool store (PostgreSQL or in-memory) and the optional Redis
    cache, managing their connections and lifecycle.

    Usage:
        async with StorageManager() as storage:
            pools = await storage.pools.find_all(dex="sailor")
            if storage.cache:
                await storage.cache.invalidate_pools()
    """

    def __init__(self, config: Optional[ConfigManager] = None):
        """
        Initialize storage manager.

        Args:
            config: Configuration manager instance (creates default if None)
        """
        self.config = config or ConfigManager()
        database = self.config.database

        if database.STORAGE_BACKEND == "memory":
            self.pools = MemoryPoolStorage()
        else:
            self.pools = PostgresPoolStorage(database.get_postgres_config())

        self.cache: Optional[RedisStorage] = (
            RedisStorage(database.get_redis_config()) if database.ENABLE_CACHE else None
        )
        self.is_initialized = False

    async def initialize(self) -> None:
        """
        Connect the backends.

        The pool store is required; a Redis failure only disables caching.
        """
        if self.is_initialized:
            logger.warning("Storage manager already initialized")
            return

        try:
            await self.pools.connect()
            logger.info(f"Pool storage initialized ({self.pools.__class__.__name__})")
        except Exception as e:
            raise StorageError(f"Pool storage initialization failed: {e}")

        if self.cache is not None:
            try:
                await self.cache.connect()
                logger.info("Redis cache initialized successfully")
            except Exception as e:
                logger.warning(f"Redis initialization failed, continuing without cache: {e}")
                self.cache = None

        self.is_initialized = True

    async def shutdown(self) -> None:
        """Close all backend connections."""
        if not self.is_initialized:
            return

        try:
            await self.pools.disconnect()
        except Exception as e:
            logger.error(f"Error disconnecting pool storage: {e}")

        if self.cache is not None:
            try:
                await self.cache.disconnect()
            except Exception as e:
                logger.error(f"Error disconnecting Redis: {e}")

        self.is_initialized = False
        logger.info("Storage manager shutdown complete")

    async def health_check(self) -> Dict[str, bool]:
        """Check health of all backends."""
        health = {"pools": await self.pools.health_check()}
        if self.cache is not None:
            health["redis"] = await self.cache.health_check()
        return health

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
