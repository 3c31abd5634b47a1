"""
Read side for stored pools: listings (cache-aside) and history lookups.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from .models import utcnow
from .storage.base import PoolNotFoundError, PoolStorageInterface
from .storage.redis import RedisStorage

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = timedelta(days=7)


class PoolQueryService:
    """Serve pool snapshots and history to the CLI or an HTTP layer."""

    def __init__(
        self,
        storage: PoolStorageInterface,
        cache: Optional[RedisStorage] = None,
        cache_ttl: int = 30,
    ):
        self.storage = storage
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    async def get_pools(
        self, dex: Optional[str] = None, is_active: Optional[bool] = None
    ) -> List[Dict[str, Any]]:
        """Pool snapshots, highest TVL first; cache errors fall back to storage."""
        if self.cache is not None:
            try:
                cached = await self.cache.get_pools(dex, is_active)
                if cached is not None:
                    return cached
            except Exception as e:
                self.logger.warning(f"Pool cache read failed: {e}")

        pools = [pool.snapshot() for pool in await self.storage.find_all(dex=dex, is_active=is_active)]

        if self.cache is not None:
            try:
                await self.cache.set_pools(pools, dex, is_active, ttl=self.cache_ttl)
            except Exception as e:
                self.logger.warning(f"Pool cache write failed: {e}")

        return pools

    async def get_pool_history(
        self,
        pool_id: str,
        from_time: Optional[datetime] = None,
        to_time: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        History of one pool, oldest first.

        Defaults to the last seven days.

        Raises:
            PoolNotFoundError: If no pool has ``pool_id``
        """
        pool = await self.storage.find_by_id(pool_id)
        if pool is None:
            raise PoolNotFoundError(pool_id)

        to_time = to_time or utcnow()
        from_time = from_time or (to_time - DEFAULT_HISTORY_WINDOW)
        points = await self.storage.get_historical_data(pool_id, from_time, to_time)
        return [point.to_dict() for point in points]
