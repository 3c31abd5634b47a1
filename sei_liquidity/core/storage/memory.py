"""
In-process pool storage.

Same upsert semantics as PostgresPoolStorage; used when no database is
configured (``STORAGE_BACKEND=memory``) and in tests.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from ..models import Pool, PoolHistoryPoint
from .base import PoolStorageInterface, StorageBase

logger = logging.getLogger(__name__)


def _tvl_sort_key(pool: Pool):
    try:
        return (pool.tvl is not None, Decimal(pool.tvl) if pool.tvl is not None else Decimal(0))
    except InvalidOperation:
        return (False, Decimal(0))


class MemoryPoolStorage(StorageBase, PoolStorageInterface):
    """Pools keyed by lower-cased address, history as per-pool lists."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})
        self._pools: Dict[str, Pool] = {}
        self._history: Dict[str, List[PoolHistoryPoint]] = {}
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        self.is_connected = True

    async def disconnect(self) -> None:
        self.is_connected = False

    async def health_check(self) -> bool:
        return True

    async def save(self, pool: Pool) -> Pool:
        key = pool.pool_address.lower()
        async with self._lock:
            existing = self._pools.get(key)
            if existing is not None:
                pool = replace(
                    existing,
                    tvl=pool.tvl,
                    volume_24h=pool.volume_24h,
                    apr=pool.apr,
                    metadata=dict(pool.metadata),
                    is_active=pool.is_active,
                    updated_at=pool.updated_at,
                )
            self._pools[key] = pool
        return pool

    async def find_by_address(self, address: str) -> Optional[Pool]:
        return self._pools.get(address.lower())

    async def find_by_id(self, pool_id: str) -> Optional[Pool]:
        for pool in self._pools.values():
            if pool.id == pool_id:
                return pool
        return None

    async def find_all(self, dex: Optional[str] = None, is_active: Optional[bool] = None) -> List[Pool]:
        pools = [
            pool
            for pool in self._pools.values()
            if (dex is None or pool.dex == dex) and (is_active is None or pool.is_active == is_active)
        ]
        return sorted(pools, key=_tvl_sort_key, reverse=True)

    async def save_historical_data(self, point: PoolHistoryPoint) -> None:
        async with self._lock:
            self._history.setdefault(point.pool_id, []).append(point)

    async def get_historical_data(
        self, pool_id: str, from_time: datetime, to_time: datetime
    ) -> List[PoolHistoryPoint]:
        points = [
            point
            for point in self._history.get(pool_id, [])
            if from_time <= point.timestamp <= to_time
        ]
        return sorted(points, key=lambda point: point.timestamp)
