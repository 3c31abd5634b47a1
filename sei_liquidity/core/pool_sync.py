"""
Pool synchronization: DEX API pools -> pool storage.

Each adapter is fetched in turn and every returned pool is upserted by
address. Per-pool failures are logged and counted; they never abort the pass.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from ..fetchers.base import BaseDexFetcher
from .models import Pool, PoolData
from .storage.base import PoolStorageInterface
from .storage.redis import RedisStorage

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one synchronization pass."""

    synced: int = 0
    errors: int = 0
    created: int = 0
    updated: int = 0
    by_dex: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "synced": self.synced,
            "errors": self.errors,
            "created": self.created,
            "updated": self.updated,
            "byDex": self.by_dex,
        }


def pool_metadata(pool_data: PoolData) -> Dict[str, Any]:
    """Reserve and token details kept alongside the pool's metrics."""
    return {
        "reserve0": pool_data.reserve0,
        "reserve1": pool_data.reserve1,
        "totalSupply": pool_data.total_supply,
        "token0Decimals": pool_data.token0.decimals,
        "token1Decimals": pool_data.token1.decimals,
        "price": pool_data.price,
    }


class PoolSynchronizer:
    """
    Upsert DEX pools into storage.

    Sync runs as a single periodic job; concurrent syncs of the same pool are
    not coordinated and the last write wins.
    """

    def __init__(
        self,
        storage: PoolStorageInterface,
        fetchers: Sequence[BaseDexFetcher],
        cache: Optional[RedisStorage] = None,
        max_workers: int = 8,
    ):
        """
        Args:
            storage: Pool store
            fetchers: DEX adapters, synced in order
            cache: Pool-listing cache to invalidate after a pass
            max_workers: Pools processed concurrently per adapter
        """
        self.storage = storage
        self.fetchers = list(fetchers)
        self.cache = cache
        self.max_workers = max(1, max_workers)
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    async def sync_pool(self, pool_data: PoolData, dex: str) -> bool:
        """
        Insert or update one pool.

        Returns:
            True if a new pool was created, False if an existing one was updated
        """
        existing = await self.storage.find_by_address(pool_data.address)

        if existing is not None:
            updated = existing.update_metrics(
                tvl=pool_data.tvl_usd,
                volume_24h=pool_data.volume_usd_24h,
                apr=pool_data.apr,
                metadata=pool_metadata(pool_data),
            )
            await self.storage.save(updated)
            self.logger.debug(f"Updated pool {pool_data.address}")
            return False

        pool = Pool.create(
            pool_address=pool_data.address,
            dex=dex,
            token0=pool_data.token0.address,
            token1=pool_data.token1.address,
            token0_symbol=pool_data.token0.symbol,
            token1_symbol=pool_data.token1.symbol,
            fee_tier=pool_data.fee_tier,
            tvl=pool_data.tvl_usd,
            volume_24h=pool_data.volume_usd_24h,
            apr=pool_data.apr,
            metadata=pool_metadata(pool_data),
        )
        await self.storage.save(pool)
        self.logger.debug(f"Created new pool {pool_data.address}")
        return True

    async def _sync_dex(self, fetcher: BaseDexFetcher, result: SyncResult) -> None:
        dex = fetcher.dex_name
        pools = await fetcher.fetch_pools()

        # Duplicate addresses in one batch collapse to the last record
        unique: Dict[str, PoolData] = {}
        for pool_data in pools:
            unique[pool_data.address.lower()] = pool_data
        if len(unique) != len(pools):
            self.logger.info(f"Collapsed {len(pools) - len(unique)} duplicate {dex} pools")

        semaphore = asyncio.Semaphore(self.max_workers)
        counts = {"synced": 0, "errors": 0}

        async def run(pool_data: PoolData) -> None:
            async with semaphore:
                try:
                    created = await self.sync_pool(pool_data, dex)
                except Exception as e:
                    counts["errors"] += 1
                    result.errors += 1
                    self.logger.error(f"Failed to sync {dex} pool {pool_data.address}: {e}")
                    return
            counts["synced"] += 1
            result.synced += 1
            if created:
                result.created += 1
            else:
                result.updated += 1

        await asyncio.gather(*(run(pool_data) for pool_data in unique.values()))
        result.by_dex[dex] = counts
        self.logger.info(f"{dex}: {counts['synced']} synced, {counts['errors']} errors")

    async def sync_pools(self) -> SyncResult:
        """
        Run one synchronization pass over every adapter.

        Returns:
            Counts of synced pools and per-pool errors
        """
        self.logger.info("Starting pool synchronization...")
        result = SyncResult()

        for fetcher in self.fetchers:
            await self._sync_dex(fetcher, result)

        if self.cache is not None:
            try:
                await self.cache.invalidate_pools()
            except Exception as e:
                self.logger.warning(f"Failed to invalidate pool cache: {e}")

        self.logger.info(
            f"Pool synchronization complete: {result.synced} synced, {result.errors} errors"
        )
        return result
