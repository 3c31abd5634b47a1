"""
Tests for DEX pool synchronization into storage.
"""

from unittest.mock import AsyncMock

import pytest

from sei_liquidity.core.models import PoolData, TokenInfo
from sei_liquidity.core.pool_sync import PoolSynchronizer, pool_metadata

POOL = "0x" + "ab" * 20


def pool_data(address=POOL, tvl="100", reserve0="1", reserve1="2", apr=None):
    return PoolData(
        address=address,
        token0=TokenInfo(address="0xA", symbol="WSEI", decimals=18),
        token1=TokenInfo(address="0xB", symbol="USDC", decimals=6),
        reserve0=reserve0,
        reserve1=reserve1,
        tvl_usd=tvl,
        volume_usd_24h="5",
        apr=apr,
        fee_tier="3000",
    )


class StubFetcher:
    """Returns one prepared batch per call."""

    def __init__(self, dex_name, *batches):
        self.dex_name = dex_name
        self.batches = list(batches)

    async def fetch_pools(self):
        return self.batches.pop(0) if self.batches else []


class TestPoolSynchronizer:
    @pytest.mark.asyncio
    async def test_second_sync_updates_single_record(self, memory_storage):
        fetcher = StubFetcher("sailor", [pool_data(tvl="100")], [pool_data(tvl="250", reserve0="9")])
        synchronizer = PoolSynchronizer(memory_storage, [fetcher])

        first = await synchronizer.sync_pools()
        created = await memory_storage.find_by_address(POOL)
        second = await synchronizer.sync_pools()

        pools = await memory_storage.find_all()
        assert len(pools) == 1
        assert pools[0].tvl == "250"
        assert pools[0].created_at == created.created_at
        assert pools[0].id == created.id
        assert pools[0].metadata["reserve0"] == "9"
        assert (first.created, first.updated) == (1, 0)
        assert (second.created, second.updated) == (0, 1)

    @pytest.mark.asyncio
    async def test_duplicates_in_batch_collapse_to_last(self, memory_storage):
        batch = [pool_data(tvl="1"), pool_data(address="0x" + "AB" * 20, tvl="2")]
        synchronizer = PoolSynchronizer(memory_storage, [StubFetcher("dragonswap", batch)])

        result = await synchronizer.sync_pools()

        assert result.synced == 1
        assert (await memory_storage.find_by_address(POOL)).tvl == "2"

    @pytest.mark.asyncio
    async def test_new_pool_fields(self, memory_storage):
        synchronizer = PoolSynchronizer(memory_storage, [StubFetcher("sailor", [pool_data()])])

        await synchronizer.sync_pools()

        pool = await memory_storage.find_by_address(POOL)
        assert pool.dex == "sailor"
        assert pool.is_active is True
        assert pool.pair_name == "WSEI/USDC"
        assert pool.fee_tier == "3000"
        assert pool.metadata == pool_metadata(pool_data())
        assert pool.metadata["token1Decimals"] == 6

    @pytest.mark.asyncio
    async def test_per_pool_failure_is_counted(self, memory_storage):
        bad = "0x" + "34" * 20
        original_save = memory_storage.save

        async def flaky_save(pool):
            if pool.pool_address == bad:
                raise RuntimeError("disk full")
            return await original_save(pool)

        memory_storage.save = flaky_save
        fetchers = [
            StubFetcher("dragonswap", [pool_data(), pool_data(address=bad)]),
            StubFetcher("sailor", [pool_data(address="0x" + "56" * 20)]),
        ]
        synchronizer = PoolSynchronizer(memory_storage, fetchers, max_workers=1)

        result = await synchronizer.sync_pools()

        assert result.synced == 2
        assert result.errors == 1
        assert result.by_dex == {
            "dragonswap": {"synced": 1, "errors": 1},
            "sailor": {"synced": 1, "errors": 0},
        }
        assert result.to_dict()["byDex"]["sailor"]["synced"] == 1

    @pytest.mark.asyncio
    async def test_empty_upstream(self, memory_storage):
        synchronizer = PoolSynchronizer(memory_storage, [StubFetcher("sailor")])

        result = await synchronizer.sync_pools()

        assert result.to_dict() == {
            "synced": 0, "errors": 0, "created": 0, "updated": 0, "byDex": {"sailor": {"synced": 0, "errors": 0}},
        }

    @pytest.mark.asyncio
    async def test_cache_invalidated(self, memory_storage):
        cache = AsyncMock()
        synchronizer = PoolSynchronizer(memory_storage, [StubFetcher("sailor", [pool_data()])], cache=cache)

        await synchronizer.sync_pools()

        cache.invalidate_pools.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_fail_sync(self, memory_storage):
        cache = AsyncMock()
        cache.invalidate_pools.side_effect = OSError("redis down")
        synchronizer = PoolSynchronizer(memory_storage, [StubFetcher("sailor", [pool_data()])], cache=cache)

        result = await synchronizer.sync_pools()

        assert result.synced == 1
