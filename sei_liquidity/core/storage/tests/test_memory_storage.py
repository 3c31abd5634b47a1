"""
Tests for the in-process pool store.
"""

from datetime import datetime, timedelta, timezone

import pytest

from sei_liquidity.core.models import Pool, PoolHistoryPoint


def new_pool(address, dex="dragonswap", tvl=None):
    return Pool.create(
        pool_address=address,
        dex=dex,
        token0="0xA",
        token1="0xB",
        token0_symbol="A",
        token1_symbol="B",
        tvl=tvl,
    )


class TestMemoryPoolStorage:
    @pytest.mark.asyncio
    async def test_lifecycle(self, memory_storage):
        async with memory_storage as storage:
            assert storage.is_connected is True
            assert await storage.health_check() is True
        assert memory_storage.is_connected is False

    @pytest.mark.asyncio
    async def test_upsert_by_address(self, memory_storage):
        original = await memory_storage.save(new_pool("0xABC", tvl="1"))

        stored = await memory_storage.save(new_pool("0xabc", tvl="2"))

        assert stored.id == original.id
        assert stored.created_at == original.created_at
        assert stored.tvl == "2"
        assert len(await memory_storage.find_all()) == 1

    @pytest.mark.asyncio
    async def test_find(self, memory_storage):
        pool = await memory_storage.save(new_pool("0xAbC"))

        assert (await memory_storage.find_by_address("0xABC")).id == pool.id
        assert (await memory_storage.find_by_id(pool.id)).pool_address == "0xAbC"
        assert await memory_storage.find_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_find_all_filters_and_orders(self, memory_storage):
        await memory_storage.save(new_pool("0x1", tvl="5"))
        await memory_storage.save(new_pool("0x2", tvl="50", dex="sailor"))
        await memory_storage.save(new_pool("0x3"))
        inactive = await memory_storage.save(new_pool("0x4", tvl="500"))
        await memory_storage.save(inactive.deactivate())

        all_pools = await memory_storage.find_all()
        active = await memory_storage.find_all(is_active=True)
        sailor = await memory_storage.find_all(dex="sailor")

        assert [pool.pool_address for pool in all_pools] == ["0x4", "0x2", "0x1", "0x3"]
        assert [pool.pool_address for pool in active] == ["0x2", "0x1", "0x3"]
        assert [pool.pool_address for pool in sailor] == ["0x2"]

    @pytest.mark.asyncio
    async def test_history_range(self, memory_storage):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for hours in (3, 1, 2, 30):
            await memory_storage.save_historical_data(
                PoolHistoryPoint(pool_id="p1", timestamp=start + timedelta(hours=hours))
            )

        points = await memory_storage.get_historical_data("p1", start, start + timedelta(days=1))

        assert [point.timestamp.hour for point in points] == [1, 2, 3]
        assert await memory_storage.get_historical_data("p2", start, start + timedelta(days=1)) == []
