"""
Tests for periodic pool history recording.
"""

from datetime import timedelta

import pytest

from sei_liquidity.core.models import Pool, utcnow
from sei_liquidity.core.pool_history import PoolHistoryRecorder, reserve_price


def stored_pool(address, metadata=None, tvl="10"):
    return Pool.create(
        pool_address=address,
        dex="sailor",
        token0="0xA",
        token1="0xB",
        token0_symbol="A",
        token1_symbol="B",
        tvl=tvl,
        volume_24h="3",
        metadata=metadata,
    )


class TestReservePrice:
    def test_ratio(self):
        assert reserve_price("10", "4") == "2.5"

    def test_exact_integer(self):
        assert reserve_price("100", "10") == "10"

    def test_large_reserves(self):
        assert reserve_price(str(3 * 10**40), str(10**40)) == "3"

    def test_ratio_beyond_default_precision(self):
        # 18-decimal reserve against an 8-decimal reserve in raw units
        assert reserve_price(str(10**24), str(10**14)) == "10000000000"
        assert reserve_price(str(10**60 + 1), "3") == str((10**60 + 1) // 3) + ".666666666666666667"

    def test_non_finite(self):
        assert reserve_price("NaN", "1") is None
        assert reserve_price("1", "Infinity") is None

    def test_zero_reserve1(self):
        assert reserve_price("10", "0") is None

    def test_unparseable(self):
        assert reserve_price("abc", "1") is None


class TestPoolHistoryRecorder:
    @pytest.mark.asyncio
    async def test_records_active_pools(self, memory_storage):
        first = await memory_storage.save(stored_pool("0x1", {"reserve0": "10", "reserve1": "4"}))
        second = await memory_storage.save(stored_pool("0x2"))
        inactive = await memory_storage.save(stored_pool("0x3", {"reserve0": "1", "reserve1": "1"}))
        await memory_storage.save(inactive.deactivate())
        recorder = PoolHistoryRecorder(memory_storage)

        result = await recorder.record_pool_history()

        assert result.to_dict() == {"recorded": 2, "errors": 0}
        window = (utcnow() - timedelta(minutes=1), utcnow() + timedelta(minutes=1))
        [point] = await memory_storage.get_historical_data(first.id, *window)
        assert (point.reserve0, point.reserve1, point.price) == ("10", "4", "2.5")
        assert point.tvl == "10"
        assert point.volume == "3"
        [empty] = await memory_storage.get_historical_data(second.id, *window)
        assert (empty.reserve0, empty.reserve1, empty.price) == ("0", "0", None)
        assert empty.timestamp == point.timestamp
        assert await memory_storage.get_historical_data(inactive.id, *window) == []

    @pytest.mark.asyncio
    async def test_records_pool_with_large_reserve_ratio(self, memory_storage):
        pool = await memory_storage.save(
            stored_pool("0x1", {"reserve0": str(10**24), "reserve1": str(10**14)})
        )

        result = await PoolHistoryRecorder(memory_storage).record_pool_history()

        assert result.to_dict() == {"recorded": 1, "errors": 0}
        [point] = memory_storage._history[pool.id]
        assert point.price == "10000000000"

    @pytest.mark.asyncio
    async def test_per_pool_errors_counted(self, memory_storage):
        good = await memory_storage.save(stored_pool("0x1"))
        bad = await memory_storage.save(stored_pool("0x2"))
        original = memory_storage.save_historical_data

        async def flaky(point):
            if point.pool_id == bad.id:
                raise RuntimeError("write failed")
            await original(point)

        memory_storage.save_historical_data = flaky

        result = await PoolHistoryRecorder(memory_storage).record_pool_history()

        assert (result.recorded, result.errors) == (1, 1)
        assert good.id in memory_storage._history

    @pytest.mark.asyncio
    async def test_no_pools(self, memory_storage):
        result = await PoolHistoryRecorder(memory_storage).record_pool_history()

        assert (result.recorded, result.errors) == (0, 0)
