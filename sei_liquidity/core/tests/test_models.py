"""
Tests for the shared data model.
"""

from dataclasses import FrozenInstanceError

import pytest

from sei_liquidity.core.models import (
    DecreaseLiquidityEvent,
    LogEvent,
    Pool,
    PoolData,
    TokenInfo,
)
from sei_liquidity.core.errors import MalformedRecordError


def make_pool(**overrides):
    kwargs = dict(
        pool_address="0xPool",
        dex="sailor",
        token0="0xA",
        token1="0xB",
        token0_symbol="WSEI",
        token1_symbol="USDC",
        tvl="100",
        metadata={"reserve0": "1"},
    )
    kwargs.update(overrides)
    return Pool.create(**kwargs)


class TestLogEvent:
    def test_sort_key_and_topic0(self):
        log = LogEvent("0xA", ("0x01", "0x02"), b"", block_number=9, transaction_hash="0x", log_index=4)

        assert log.sort_key == (9, 4)
        assert log.topic0 == "0x01"
        assert LogEvent("0xA", (), b"", 1, "0x").topic0 is None

    def test_immutable(self):
        log = LogEvent("0xA", (), b"", 1, "0x")

        with pytest.raises(FrozenInstanceError):
            log.block_number = 2


class TestPositionEvents:
    def test_decrease_event_name(self):
        event = DecreaseLiquidityEvent(1, "0x", liquidity="5", amount0="1", amount1="2")

        assert event.event == "DecreaseLiquidity"
        assert event.to_dict()["event"] == "DecreaseLiquidity"


class TestPoolData:
    def test_empty_address_rejected(self):
        with pytest.raises(MalformedRecordError):
            PoolData(address="", token0=TokenInfo("0xA"), token1=TokenInfo("0xB"))

    def test_to_dict_keys(self):
        data = PoolData(address="0xP", token0=TokenInfo("0xA"), token1=TokenInfo("0xB"), tvl_usd="5")

        result = data.to_dict()

        assert result["tvlUSD"] == "5"
        assert result["apr"] is None
        assert result["token0"] == {"address": "0xA", "symbol": "UNKNOWN", "decimals": 18}


class TestPool:
    def test_create(self):
        pool = make_pool()

        assert pool.is_active is True
        assert pool.created_at == pool.updated_at
        assert pool.pair_name == "WSEI/USDC"
        assert len(pool.id) == 36

    def test_update_metrics_keeps_identity(self):
        pool = make_pool()

        updated = pool.update_metrics(tvl="200", volume_24h="3", apr=None, metadata={"reserve1": "2"})

        assert updated.id == pool.id
        assert updated.created_at == pool.created_at
        assert updated.updated_at >= pool.updated_at
        assert updated.tvl == "200"
        assert updated.metadata == {"reserve0": "1", "reserve1": "2"}
        assert pool.tvl == "100"

    def test_deactivate(self):
        assert make_pool().deactivate().is_active is False

    def test_snapshot(self):
        pool = make_pool()

        snapshot = pool.snapshot()

        assert snapshot["poolAddress"] == "0xPool"
        assert snapshot["pairName"] == "WSEI/USDC"
        assert snapshot["createdAt"] == pool.created_at.isoformat()
        assert snapshot["isActive"] is True
