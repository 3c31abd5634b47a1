"""
Tests for PostgresPoolStorage against a mocked asyncpg pool.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sei_liquidity.core.models import Pool, PoolHistoryPoint
from sei_liquidity.core.storage.base import ConnectionError, DataError
from sei_liquidity.core.storage.postgres import (
    PostgresPoolStorage,
    from_numeric,
    row_to_pool,
    to_numeric,
)

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def pool_row(**overrides):
    row = {
        "id": "6f1c1f2e-7f43-4c1e-9a55-2d3c3f0e1a11",
        "pool_address": "0xabc",
        "dex": "sailor",
        "token0": "0xA",
        "token1": "0xB",
        "token0_symbol": "WSEI",
        "token1_symbol": None,
        "fee_tier": "3000",
        "tvl": Decimal("1234.5000"),
        "volume_24h": None,
        "apr": Decimal("12"),
        "metadata": '{"reserve0": "10"}',
        "is_active": True,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


@pytest.fixture
def conn():
    return AsyncMock()


@pytest.fixture
def storage(conn):
    db = MagicMock()
    db.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    db.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    db.close = AsyncMock()

    storage = PostgresPoolStorage({"dsn": "postgresql://localhost/test", "pool_size": 2})
    storage.pool = db
    storage.is_connected = True
    return storage


class TestNumericConversion:
    def test_round_trip_keeps_precision(self):
        value = "123456789012345678901234567890.000000000000000001"

        assert from_numeric(to_numeric(value)) == value

    def test_trailing_zeros_stripped(self):
        assert from_numeric(Decimal("1.2300")) == "1.23"
        assert from_numeric(Decimal("100")) == "100"

    def test_none(self):
        assert to_numeric(None) is None
        assert from_numeric(None) is None

    def test_row_to_pool(self):
        pool = row_to_pool(pool_row())

        assert pool.tvl == "1234.5"
        assert pool.apr == "12"
        assert pool.volume_24h is None
        assert pool.token1_symbol == "UNKNOWN"
        assert pool.metadata == {"reserve0": "10"}


class TestPostgresPoolStorage:
    @pytest.mark.asyncio
    async def test_connect_failure(self):
        storage = PostgresPoolStorage({"dsn": "postgresql://nowhere/test"})

        with patch(
            "sei_liquidity.core.storage.postgres.asyncpg.create_pool",
            AsyncMock(side_effect=OSError("refused")),
        ):
            with pytest.raises(ConnectionError):
                await storage.connect()
        assert storage.is_connected is False

    @pytest.mark.asyncio
    async def test_requires_connection(self):
        storage = PostgresPoolStorage({"dsn": "postgresql://localhost/test"})

        with pytest.raises(ConnectionError):
            await storage.find_all()

    @pytest.mark.asyncio
    async def test_save_upserts_lowercase_address(self, storage, conn):
        conn.fetchrow.return_value = pool_row()
        pool = Pool.create(
            pool_address="0xABC", dex="sailor", token0="0xA", token1="0xB",
            token0_symbol="WSEI", token1_symbol="USDC", tvl="1234.5",
        )

        stored = await storage.save(pool)

        query, *params = conn.fetchrow.call_args[0]
        assert "ON CONFLICT (pool_address)" in query
        assert params[1] == "0xabc"
        assert params[8] == Decimal("1234.5")
        assert params[11] == "{}"
        assert stored.tvl == "1234.5"

    @pytest.mark.asyncio
    async def test_save_failure_is_data_error(self, storage, conn):
        conn.fetchrow.side_effect = RuntimeError("constraint")
        pool = Pool.create(
            pool_address="0xABC", dex="sailor", token0="0xA", token1="0xB",
            token0_symbol="A", token1_symbol="B",
        )

        with pytest.raises(DataError):
            await storage.save(pool)

    @pytest.mark.asyncio
    async def test_find_by_address_missing(self, storage, conn):
        conn.fetchrow.return_value = None

        assert await storage.find_by_address("0xDEF") is None
        assert conn.fetchrow.call_args[0][1] == "0xdef"

    @pytest.mark.asyncio
    async def test_find_all_filters(self, storage, conn):
        conn.fetch.return_value = [pool_row()]

        pools = await storage.find_all(dex="sailor", is_active=True)

        query, *params = conn.fetch.call_args[0]
        assert "dex = $1 AND is_active = $2" in query
        assert "ORDER BY tvl DESC NULLS LAST" in query
        assert params == ["sailor", True]
        assert len(pools) == 1

    @pytest.mark.asyncio
    async def test_history_round_trip(self, storage, conn):
        point = PoolHistoryPoint(pool_id="p", timestamp=NOW, reserve0="10", reserve1="20", price="0.5")

        await storage.save_historical_data(point)
        conn.fetch.return_value = [
            {
                "pool_id": "p", "timestamp": NOW, "reserve0": Decimal("10"), "reserve1": Decimal("20"),
                "tvl": None, "volume": None, "price": Decimal("0.50"),
            }
        ]
        points = await storage.get_historical_data("p", NOW, NOW)

        assert conn.execute.call_args[0][3] == Decimal("10")
        assert points[0].price == "0.5"
        assert points[0].reserve1 == "20"

    @pytest.mark.asyncio
    async def test_health_check(self, storage, conn):
        conn.fetchval.return_value = 1

        assert await storage.health_check() is True

    @pytest.mark.asyncio
    async def test_disconnect(self, storage):
        db = storage.pool

        await storage.disconnect()

        db.close.assert_awaited_once()
        assert storage.pool is None
