"""
PostgreSQL pool storage built on asyncpg.

Tables are created by ``schema.setup_pool_tables`` (``db:migrate``):
- liquidity_pools: one row per pool address
- pool_history: time-series snapshots keyed by pool id
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import asyncpg
import ujson
from asyncpg.pool import Pool as ConnectionPool

from ..models import Pool, PoolHistoryPoint
from .base import ConnectionError, DataError, PoolStorageInterface, StorageBase
from .schema import POOL_HISTORY_TABLE, POOLS_TABLE

logger = logging.getLogger(__name__)


def to_numeric(value: Optional[str]) -> Optional[Decimal]:
    """Decimal strings are bound as NUMERIC so no precision is lost."""
    return Decimal(value) if value is not None else None


def from_numeric(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def row_to_pool(row: Dict[str, Any]) -> Pool:
    metadata = row.get("metadata")
    if isinstance(metadata, str):
        metadata = ujson.loads(metadata)
    return Pool(
        id=str(row["id"]),
        pool_address=row["pool_address"],
        dex=row["dex"],
        token0=row["token0"],
        token1=row["token1"],
        token0_symbol=row["token0_symbol"] or "UNKNOWN",
        token1_symbol=row["token1_symbol"] or "UNKNOWN",
        fee_tier=row["fee_tier"],
        tvl=from_numeric(row["tvl"]),
        volume_24h=from_numeric(row["volume_24h"]),
        apr=from_numeric(row["apr"]),
        metadata=metadata or {},
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresPoolStorage(StorageBase, PoolStorageInterface):
    """
    PostgreSQL storage for pools and pool history.

    Upserts are keyed on ``pool_address``; the last write wins.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize PostgreSQL storage.

        Args:
            config: Configuration with keys:
                - dsn: PostgreSQL connection URL
                - pool_size: Connection pool size (default: 10)
                - pool_timeout: Pool timeout in seconds (default: 30)
        """
        super().__init__(config)
        self.pool: Optional[ConnectionPool] = None
        self.pool_size = config.get("pool_size", 10)
        self.pool_timeout = config.get("pool_timeout", 30)

    async def connect(self) -> None:
        """Establish connection pool to PostgreSQL."""
        try:
            self.pool = await asyncpg.create_pool(
                self.config["dsn"],
                min_size=1,
                max_size=self.pool_size,
                timeout=self.pool_timeout,
                command_timeout=60,
            )
            self.is_connected = True
            logger.info("PostgreSQL connection pool established")

        except Exception as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise ConnectionError(f"PostgreSQL connection failed: {e}")

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.is_connected = False
            logger.info("PostgreSQL connection pool closed")

    async def health_check(self) -> bool:
        """Check PostgreSQL connection health."""
        if not self.pool:
            return False

        try:
            async with self.pool.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                return result == 1
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False

    def _require_pool(self) -> ConnectionPool:
        if not self.pool:
            raise ConnectionError("Not connected to PostgreSQL")
        return self.pool

    async def save(self, pool: Pool) -> Pool:
        """Upsert a pool by address and return the stored row."""
        db = self._require_pool()
        query = f"""
            INSERT INTO {POOLS_TABLE} (
                id, pool_address, dex, token0, token1, token0_symbol, token1_symbol,
                fee_tier, tvl, volume_24h, apr, metadata, is_active, created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12::jsonb, $13, $14, $15)
            ON CONFLICT (pool_address)
            DO UPDATE SET
                tvl = EXCLUDED.tvl,
                volume_24h = EXCLUDED.volume_24h,
                apr = EXCLUDED.apr,
                metadata = EXCLUDED.metadata,
                is_active = EXCLUDED.is_active,
                updated_at = EXCLUDED.updated_at
            RETURNING *
        """
        try:
            async with db.acquire() as conn:
                row = await conn.fetchrow(
                    query,
                    pool.id,
                    pool.pool_address.lower(),
                    pool.dex,
                    pool.token0,
                    pool.token1,
                    pool.token0_symbol,
                    pool.token1_symbol,
                    pool.fee_tier,
                    to_numeric(pool.tvl),
                    to_numeric(pool.volume_24h),
                    to_numeric(pool.apr),
                    ujson.dumps(pool.metadata),
                    pool.is_active,
                    pool.created_at,
                    pool.updated_at,
                )
                return row_to_pool(dict(row))

        except Exception as e:
            logger.error(f"Failed to store pool {pool.pool_address}: {e}")
            raise DataError(f"Pool storage failed: {e}")

    async def find_by_address(self, address: str) -> Optional[Pool]:
        db = self._require_pool()
        try:
            async with db.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT * FROM {POOLS_TABLE} WHERE pool_address = $1", address.lower()
                )
                return row_to_pool(dict(row)) if row else None
        except Exception as e:
            logger.error(f"Failed to get pool {address}: {e}")
            raise DataError(f"Pool retrieval failed: {e}")

    async def find_by_id(self, pool_id: str) -> Optional[Pool]:
        db = self._require_pool()
        try:
            async with db.acquire() as conn:
                row = await conn.fetchrow(f"SELECT * FROM {POOLS_TABLE} WHERE id::text = $1", pool_id)
                return row_to_pool(dict(row)) if row else None
        except Exception as e:
            logger.error(f"Failed to get pool {pool_id}: {e}")
            raise DataError(f"Pool retrieval failed: {e}")

    async def find_all(self, dex: Optional[str] = None, is_active: Optional[bool] = None) -> List[Pool]:
        db = self._require_pool()
        conditions = []
        params: List[Any] = []
        if dex is not None:
            params.append(dex)
            conditions.append(f"dex = ${len(params)}")
        if is_active is not None:
            params.append(is_active)
            conditions.append(f"is_active = ${len(params)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        query = f"SELECT * FROM {POOLS_TABLE} {where} ORDER BY tvl DESC NULLS LAST"
        try:
            async with db.acquire() as conn:
                rows = await conn.fetch(query, *params)
                return [row_to_pool(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list pools: {e}")
            raise DataError(f"Pool listing failed: {e}")

    async def save_historical_data(self, point: PoolHistoryPoint) -> None:
        db = self._require_pool()
        query = f"""
            INSERT INTO {POOL_HISTORY_TABLE} (pool_id, timestamp, reserve0, reserve1, tvl, volume, price)
            VALUES ($1::uuid, $2, $3, $4, $5, $6, $7)
        """
        try:
            async with db.acquire() as conn:
                await conn.execute(
                    query,
                    point.pool_id,
                    point.timestamp,
                    to_numeric(point.reserve0),
                    to_numeric(point.reserve1),
                    to_numeric(point.tvl),
                    to_numeric(point.volume),
                    to_numeric(point.price),
                )
        except Exception as e:
            logger.error(f"Failed to store history for pool {point.pool_id}: {e}")
            raise DataError(f"History storage failed: {e}")

    async def get_historical_data(
        self, pool_id: str, from_time: datetime, to_time: datetime
    ) -> List[PoolHistoryPoint]:
        db = self._require_pool()
        query = f"""
            SELECT pool_id, timestamp, reserve0, reserve1, tvl, volume, price
            FROM {POOL_HISTORY_TABLE}
            WHERE pool_id::text = $1 AND timestamp BETWEEN $2 AND $3
            ORDER BY timestamp
        """
        try:
            async with db.acquire() as conn:
                rows = await conn.fetch(query, pool_id, from_time, to_time)
        except Exception as e:
            logger.error(f"Failed to get history for pool {pool_id}: {e}")
            raise DataError(f"History retrieval failed: {e}")

        return [
            PoolHistoryPoint(
                pool_id=str(row["pool_id"]),
                timestamp=row["timestamp"],
                reserve0=from_numeric(row["reserve0"]) or "0",
                reserve1=from_numeric(row["reserve1"]) or "0",
                tvl=from_numeric(row["tvl"]),
                volume=from_numeric(row["volume"]),
                price=from_numeric(row["price"]),
            )
            for row in rows
        ]
