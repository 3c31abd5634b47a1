"""
Periodic time-series snapshots of active pools.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Dict, Optional

from .models import Pool, PoolHistoryPoint, utcnow
from .storage.base import PoolStorageInterface

logger = logging.getLogger(__name__)

# Fractional digits kept for reserve-ratio prices
PRICE_PRECISION = 18


@dataclass
class HistoryResult:
    recorded: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"recorded": self.recorded, "errors": self.errors}


def reserve_price(reserve0: str, reserve1: str) -> Optional[str]:
    """reserve0 / reserve1 as a decimal string, or None when reserve1 is zero."""
    try:
        r0 = Decimal(reserve0)
        r1 = Decimal(reserve1)
    except InvalidOperation:
        return None
    if not (r0.is_finite() and r1.is_finite()) or r1 <= 0:
        return None

    # Enough digits for the integer part of the ratio plus PRICE_PRECISION decimals
    with localcontext() as ctx:
        ctx.prec = max(28, r0.adjusted() - r1.adjusted() + PRICE_PRECISION + 3)
        try:
            price = (r0 / r1).quantize(Decimal(1).scaleb(-PRICE_PRECISION))
        except InvalidOperation:
            return None
    text = format(price, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class PoolHistoryRecorder:
    """Write one PoolHistoryPoint per active pool."""

    def __init__(self, storage: PoolStorageInterface):
        self.storage = storage
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @staticmethod
    def build_point(pool: Pool, timestamp: datetime) -> PoolHistoryPoint:
        reserve0 = str(pool.metadata.get("reserve0") or "0")
        reserve1 = str(pool.metadata.get("reserve1") or "0")
        return PoolHistoryPoint(
            pool_id=pool.id,
            timestamp=timestamp,
            reserve0=reserve0,
            reserve1=reserve1,
            tvl=pool.tvl,
            volume=pool.volume_24h,
            price=reserve_price(reserve0, reserve1),
        )

    async def record_pool_history(self) -> HistoryResult:
        """
        Snapshot every active pool at the same timestamp.

        Returns:
            Counts of recorded points and per-pool errors
        """
        self.logger.info("Recording pool historical snapshots...")
        result = HistoryResult()

        pools = await self.storage.find_all(is_active=True)
        self.logger.info(f"Recording history for {len(pools)} active pools")
        now = utcnow()

        for pool in pools:
            try:
                await self.storage.save_historical_data(self.build_point(pool, now))
                result.recorded += 1
            except Exception as e:
                result.errors += 1
                self.logger.error(f"Failed to record history for pool {pool.id} ({pool.pool_address}): {e}")

        self.logger.info(
            f"Pool history recording complete: {result.recorded} recorded, {result.errors} errors"
        )
        return result
