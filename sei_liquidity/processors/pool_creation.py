"""
Factory PoolCreated scanner.

PoolCreated(address indexed token0, address indexed token1, uint24 indexed fee,
int24 tickSpacing, address pool) as emitted by Uniswap v3 factories. The
DragonSwap and Sailor factories emit ``fee`` unindexed, so the payload is
decoded as (uint24 fee, int24 tickSpacing, address pool).
"""

import asyncio
from typing import List, Optional

from ..config.protocols import ProtocolConfig
from ..core.models import LogEvent, PoolCreationRecord
from ..fetchers.errors import MalformedRecordError
from ..utils.abi import decode_log_data, topic_address
from .base import BaseScanner

POOL_CREATED_DATA_TYPES = ("uint24", "int24", "address")

# Parallel eth_getTransactionByHash lookups
DEFAULT_TX_CONCURRENCY = 8


class PoolCreationScanner(BaseScanner):
    """Enumerate pools created by a factory within a block range."""

    def __init__(self, log_fetcher, tx_concurrency: int = DEFAULT_TX_CONCURRENCY):
        super().__init__(log_fetcher)
        self.tx_concurrency = max(1, tx_concurrency)
        self.pool_created_topic = ProtocolConfig.POOL_CREATED_EVENT

    def decode_log(self, log: LogEvent, creator: Optional[str] = None) -> PoolCreationRecord:
        """
        Decode one PoolCreated log.

        Raises:
            MalformedRecordError: If topics or payload do not match the event
        """
        if len(log.topics) < 3:
            raise MalformedRecordError(
                f"PoolCreated log {log.transaction_hash} has {len(log.topics)} topics, expected 3"
            )
        fee, tick_spacing, pool = decode_log_data(POOL_CREATED_DATA_TYPES, log.data)
        return PoolCreationRecord(
            block_number=log.block_number,
            transaction_hash=log.transaction_hash,
            creator=creator,
            token0=topic_address(log.topics[1]),
            token1=topic_address(log.topics[2]),
            fee=int(fee),
            tick_spacing=int(tick_spacing),
            pool=pool,
        )

    async def _get_creator(self, tx_hash: str, semaphore: asyncio.Semaphore) -> Optional[str]:
        async with semaphore:
            tx = await self.client.get_transaction(tx_hash)
        if not tx or not tx.get("from"):
            return None
        return self.validate_address(tx["from"], "creator")

    async def scan(self, factory_address: str, from_block: int, to_block: int) -> List[PoolCreationRecord]:
        """
        Scan ``factory_address`` for PoolCreated events.

        Records follow log order. Any undecodable log fails the whole scan.

        Args:
            factory_address: Pool factory contract
            from_block: First block, inclusive
            to_block: Last block, inclusive

        Returns:
            One PoolCreationRecord per log
        """
        factory = self.validate_address(factory_address, "factory address")
        self.validate_block_range(from_block, to_block)

        logs = await self.log_fetcher.fetch(factory, [self.pool_created_topic], from_block, to_block)
        self.logger.info(f"Found {len(logs)} PoolCreated logs for {factory} ({from_block}-{to_block})")
        if not logs:
            return []

        # Decode first so a malformed log fails before any transaction lookups
        records = [self.decode_log(log) for log in logs]

        semaphore = asyncio.Semaphore(self.tx_concurrency)
        creators = await asyncio.gather(
            *(self._get_creator(log.transaction_hash, semaphore) for log in logs)
        )
        for record, creator in zip(records, creators):
            record.creator = creator

        return records
