"""
Chunked eth_getLogs over large block ranges.

Most providers cap the block span or result count of a single eth_getLogs
call, so a range is split into fixed windows. Windows are independent reads;
with ``max_concurrency > 1`` they are issued in parallel and the combined
result is re-sorted into ascending (block_number, log_index) order.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..core.models import LogEvent
from .errors import InvalidInputError
from .rpc_client import TopicFilter

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 5000


def block_windows(from_block: int, to_block: int, chunk_size: int) -> List[Tuple[int, int]]:
    """Inclusive ``(start, end)`` windows covering ``from_block..to_block``."""
    if chunk_size <= 0:
        raise InvalidInputError(f"chunk_size must be positive, got {chunk_size}")
    windows = []
    start = from_block
    while start <= to_block:
        end = min(start + chunk_size - 1, to_block)
        windows.append((start, end))
        start = end + 1
    return windows


class ChunkedLogFetcher:
    """Fetch every matching log in a block range, one window per RPC call."""

    def __init__(self, client, chunk_size: int = DEFAULT_CHUNK_SIZE, max_concurrency: int = 1):
        """
        Args:
            client: Object exposing ``async get_logs(address, topics, from_block, to_block)``
            chunk_size: Blocks per eth_getLogs call
            max_concurrency: Windows in flight at once (1 = sequential)
        """
        if chunk_size <= 0:
            raise InvalidInputError(f"chunk_size must be positive, got {chunk_size}")
        self.client = client
        self.chunk_size = chunk_size
        self.max_concurrency = max(1, max_concurrency)
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, client, config) -> "ChunkedLogFetcher":
        return cls(
            client,
            chunk_size=config.chains.LOG_CHUNK_SIZE,
            max_concurrency=config.chains.LOG_FETCH_CONCURRENCY,
        )

    async def fetch(
        self,
        address: str,
        topics: Sequence[TopicFilter],
        from_block: int,
        to_block: int,
    ) -> List[LogEvent]:
        """
        Fetch logs for ``address`` matching ``topics`` in ``from_block..to_block``.

        An inverted range is an empty range: no calls are made and ``[]`` is
        returned. RPC failures propagate.
        """
        if from_block < 0:
            raise InvalidInputError(f"from_block must be non-negative, got {from_block}")
        if to_block < from_block:
            return []

        windows = block_windows(from_block, to_block, self.chunk_size)
        self.logger.debug(
            f"Fetching logs for {address} over {len(windows)} windows "
            f"({from_block}-{to_block}, chunk={self.chunk_size})"
        )

        if self.max_concurrency == 1:
            logs: List[LogEvent] = []
            for start, end in windows:
                logs.extend(await self.client.get_logs(address, topics, start, end))
        else:
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def fetch_window(start: int, end: int) -> List[LogEvent]:
                async with semaphore:
                    return await self.client.get_logs(address, topics, start, end)

            results = await asyncio.gather(*(fetch_window(s, e) for s, e in windows))
            logs = [log for chunk in results for log in chunk]

        # Stable sort keeps node order for entries sharing a key
        logs.sort(key=lambda log: log.sort_key)
        self.logger.debug(f"Fetched {len(logs)} logs for {address}")
        return logs
