"""
Shared pytest fixtures: synthetic logs and an in-process RPC client.
"""

from typing import Dict, List, Optional, Sequence

import pytest
from eth_abi import encode

from sei_liquidity.core.models import LogEvent
from sei_liquidity.core.storage.memory import MemoryPoolStorage
from sei_liquidity.utils.abi import normalize_topic_address


def uint_topic(value: int) -> str:
    return "0x" + format(value, "x").rjust(64, "0")


def make_log(
    address: str,
    topics: Sequence[str],
    data: bytes = b"",
    block_number: int = 0,
    log_index: int = 0,
    tx_hash: Optional[str] = None,
) -> LogEvent:
    return LogEvent(
        address=address,
        topics=tuple(topics),
        data=data,
        block_number=block_number,
        transaction_hash=tx_hash or uint_topic(block_number * 1000 + log_index),
        log_index=log_index,
    )


class FakeRpcClient:
    """Serves a fixed log set, honoring block range, address and topic filters."""

    def __init__(
        self,
        logs: Optional[List[LogEvent]] = None,
        transactions: Optional[Dict[str, dict]] = None,
        block_number: int = 0,
    ):
        self.logs = list(logs or [])
        self.transactions = dict(transactions or {})
        self.block_number = block_number
        self.calls = []

    @staticmethod
    def _matches(log: LogEvent, topics) -> bool:
        for position, expected in enumerate(topics):
            if expected is None:
                continue
            options = expected if isinstance(expected, (list, tuple)) else [expected]
            if position >= len(log.topics) or log.topics[position] not in options:
                return False
        return True

    async def get_logs(self, address, topics, from_block, to_block):
        self.calls.append((address, list(topics), from_block, to_block))
        return [
            log
            for log in self.logs
            if log.address.lower() == address.lower()
            and from_block <= log.block_number <= to_block
            and self._matches(log, topics)
        ]

    async def get_transaction(self, tx_hash):
        return self.transactions.get(tx_hash)

    async def get_block_number(self):
        return self.block_number


@pytest.fixture
def log_factory():
    return make_log


@pytest.fixture
def topics():
    """Topic encoders for synthetic logs."""

    class Topics:
        uint = staticmethod(uint_topic)
        address = staticmethod(normalize_topic_address)

    return Topics


@pytest.fixture
def abi_encode():
    return encode


@pytest.fixture
def rpc_client_factory():
    return FakeRpcClient


@pytest.fixture
def memory_storage():
    return MemoryPoolStorage()
