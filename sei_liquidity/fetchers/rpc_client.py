"""
JSON-RPC client for the Sei EVM node.

Wraps a synchronous web3 HTTPProvider and runs each call in the default
executor so the scanners can await it. Every call is retried according to
``ErrorHandler`` and surfaces as ``UpstreamUnavailableError`` once retries
are exhausted.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TransactionNotFound

from ..core.models import LogEvent
from ..utils.abi import to_hex_topic
from .errors import ErrorHandler, InvalidInputError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

# A topic filter position is a single topic, an OR-list of topics, or None (wildcard)
TopicFilter = Optional[Union[str, Sequence[str]]]


def _hex(value: Any) -> str:
    return "0x" + bytes(HexBytes(value)).hex()


def to_log_event(raw: Dict[str, Any]) -> LogEvent:
    """Convert a web3 log entry (AttributeDict or plain dict) into a LogEvent."""
    return LogEvent(
        address=to_checksum_address(raw["address"]),
        topics=tuple(to_hex_topic(HexBytes(topic)) for topic in raw["topics"]),
        data=bytes(HexBytes(raw["data"])),
        block_number=int(raw["blockNumber"]),
        transaction_hash=_hex(raw["transactionHash"]),
        log_index=int(raw.get("logIndex") or 0),
    )


class RpcLogClient:
    """
    Minimal log/transaction reader over a JSON-RPC endpoint.

    Usage:
        client = RpcLogClient("https://evm-rpc.sei.io")
        logs = await client.get_logs(factory, [pool_created_topic], 100, 5099)
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        web3: Optional[Web3] = None,
    ):
        """
        Initialize the client.

        Args:
            rpc_url: HTTP(S) JSON-RPC endpoint
            timeout: Per-request timeout in seconds
            max_retries: Total attempts per call
            retry_delay: Base delay for exponential backoff
            web3: Pre-built Web3 instance (tests)
        """
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.web3 = web3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout})
        )
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)

    @classmethod
    def from_config(cls, config) -> "RpcLogClient":
        """Build a client from a ConfigManager."""
        return cls(**config.chains.rpc_settings)

    async def _call(self, operation: str, func: Callable, *args, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        call = functools.partial(func, *args, **kwargs)

        for attempt in range(self.max_retries):
            try:
                return await loop.run_in_executor(None, call)
            except Exception as e:
                self.error_handler.log_error(
                    e, {"operation": operation, "attempt": attempt + 1, "rpc": self.rpc_url}
                )
                if not self.error_handler.should_retry(e, attempt, self.max_retries):
                    raise UpstreamUnavailableError(f"{operation} failed: {e}") from e
                await asyncio.sleep(
                    self.error_handler.get_retry_delay(e, attempt, self.retry_delay)
                )

        # Unreachable while max_retries >= 1
        raise UpstreamUnavailableError(f"{operation} failed after {self.max_retries} attempts")

    async def get_logs(
        self,
        address: str,
        topics: Sequence[TopicFilter],
        from_block: int,
        to_block: int,
    ) -> List[LogEvent]:
        """
        Fetch logs for one block window.

        Args:
            address: Emitting contract
            topics: Positional topic filter; a list at a position means OR
            from_block: First block, inclusive
            to_block: Last block, inclusive

        Returns:
            Logs in node order
        """
        if from_block < 0 or to_block < 0:
            raise InvalidInputError(f"Block numbers must be non-negative: {from_block}-{to_block}")

        filter_params = {
            "address": to_checksum_address(address),
            "topics": [
                list(topic) if isinstance(topic, (list, tuple)) else topic for topic in topics
            ],
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        raw_logs = await self._call("eth_getLogs", self.web3.eth.get_logs, filter_params)
        return [to_log_event(raw) for raw in raw_logs]

    def _fetch_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            tx = self.web3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None
        return dict(tx) if tx is not None else None

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Return the transaction as a dict (with ``from``), or None when the node does not know it."""
        return await self._call("eth_getTransactionByHash", self._fetch_transaction, tx_hash)

    def _fetch_block_number(self) -> int:
        return int(self.web3.eth.block_number)

    async def get_block_number(self) -> int:
        """Latest block number."""
        return await self._call("eth_blockNumber", self._fetch_block_number)
