"""
Base classes for the on-chain log scanners.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
import logging

from eth_utils import is_address, to_checksum_address

from ..fetchers.errors import InvalidInputError
from ..fetchers.log_fetcher import ChunkedLogFetcher

logger = logging.getLogger(__name__)


class ProcessorError(Exception):
    """Base exception for processor errors."""
    pass


class BaseScanner(ABC):
    """
    Abstract base class for log scanners.

    A scanner owns a ChunkedLogFetcher and turns the raw logs of one
    contract into typed records.
    """

    def __init__(self, log_fetcher: ChunkedLogFetcher):
        """
        Initialize scanner.

        Args:
            log_fetcher: Chunked fetcher wrapping an RPC log client
        """
        self.log_fetcher = log_fetcher
        self.client = log_fetcher.client
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @staticmethod
    def validate_address(address: Optional[str], name: str = "address") -> str:
        """Checksum an address argument, raising InvalidInputError when it is missing or malformed."""
        if not address:
            raise InvalidInputError(f"Missing {name}")
        if not is_address(address):
            raise InvalidInputError(f"Invalid {name}: {address}")
        return to_checksum_address(address)

    @staticmethod
    def validate_block_range(from_block: int, to_block: int) -> None:
        """Reject negative block numbers. An inverted range is allowed and yields no logs."""
        if from_block < 0 or to_block < 0:
            raise InvalidInputError(
                f"Block numbers must be non-negative, got {from_block}-{to_block}"
            )

    @abstractmethod
    async def scan(self, *args, **kwargs) -> Any:
        """Scan a contract's logs over a block range."""
        pass

    def get_identifier(self) -> str:
        """Get unique identifier for this scanner."""
        return self.__class__.__name__
