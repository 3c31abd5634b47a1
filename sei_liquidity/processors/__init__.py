"""
Log scanners built on the chunked log fetcher.
"""

from .base import BaseScanner, ProcessorError
from .pool_creation import PoolCreationScanner
from .positions import PositionHistoryReconstructor

__all__ = [
    "BaseScanner",
    "ProcessorError",
    "PoolCreationScanner",
    "PositionHistoryReconstructor",
]
