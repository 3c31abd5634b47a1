"""
Upstream data sources: the Sei JSON-RPC node and the DEX pool APIs.

The RPC side lives in ``rpc_client`` / ``log_fetcher`` and is imported from
those modules directly; this package namespace only re-exports the error
types and the DEX adapters.
"""

from .errors import (
    ErrorHandler,
    FetchError,
    InvalidInputError,
    MalformedRecordError,
    RateLimitError,
    UpstreamUnavailableError,
)
from .base import BaseDexFetcher
from .dragonswap import DragonSwapFetcher
from .sailor import SailorFetcher, SailorToken, SailorTokenCache

__all__ = [
    "ErrorHandler",
    "FetchError",
    "InvalidInputError",
    "MalformedRecordError",
    "RateLimitError",
    "UpstreamUnavailableError",
    "BaseDexFetcher",
    "DragonSwapFetcher",
    "SailorFetcher",
    "SailorToken",
    "SailorTokenCache",
]
