"""
Exception types shared by the data model, the RPC and log scanners and the
DEX adapters.
"""

from typing import Optional


class FetchError(Exception):
    """Base exception for fetch-related errors."""
    pass


class UpstreamUnavailableError(FetchError):
    """Raised on HTTP/RPC non-2xx responses, network failures and timeouts."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RateLimitError(UpstreamUnavailableError):
    """Raised when rate limit is hit."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message, status=429)
        self.retry_after = retry_after


class MalformedRecordError(FetchError):
    """Raised when a single record is missing required fields or cannot be decoded."""
    pass


class InvalidInputError(FetchError):
    """Raised when caller-supplied input (block numbers, addresses, queries) is invalid."""
    pass
