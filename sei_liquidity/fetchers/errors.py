"""
Error types and handling utilities for upstream data fetching.

The exception classes live in ``core.errors`` and are re-exported here for
the RPC client and adapters; ``ErrorHandler`` holds the retry
classification used for RPC calls.
"""

from typing import Optional, Dict, Any
import logging

from ..core.errors import (
    FetchError,
    InvalidInputError,
    MalformedRecordError,
    RateLimitError,
    UpstreamUnavailableError,
)

__all__ = [
    "ErrorHandler",
    "FetchError",
    "InvalidInputError",
    "MalformedRecordError",
    "RateLimitError",
    "UpstreamUnavailableError",
]

logger = logging.getLogger(__name__)


class ErrorHandler:
    """
    Centralized error handling for RPC operations.

    Provides classification, logging, and retry decisions
    for the errors encountered while talking to the node.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: Exception) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        if isinstance(error, RateLimitError):
            return 'rate_limit'
        if isinstance(error, (MalformedRecordError, InvalidInputError)):
            return 'validation'
        if isinstance(error, (TimeoutError, ConnectionError)):
            return 'network'

        error_str = str(error).lower()

        # Rate limiting errors
        if any(keyword in error_str for keyword in ['rate limit', 'too many requests', '429']):
            return 'rate_limit'

        # Network connectivity errors
        if any(keyword in error_str for keyword in ['connection', 'timeout', 'timed out', 'network', 'dns', '502', '503', '504']):
            return 'network'

        # Validation errors
        if any(keyword in error_str for keyword in ['invalid', 'bad request', '400']):
            return 'validation'

        return 'unknown'

    def should_retry(self, error: Exception, attempt: int, max_retries: int) -> bool:
        """
        Determine if an error should trigger a retry.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            max_retries: Maximum number of attempts allowed

        Returns:
            True if operation should be retried
        """
        if attempt + 1 >= max_retries:
            return False

        return self.classify_error(error) in ['network', 'rate_limit', 'unknown']

    def get_retry_delay(self, error: Exception, attempt: int, base_delay: float = 1.0) -> float:
        """
        Calculate appropriate retry delay based on error type and attempt.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            base_delay: Delay for the first retry in seconds

        Returns:
            Delay in seconds before retry
        """
        if isinstance(error, RateLimitError) and error.retry_after:
            return error.retry_after

        error_category = self.classify_error(error)

        # Base exponential backoff
        delay = min(base_delay * (2 ** attempt), 60)  # Cap at 60 seconds

        # Rate limit errors get longer delays
        if error_category == 'rate_limit':
            return delay * 2

        if error_category == 'network':
            return delay

        # Unknown errors get conservative delay
        return delay * 1.5

    def log_error(self, error: Exception, context: Dict[str, Any]):
        """
        Log error with appropriate level and context.

        Args:
            error: Exception to log
            context: Additional context for logging
        """
        error_category = self.classify_error(error)
        details = ", ".join(f"{key}={value}" for key, value in context.items())

        if error_category == 'rate_limit':
            self.logger.info(f"Rate limit encountered ({details}): {error}")
        elif error_category == 'validation':
            self.logger.warning(f"Validation error ({details}): {error}")
        else:
            self.logger.warning(f"RPC operation error [{error_category}] ({details}): {error}")
