"""
Base classes and interfaces for storage implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from ..models import Pool, PoolHistoryPoint

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class ConnectionError(StorageError):
    """Raised when connection to storage backend fails."""
    pass


class DataError(StorageError):
    """Raised when data operations fail."""
    pass


class PoolNotFoundError(StorageError):
    """Raised when a pool id or address does not exist."""

    def __init__(self, pool_id: str):
        super().__init__(f"Pool not found: {pool_id}")
        self.pool_id = pool_id


class StorageBase(ABC):
    """
    Abstract base class for storage implementations.
    All storage backends must implement these methods.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize storage backend with configuration.

        Args:
            config: Configuration dictionary for the storage backend
        """
        self.config = config
        self.is_connected = False

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the storage backend."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the storage backend."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the storage backend is healthy and accessible.

        Returns:
            bool: True if healthy, False otherwise
        """
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()


class PoolStorageInterface(ABC):
    """Interface for pool and pool-history storage operations."""

    @abstractmethod
    async def save(self, pool: Pool) -> Pool:
        """
        Insert a pool, or update the stored pool with the same address.

        On conflict only metrics, metadata, ``is_active`` and ``updated_at``
        change; the stored id and ``created_at`` are kept.
        """
        pass

    @abstractmethod
    async def find_by_address(self, address: str) -> Optional[Pool]:
        """Retrieve a pool by address (case-insensitive)."""
        pass

    @abstractmethod
    async def find_by_id(self, pool_id: str) -> Optional[Pool]:
        """Retrieve a pool by id."""
        pass

    @abstractmethod
    async def find_all(self, dex: Optional[str] = None, is_active: Optional[bool] = None) -> List[Pool]:
        """List pools, highest TVL first, optionally filtered."""
        pass

    @abstractmethod
    async def save_historical_data(self, point: PoolHistoryPoint) -> None:
        """Append one history point."""
        pass

    @abstractmethod
    async def get_historical_data(
        self, pool_id: str, from_time: datetime, to_time: datetime
    ) -> List[PoolHistoryPoint]:
        """History points of a pool within ``[from_time, to_time]``, oldest first."""
        pass


class CacheInterface(ABC):
    """Interface for caching operations."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set a cache value with optional TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds (optional)

        Returns:
            bool: True if successful
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a cached value.

        Args:
            key: Cache key

        Returns:
            bool: True if key existed and was deleted
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a key exists in cache."""
        pass
