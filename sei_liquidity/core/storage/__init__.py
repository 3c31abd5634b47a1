"""
Storage layer for pool data.

- PostgreSQL (asyncpg) for pools and pool history
- In-memory store with the same semantics
- Redis for cached pool listings

Usage:
    from sei_liquidity.core.storage import StorageManager

    async with StorageManager() as storage:
        pool = await storage.pools.find_by_address(address)
"""

from .base import (
    CacheInterface,
    ConnectionError,
    DataError,
    PoolNotFoundError,
    PoolStorageInterface,
    StorageBase,
    StorageError,
)
from .manager import StorageManager
from .memory import MemoryPoolStorage
from .postgres import PostgresPoolStorage
from .redis import RedisStorage

__all__ = [
    "StorageBase",
    "StorageError",
    "ConnectionError",
    "DataError",
    "PoolNotFoundError",
    "PoolStorageInterface",
    "CacheInterface",
    "PostgresPoolStorage",
    "MemoryPoolStorage",
    "RedisStorage",
    "StorageManager",
]
