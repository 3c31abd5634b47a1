"""
Chain-specific configuration for sei-liquidity.
"""

from dataclasses import dataclass, field
from typing import Dict

from .base import BaseConfig, ConfigError


@dataclass
class ChainConfig(BaseConfig):
    """Sei EVM RPC endpoint and log-scanning settings."""

    SEI_RPC: str = field(
        default_factory=lambda: BaseConfig.get_env("SEI_RPC", "https://evm-rpc.sei.io")
    )
    SEI_CHAIN_ID: int = field(
        default_factory=lambda: BaseConfig.get_env_int("SEI_CHAIN_ID", 1329)
    )

    # Block window per eth_getLogs request
    LOG_CHUNK_SIZE: int = field(
        default_factory=lambda: BaseConfig.get_env_int("LOG_CHUNK_SIZE", 5000)
    )
    # 1 = sequential windows
    LOG_FETCH_CONCURRENCY: int = field(
        default_factory=lambda: BaseConfig.get_env_int("LOG_FETCH_CONCURRENCY", 1)
    )

    # Request settings
    RPC_TIMEOUT_SECONDS: float = field(
        default_factory=lambda: BaseConfig.get_env_float("RPC_TIMEOUT_SECONDS", 30.0)
    )
    MAX_RETRY_ATTEMPTS: int = field(
        default_factory=lambda: BaseConfig.get_env_int("MAX_RETRY_ATTEMPTS", 3)
    )
    RETRY_DELAY_SECONDS: float = field(
        default_factory=lambda: BaseConfig.get_env_float("RETRY_DELAY_SECONDS", 1.0)
    )

    def _validate_config(self):
        super()._validate_config()
        if self.LOG_CHUNK_SIZE <= 0:
            raise ConfigError(f"LOG_CHUNK_SIZE must be positive, got: {self.LOG_CHUNK_SIZE}")
        if self.LOG_FETCH_CONCURRENCY <= 0:
            raise ConfigError(
                f"LOG_FETCH_CONCURRENCY must be positive, got: {self.LOG_FETCH_CONCURRENCY}"
            )
        if not self.SEI_RPC.startswith(("http://", "https://")):
            raise ConfigError(f"SEI_RPC must be an HTTP(S) URL, got: {self.SEI_RPC}")

    @property
    def rpc_settings(self) -> Dict:
        """Keyword arguments for the RPC log client."""
        return {
            "rpc_url": self.SEI_RPC,
            "timeout": self.RPC_TIMEOUT_SECONDS,
            "max_retries": self.MAX_RETRY_ATTEMPTS,
            "retry_delay": self.RETRY_DELAY_SECONDS,
        }
