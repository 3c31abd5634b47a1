"""
Configuration management for sei-liquidity.

Use get_config() to access all configuration settings.

Example:
    from sei_liquidity.config import get_config

    config = get_config()

    rpc_url = config.chains.SEI_RPC
    factory = config.protocols.get_factory_address("dragonswap")
    sailor_api = config.dex.sailor_url
"""

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .database import DatabaseConfig
from .dex import DexApiConfig
from .manager import ConfigManager, get_config, reload_config
from .protocols import ProtocolConfig
from .scheduler import SchedulerConfig

__all__ = [
    "BaseConfig",
    "ConfigError",
    "ChainConfig",
    "ProtocolConfig",
    "DexApiConfig",
    "DatabaseConfig",
    "SchedulerConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
