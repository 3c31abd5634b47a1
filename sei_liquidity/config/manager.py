"""
Configuration manager for sei-liquidity.

Builds every configuration section once from the environment and exposes
them as attributes: ``chains`` (RPC), ``protocols`` (contract addresses),
``dex`` (REST/GraphQL endpoints), ``database`` and ``scheduler``.
"""

import logging
from typing import Dict, Any, Optional
from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .database import DatabaseConfig
from .dex import DexApiConfig
from .protocols import ProtocolConfig
from .scheduler import SchedulerConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    All configuration sections for one process.

    Sections are validated on construction, so a bad environment variable
    fails at startup with ConfigError rather than mid-scan.
    """

    def __init__(self, environment: Optional[str] = None):
        """
        Args:
            environment: Override ENVIRONMENT (local, test, dev, staging, production)
        """
        self._environment = environment
        self._load_sections()

    def _load_sections(self):
        try:
            self._base_config = BaseConfig()
            if self._environment:
                self._base_config.ENVIRONMENT = self._environment
                self._base_config._validate_config()

            self._chain_config = ChainConfig()
            self._protocol_config = ProtocolConfig()
            self._dex_config = DexApiConfig()
            self._database_config = DatabaseConfig()
            self._scheduler_config = SchedulerConfig()
        except ConfigError:
            raise
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}")

        logger.debug(
            f"Configuration loaded for {self.environment}: rpc={self._chain_config.SEI_RPC}, "
            f"storage={self._database_config.STORAGE_BACKEND}"
        )

    @property
    def environment(self) -> str:
        return self._base_config.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        return self._base_config

    @property
    def chains(self) -> ChainConfig:
        """Sei RPC endpoint, log chunking and retry settings."""
        return self._chain_config

    @property
    def protocols(self) -> ProtocolConfig:
        """Factory and position-manager addresses for DragonSwap and Sailor."""
        return self._protocol_config

    @property
    def dex(self) -> DexApiConfig:
        return self._dex_config

    @property
    def database(self) -> DatabaseConfig:
        return self._database_config

    @property
    def scheduler(self) -> SchedulerConfig:
        return self._scheduler_config

    def to_dict(self) -> Dict[str, Any]:
        sections = {
            "base": self.base,
            "chains": self.chains,
            "protocols": self.protocols,
            "dex": self.dex,
            "database": self.database,
            "scheduler": self.scheduler,
        }
        result: Dict[str, Any] = {"environment": self.environment}
        result.update({name: section.to_dict() for name, section in sections.items()})
        return result

    def __repr__(self) -> str:
        return f"ConfigManager(environment={self.environment}, storage={self.database.STORAGE_BACKEND})"


# Process-wide instance used by the CLI
_config_manager: Optional[ConfigManager] = None


def get_config(environment: Optional[str] = None, force_reload: bool = False) -> ConfigManager:
    """
    Return the shared ConfigManager, building it on first use.

    Args:
        environment: Override environment
        force_reload: Rebuild from the current environment
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment)

    return _config_manager


def reload_config(environment: Optional[str] = None) -> ConfigManager:
    """Rebuild the shared ConfigManager, e.g. after changing env vars in tests."""
    return get_config(environment=environment, force_reload=True)
