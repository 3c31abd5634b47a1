"""
Scheduler configuration for sei-liquidity.
"""

from dataclasses import dataclass, field

from .base import BaseConfig, ConfigError


@dataclass
class SchedulerConfig(BaseConfig):
    """Periodic job settings for pool sync and history recording."""

    ENABLE_POOL_SYNC: bool = field(
        default_factory=lambda: BaseConfig.get_env_bool("ENABLE_POOL_SYNC", True)
    )
    POOL_SYNC_INTERVAL_SECONDS: int = field(
        default_factory=lambda: BaseConfig.get_env_int("POOL_SYNC_INTERVAL_SECONDS", 300)
    )
    POOL_HISTORY_INTERVAL_SECONDS: int = field(
        default_factory=lambda: BaseConfig.get_env_int("POOL_HISTORY_INTERVAL_SECONDS", 600)
    )
    SYNC_MAX_WORKERS: int = field(
        default_factory=lambda: BaseConfig.get_env_int("SYNC_MAX_WORKERS", 8)
    )

    def _validate_config(self):
        super()._validate_config()
        for name in ("POOL_SYNC_INTERVAL_SECONDS", "POOL_HISTORY_INTERVAL_SECONDS", "SYNC_MAX_WORKERS"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got: {getattr(self, name)}")
