"""
DEX HTTP API configuration for sei-liquidity.
"""

from dataclasses import dataclass, field

from .base import BaseConfig, ConfigError


@dataclass
class DexApiConfig(BaseConfig):
    """Base URLs and timeouts for the DragonSwap and Sailor HTTP APIs."""

    DRAGONSWAP_API_URL: str = field(
        default_factory=lambda: BaseConfig.get_env(
            "DRAGONSWAP_API_URL", "https://api.dragonswap.app/v1"
        )
    )
    SAILOR_API_BASE: str = field(
        default_factory=lambda: BaseConfig.get_env(
            "SAILOR_API_BASE",
            "https://asia-southeast1-ktx-finance-2.cloudfunctions.net/sailor_otherapi",
        )
    )
    HTTP_TIMEOUT_SECONDS: float = field(
        default_factory=lambda: BaseConfig.get_env_float("HTTP_TIMEOUT_SECONDS", 20.0)
    )

    def _validate_config(self):
        super()._validate_config()
        if self.HTTP_TIMEOUT_SECONDS <= 0:
            raise ConfigError(
                f"HTTP_TIMEOUT_SECONDS must be positive, got: {self.HTTP_TIMEOUT_SECONDS}"
            )

    @property
    def dragonswap_url(self) -> str:
        return self.DRAGONSWAP_API_URL.rstrip("/")

    @property
    def sailor_url(self) -> str:
        return self.SAILOR_API_BASE.rstrip("/")
