"""
Protocol-specific configuration for sei-liquidity.
"""

from dataclasses import dataclass, field
from typing import Dict

from ..utils.abi import event_topic
from .base import BaseConfig


@dataclass
class ProtocolConfig(BaseConfig):
    """Factory / position-manager addresses and event topics for the Sei CLMM DEXes."""

    DRAGON_FACTORY: str = field(
        default_factory=lambda: BaseConfig.get_env_address(
            "DRAGON_FACTORY", "0x179D9a5592Bc77050796F7be28058c51cA575df4"
        )
    )
    DRAGON_POSITION_MANAGER: str = field(
        default_factory=lambda: BaseConfig.get_env_address(
            "DRAGON_POSITION_MANAGER", "0xa7FDcBe645d6b2B98639EbacbC347e2B575f6F70"
        )
    )
    SAILOR_FACTORY: str = field(
        default_factory=lambda: BaseConfig.get_env_address(
            "SAILOR_FACTORY", "0xA51136931fdd3875902618bF6B3abe38Ab2D703b"
        )
    )
    SAILOR_POSITION_MANAGER: str = field(
        default_factory=lambda: BaseConfig.get_env_address(
            "SAILOR_POSITION_MANAGER", "0xe294d5Eb435807cD21017013Bef620ed1AeafbeB"
        )
    )

    # Event topics (identical across Uniswap-v3 forks)
    POOL_CREATED_EVENT: str = event_topic("PoolCreated(address,address,uint24,int24,address)")
    ERC721_TRANSFER_EVENT: str = event_topic("Transfer(address,address,uint256)")
    INCREASE_LIQUIDITY_EVENT: str = event_topic("IncreaseLiquidity(uint256,uint128,uint256,uint256)")
    DECREASE_LIQUIDITY_EVENT: str = event_topic("DecreaseLiquidity(uint256,uint128,uint256,uint256)")
    COLLECT_EVENT: str = event_topic("Collect(uint256,address,uint256,uint256)")

    @property
    def dex_config(self) -> Dict[str, Dict[str, str]]:
        """Contract addresses by DEX."""
        return {
            "dragonswap": {
                "factory": self.DRAGON_FACTORY,
                "position_manager": self.DRAGON_POSITION_MANAGER,
            },
            "sailor": {
                "factory": self.SAILOR_FACTORY,
                "position_manager": self.SAILOR_POSITION_MANAGER,
            },
        }

    def get_dex_config(self, dex: str) -> Dict[str, str]:
        """Get contract addresses for a DEX."""
        if dex not in self.dex_config:
            raise ValueError(f"Unsupported dex: {dex}")
        return self.dex_config[dex]

    def get_factory_address(self, dex: str = "dragonswap") -> str:
        """Get the pool factory address for a DEX."""
        return self.get_dex_config(dex)["factory"]

    def get_position_manager(self, dex: str = "dragonswap") -> str:
        """Get the NonfungiblePositionManager address for a DEX."""
        return self.get_dex_config(dex)["position_manager"]
