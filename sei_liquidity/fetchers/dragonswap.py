"""
DragonSwap REST pool adapter.
"""

from typing import Any, List, Optional

from ..config.manager import ConfigManager
from .base import BaseDexFetcher, DEFAULT_HTTP_TIMEOUT


class DragonSwapFetcher(BaseDexFetcher):
    """
    Pools from the DragonSwap REST API.

    ``GET {base}/pools`` returns either a bare list or ``{"pools": [...]}``.
    """

    dex_name = "dragonswap"

    def __init__(self, base_url: Optional[str] = None, timeout: float = DEFAULT_HTTP_TIMEOUT):
        super().__init__(base_url or "https://api.dragonswap.app/v1", timeout)

    @classmethod
    def from_config(cls, config: ConfigManager) -> "DragonSwapFetcher":
        return cls(config.dex.dragonswap_url, config.dex.HTTP_TIMEOUT_SECONDS)

    async def fetch_raw_pools(self) -> List[Any]:
        payload = await self._request_json("GET", f"{self.base_url}/pools")
        records = self.extract_records(payload)
        if not records and payload:
            self.logger.warning(f"Unexpected DragonSwap pools payload: {type(payload).__name__}")
        return records
