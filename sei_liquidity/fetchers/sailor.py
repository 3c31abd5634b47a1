"""
Sailor Finance adapter.

Pools come from the hosted Sailor subgraph (GraphQL over
``POST {base}/sailor/subgraph``). Subgraph pools reference their tokens by
id only, so the same query also returns the token list, which feeds a
``SailorTokenCache`` used to fill in symbols and decimals.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ..config.manager import ConfigManager
from ..core.models import PoolData, PoolHistoryPoint, TokenInfo
from ..utils.v3_math import try_sqrt_price_x96_to_price
from . import fields
from .base import BaseDexFetcher, DEFAULT_HTTP_TIMEOUT, normalize_address
from .errors import MalformedRecordError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_SAILOR_API_BASE = "https://asia-southeast1-ktx-finance-2.cloudfunctions.net/sailor_otherapi"

POOLS_QUERY = """
query Pools($first: Int!) {
  pools(first: $first, orderBy: totalValueLockedUSD, orderDirection: desc) {
    id
    feeTier
    liquidity
    sqrtPrice
    token0 { id symbol decimals }
    token1 { id symbol decimals }
    totalValueLockedToken0
    totalValueLockedToken1
    totalValueLockedUSD
    volumeUSD
  }
  tokens(first: $first) {
    id
    symbol
    name
    decimals
    derivedUSD
  }
}
"""

POOL_QUERY = """
query Pool($id: ID!) {
  pool(id: $id) {
    id
    feeTier
    liquidity
    sqrtPrice
    token0 { id symbol decimals }
    token1 { id symbol decimals }
    totalValueLockedToken0
    totalValueLockedToken1
    totalValueLockedUSD
    volumeUSD
  }
}
"""

POOL_DAY_DATA_QUERY = """
query PoolDayData($pool: String!, $from: Int!, $to: Int!) {
  poolDayDatas(where: { pool: $pool, date_gte: $from, date_lte: $to }, orderBy: date, orderDirection: asc) {
    date
    tvlUSD
    volumeUSD
    token0Price
  }
}
"""

TOKEN_USD_PRICE_KEYS = ("derivedUSD", "priceUSD", "usdPrice")


@dataclass(frozen=True)
class SailorToken:
    address: str
    symbol: str
    decimals: int
    name: Optional[str] = None
    usd_price: Optional[str] = None


class SailorTokenCache:
    """
    Token metadata keyed by lower-cased address.

    Filled from subgraph responses on first use and only ever appended to;
    entries are not refreshed for the lifetime of the cache.
    """

    def __init__(self):
        self._tokens: Dict[str, SailorToken] = {}
        self.is_loaded = False

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, address: str) -> bool:
        return address.lower() in self._tokens

    def get(self, address: str) -> Optional[SailorToken]:
        return self._tokens.get(address.lower())

    def add(self, token: SailorToken) -> bool:
        """Insert ``token`` unless its address is already cached."""
        key = token.address.lower()
        if key in self._tokens:
            return False
        self._tokens[key] = token
        return True

    def load(self, records: List[Any]) -> int:
        """
        Add every parseable token record; returns how many were new.

        Unparseable records are skipped.
        """
        added = 0
        for record in records:
            try:
                token = self.parse_token(record)
            except MalformedRecordError as e:
                logger.debug(f"Skipping Sailor token record: {e}")
                continue
            if self.add(token):
                added += 1
        self.is_loaded = True
        return added

    @staticmethod
    def parse_token(record: Any) -> SailorToken:
        if not isinstance(record, Mapping):
            raise MalformedRecordError("Token record is not an object")
        address = fields.resolve_field(record, ("id", "address"))
        if address is None:
            raise MalformedRecordError("Token record has no address")
        usd_price = fields.resolve_field(record, TOKEN_USD_PRICE_KEYS)
        name = fields.resolve_field(record, ("name",))
        return SailorToken(
            address=normalize_address(address, "token address"),
            symbol=str(fields.resolve_field(record, ("symbol",), fields.DEFAULT_SYMBOL)),
            decimals=fields.to_decimals(fields.resolve_field(record, ("decimals",))),
            name=str(name) if name is not None else None,
            usd_price=fields.optional_decimal_string(usd_price, "usd_price"),
        )


class SailorFetcher(BaseDexFetcher):
    """Pools from the Sailor subgraph, enriched through a shared token cache."""

    dex_name = "sailor"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        token_cache: Optional[SailorTokenCache] = None,
        page_size: int = 1000,
    ):
        super().__init__(base_url or DEFAULT_SAILOR_API_BASE, timeout)
        self.token_cache = token_cache if token_cache is not None else SailorTokenCache()
        self.page_size = page_size

    @classmethod
    def from_config(
        cls, config: ConfigManager, token_cache: Optional[SailorTokenCache] = None
    ) -> "SailorFetcher":
        return cls(config.dex.sailor_url, config.dex.HTTP_TIMEOUT_SECONDS, token_cache=token_cache)

    @property
    def subgraph_url(self) -> str:
        return f"{self.base_url}/sailor/subgraph"

    async def query_subgraph(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        """
        Run a GraphQL query against the hosted subgraph and return the raw response.

        Raises:
            UpstreamUnavailableError: On transport or HTTP failure
        """
        body: Dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables
        return await self._request_json("POST", self.subgraph_url, json=body)

    async def _query_data(self, query: str, variables: Dict[str, Any]) -> Mapping[str, Any]:
        response = await self.query_subgraph(query, variables)
        if not isinstance(response, Mapping):
            raise UpstreamUnavailableError("Sailor subgraph returned a non-object response")
        data = response.get("data")
        if not isinstance(data, Mapping):
            errors = response.get("errors")
            raise UpstreamUnavailableError(f"Sailor subgraph returned no data: {errors}")
        if response.get("errors"):
            self.logger.warning(f"Sailor subgraph partial errors: {response['errors']}")
        return data

    async def fetch_snapshot(self) -> Any:
        """
        Fetch the public REST snapshot (``GET {base}/cmc/c1``).

        Raises:
            UpstreamUnavailableError: On transport or HTTP failure
        """
        return await self._request_json("GET", f"{self.base_url}/cmc/c1")

    async def fetch_raw_pools(self) -> List[Any]:
        data = await self._query_data(POOLS_QUERY, {"first": self.page_size})
        tokens = data.get("tokens")
        if isinstance(tokens, list):
            added = self.token_cache.load(tokens)
            if added:
                self.logger.info(f"Cached {added} Sailor tokens ({len(self.token_cache)} total)")
        pools = data.get("pools")
        return pools if isinstance(pools, list) else []

    def resolve_token(self, record: Mapping[str, Any], index: int) -> TokenInfo:
        token = super().resolve_token(record, index)
        cached = self.token_cache.get(token.address)
        if cached is None:
            return token

        prefix = f"token{index}"
        symbol = fields.resolve_field(record, (f"{prefix}.symbol", f"{prefix}Symbol"))
        decimals = fields.resolve_field(record, (f"{prefix}.decimals", f"{prefix}Decimals"))
        return TokenInfo(
            address=token.address,
            symbol=token.symbol if symbol is not None else cached.symbol,
            decimals=token.decimals if decimals is not None else cached.decimals,
        )

    def resolve_price(self, record: Mapping[str, Any], token0: TokenInfo, token1: TokenInfo) -> Optional[str]:
        sqrt_price = fields.resolve_field(record, fields.SQRT_PRICE_KEYS)
        return try_sqrt_price_x96_to_price(sqrt_price, token0.decimals, token1.decimals)

    async def fetch_pool_by_address(self, address: str) -> Optional[PoolData]:
        self.logger.info(f"Fetching pool {address} from {self.dex_name}...")
        try:
            data = await self._query_data(POOL_QUERY, {"id": address.lower()})
        except UpstreamUnavailableError as e:
            self.logger.error(f"Failed to fetch pool {address} from {self.dex_name}: {e}")
            return None
        record = data.get("pool")
        if record is None:
            return None
        try:
            return self.transform_pool(record)
        except MalformedRecordError as e:
            self.logger.error(f"Invalid pool {address} from {self.dex_name}: {e}")
            return None

    async def fetch_pool_history(
        self, address: str, from_time: datetime, to_time: datetime
    ) -> List[PoolHistoryPoint]:
        self.logger.info(f"Fetching historical data for pool {address}...")
        try:
            data = await self._query_data(
                POOL_DAY_DATA_QUERY,
                {
                    "pool": address.lower(),
                    "from": int(from_time.timestamp()),
                    "to": int(to_time.timestamp()),
                },
            )
        except UpstreamUnavailableError as e:
            self.logger.error(f"Failed to fetch history for pool {address}: {e}")
            return []

        points = []
        for record in self.extract_records(data, "poolDayDatas"):
            try:
                points.append(self.transform_history_point(address, record))
            except (MalformedRecordError, TypeError, ValueError) as e:
                self.logger.warning(f"Dropping history point for pool {address}: {e}")
        return points
