"""
Base class for DEX pool API adapters.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

import aiohttp
from eth_utils import is_address, to_checksum_address

from ..core.models import PoolData, PoolHistoryPoint, TokenInfo
from . import fields
from .errors import MalformedRecordError, RateLimitError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 20.0


def normalize_address(value: Any, field_name: str = "address") -> str:
    """Checksum an address from an API record."""
    if not isinstance(value, str) or not is_address(value):
        raise MalformedRecordError(f"Invalid {field_name}: {value!r}")
    return to_checksum_address(value)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or a unix timestamp (seconds or milliseconds)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 10**11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise MalformedRecordError(f"Invalid timestamp: {value!r}")
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise MalformedRecordError(f"Invalid timestamp: {value!r}")


class BaseDexFetcher(ABC):
    """
    Abstract base class for DEX pool API adapters.

    ``fetch_pools`` never raises: an unavailable upstream yields ``[]`` and
    records that fail to normalize are dropped one by one, so sibling
    adapters keep working when one source is down.
    """

    dex_name: str = "dex"

    def __init__(self, base_url: str, timeout: float = DEFAULT_HTTP_TIMEOUT):
        """
        Initialize adapter.

        Args:
            base_url: API base URL without trailing slash
            timeout: Total timeout per HTTP request in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    async def _request_json(self, method: str, url: str, **kwargs) -> Any:
        """
        Issue one HTTP request and decode its JSON body.

        Raises:
            RateLimitError: On HTTP 429
            UpstreamUnavailableError: On any other non-2xx status, network failure,
                timeout or undecodable body
        """
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout, headers=headers) as session:
                async with session.request(method, url, **kwargs) as response:
                    if response.status == 429:
                        retry_after = response.headers.get("Retry-After")
                        raise RateLimitError(
                            f"{self.dex_name} rate limited: {url}",
                            retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
                        )
                    if response.status < 200 or response.status >= 300:
                        raise UpstreamUnavailableError(
                            f"{self.dex_name} API error: HTTP {response.status} {response.reason} ({url})",
                            status=response.status,
                        )
                    return await response.json(content_type=None)
        except UpstreamUnavailableError:
            raise
        except asyncio.TimeoutError:
            raise UpstreamUnavailableError(f"{self.dex_name} request timed out: {url}")
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(f"{self.dex_name} request failed: {e}")
        except ValueError as e:
            raise UpstreamUnavailableError(f"{self.dex_name} returned invalid JSON: {e}")

    @staticmethod
    def extract_records(payload: Any, key: str = "pools") -> List[Any]:
        """Accept either a bare list or an object wrapping the list under ``key``."""
        if isinstance(payload, list):
            return payload
        if isinstance(payload, Mapping) and isinstance(payload.get(key), list):
            return payload[key]
        return []

    @abstractmethod
    async def fetch_raw_pools(self) -> List[Any]:
        """
        Fetch raw pool records from the upstream API.

        Raises:
            UpstreamUnavailableError: If the API cannot be reached
        """
        pass

    def resolve_token(self, record: Mapping[str, Any], index: int) -> TokenInfo:
        """Resolve token0/token1 identity from a raw record."""
        address_keys, symbol_keys, decimals_keys = (
            (fields.TOKEN0_ADDRESS_KEYS, fields.TOKEN0_SYMBOL_KEYS, fields.TOKEN0_DECIMALS_KEYS)
            if index == 0
            else (fields.TOKEN1_ADDRESS_KEYS, fields.TOKEN1_SYMBOL_KEYS, fields.TOKEN1_DECIMALS_KEYS)
        )
        address = fields.resolve_field(record, address_keys)
        if address is None:
            raise MalformedRecordError(f"Pool record has no token{index} address")
        return TokenInfo(
            address=normalize_address(address, f"token{index} address"),
            symbol=str(fields.resolve_field(record, symbol_keys, fields.DEFAULT_SYMBOL)),
            decimals=fields.to_decimals(fields.resolve_field(record, decimals_keys)),
        )

    def resolve_price(self, record: Mapping[str, Any], token0: TokenInfo, token1: TokenInfo) -> Optional[str]:
        """Price of token0 in token1, when the source reports one."""
        return None

    def transform_pool(self, record: Any) -> PoolData:
        """
        Normalize one raw pool record.

        Raises:
            MalformedRecordError: If the pool address is missing or a field is unparseable
        """
        if not isinstance(record, Mapping):
            raise MalformedRecordError(f"Pool record is not an object: {type(record).__name__}")

        address = fields.resolve_field(record, fields.POOL_ADDRESS_KEYS)
        if address is None:
            raise MalformedRecordError("Pool record has no address")

        token0 = self.resolve_token(record, 0)
        token1 = self.resolve_token(record, 1)
        fee_tier = fields.resolve_field(record, fields.FEE_TIER_KEYS)

        return PoolData(
            address=normalize_address(address, "pool address"),
            token0=token0,
            token1=token1,
            reserve0=fields.to_decimal_string(fields.resolve_field(record, fields.RESERVE0_KEYS, "0"), "reserve0"),
            reserve1=fields.to_decimal_string(fields.resolve_field(record, fields.RESERVE1_KEYS, "0"), "reserve1"),
            total_supply=fields.to_decimal_string(
                fields.resolve_field(record, fields.TOTAL_SUPPLY_KEYS, "0"), "totalSupply"
            ),
            fee_tier=str(fee_tier) if fee_tier is not None else None,
            volume_usd_24h=fields.optional_decimal_string(
                fields.resolve_field(record, fields.VOLUME_KEYS), "volumeUSD24h"
            ),
            tvl_usd=fields.optional_decimal_string(fields.resolve_field(record, fields.TVL_KEYS), "tvlUSD"),
            apr=fields.optional_decimal_string(fields.resolve_field(record, fields.APR_KEYS), "apr"),
            price=self.resolve_price(record, token0, token1),
        )

    async def fetch_pools(self) -> List[PoolData]:
        """
        Fetch and normalize every pool the upstream lists.

        Returns:
            Normalized pools; ``[]`` when the upstream is unavailable
        """
        self.logger.info(f"Fetching pools from {self.dex_name}...")
        try:
            records = await self.fetch_raw_pools()
        except UpstreamUnavailableError as e:
            self.logger.error(f"Failed to fetch pools from {self.dex_name}: {e}")
            return []

        pools = []
        dropped = 0
        for record in records:
            try:
                pools.append(self.transform_pool(record))
            except (MalformedRecordError, TypeError, ValueError) as e:
                dropped += 1
                identifier = (
                    fields.resolve_field(record, fields.POOL_ADDRESS_KEYS, "?")
                    if isinstance(record, Mapping)
                    else "?"
                )
                self.logger.warning(f"Dropping {self.dex_name} pool record {identifier}: {e}")

        self.logger.info(
            f"Fetched {len(pools)} pools from {self.dex_name}"
            + (f" ({dropped} dropped)" if dropped else "")
        )
        return pools

    def pool_url(self, address: str) -> str:
        return f"{self.base_url}/pools/{address}"

    async def fetch_pool_by_address(self, address: str) -> Optional[PoolData]:
        """
        Fetch a single pool.

        Returns:
            The pool, or None when it does not exist or cannot be fetched
        """
        self.logger.info(f"Fetching pool {address} from {self.dex_name}...")
        try:
            record = await self._request_json("GET", self.pool_url(address))
            return self.transform_pool(record)
        except UpstreamUnavailableError as e:
            if e.status == 404:
                return None
            self.logger.error(f"Failed to fetch pool {address} from {self.dex_name}: {e}")
            return None
        except MalformedRecordError as e:
            self.logger.error(f"Invalid pool {address} from {self.dex_name}: {e}")
            return None

    def transform_history_point(self, pool_id: str, record: Any) -> PoolHistoryPoint:
        if not isinstance(record, Mapping):
            raise MalformedRecordError("History point is not an object")
        timestamp = fields.resolve_field(record, fields.HISTORY_TIMESTAMP_KEYS)
        return PoolHistoryPoint(
            pool_id=pool_id,
            timestamp=parse_timestamp(timestamp),
            reserve0=fields.to_decimal_string(
                fields.resolve_field(record, fields.HISTORY_RESERVE0_KEYS, "0"), "reserve0"
            ),
            reserve1=fields.to_decimal_string(
                fields.resolve_field(record, fields.HISTORY_RESERVE1_KEYS, "0"), "reserve1"
            ),
            tvl=fields.optional_decimal_string(fields.resolve_field(record, fields.HISTORY_TVL_KEYS), "tvl"),
            volume=fields.optional_decimal_string(
                fields.resolve_field(record, fields.HISTORY_VOLUME_KEYS), "volume"
            ),
            price=fields.optional_decimal_string(fields.resolve_field(record, fields.HISTORY_PRICE_KEYS), "price"),
        )

    async def fetch_pool_history(self, address: str, from_time: datetime, to_time: datetime) -> List[PoolHistoryPoint]:
        """
        Fetch upstream history for a pool.

        Returns:
            History points (``pool_id`` is the pool address); ``[]`` on failure
        """
        self.logger.info(f"Fetching historical data for pool {address}...")
        try:
            payload = await self._request_json(
                "GET",
                f"{self.pool_url(address)}/history",
                params={"from": from_time.isoformat(), "to": to_time.isoformat()},
            )
        except UpstreamUnavailableError as e:
            self.logger.error(f"Failed to fetch history for pool {address}: {e}")
            return []

        points = []
        for record in self.extract_records(payload, "history"):
            try:
                points.append(self.transform_history_point(address, record))
            except (MalformedRecordError, TypeError, ValueError) as e:
                self.logger.warning(f"Dropping history point for pool {address}: {e}")
        return points

    def get_identifier(self) -> str:
        return f"{self.dex_name}_fetcher"
