"""
Ordered field fallbacks for DEX API records.

Upstream pool schemas are not stable; the same value shows up under several
keys depending on API version. Each logical field lists its candidate keys in
priority order and ``resolve_field`` returns the first one present. Dotted
candidates walk nested objects (``token0.address``).
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence

from .errors import MalformedRecordError

POOL_ADDRESS_KEYS = ("address", "id", "poolAddress")

TOKEN0_ADDRESS_KEYS = ("token0.address", "token0.id", "token0Address", "token0", "baseToken")
TOKEN1_ADDRESS_KEYS = ("token1.address", "token1.id", "token1Address", "token1", "quoteToken")
TOKEN0_SYMBOL_KEYS = ("token0.symbol", "token0Symbol")
TOKEN1_SYMBOL_KEYS = ("token1.symbol", "token1Symbol")
TOKEN0_DECIMALS_KEYS = ("token0.decimals", "token0Decimals")
TOKEN1_DECIMALS_KEYS = ("token1.decimals", "token1Decimals")

RESERVE0_KEYS = ("reserve0", "token0Reserve", "totalValueLockedToken0")
RESERVE1_KEYS = ("reserve1", "token1Reserve", "totalValueLockedToken1")
TOTAL_SUPPLY_KEYS = ("totalSupply", "liquidity")
FEE_TIER_KEYS = ("feeTier", "fee")
VOLUME_KEYS = ("volumeUSD24h", "volume24h", "dailyVolumeUSD", "volumeUSD")
TVL_KEYS = ("tvlUSD", "tvl", "liquidityUSD", "totalValueLockedUSD")
APR_KEYS = ("apr", "apy")
SQRT_PRICE_KEYS = ("sqrtPrice", "sqrtPriceX96")

HISTORY_TIMESTAMP_KEYS = ("timestamp", "date", "time")
HISTORY_RESERVE0_KEYS = ("reserve0", "token0Reserve")
HISTORY_RESERVE1_KEYS = ("reserve1", "token1Reserve")
HISTORY_TVL_KEYS = ("tvlUSD", "tvl")
HISTORY_VOLUME_KEYS = ("volumeUSD", "volume")
HISTORY_PRICE_KEYS = ("price", "token0Price")

DEFAULT_SYMBOL = "UNKNOWN"
DEFAULT_DECIMALS = 18


def _lookup(record: Mapping[str, Any], path: str) -> Any:
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _is_present(value: Any) -> bool:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def resolve_field(record: Mapping[str, Any], candidates: Sequence[str], default: Any = None) -> Any:
    """
    Return the first present scalar among ``candidates``.

    None, blank strings and nested objects do not count as present, so a
    ``token0`` key holding an object falls through to the next candidate.
    """
    for candidate in candidates:
        value = _lookup(record, candidate)
        if _is_present(value):
            return value
    return default


def to_decimal_string(value: Any, field_name: str = "value") -> str:
    """
    Render a numeric field as a plain decimal string.

    Strings are validated but otherwise passed through so large integers keep
    every digit; floats go through ``repr`` to avoid binary noise.

    Raises:
        MalformedRecordError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise MalformedRecordError(f"{field_name} is not numeric: {value!r}")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = repr(value)
    elif isinstance(value, (str, Decimal)):
        text = str(value).strip()
        # Decimal() accepts digit separators that no JSON API should emit
        if "_" in text:
            raise MalformedRecordError(f"{field_name} is not numeric: {value!r}")
    else:
        raise MalformedRecordError(f"{field_name} is not numeric: {value!r}")

    try:
        number = Decimal(text)
    except InvalidOperation:
        raise MalformedRecordError(f"{field_name} is not numeric: {value!r}")
    if not number.is_finite():
        raise MalformedRecordError(f"{field_name} is not finite: {value!r}")

    if isinstance(value, str) and "e" not in text.lower() and not text.startswith("+"):
        return text
    return format(number, "f")


def optional_decimal_string(value: Any, field_name: str = "value") -> Optional[str]:
    """Like ``to_decimal_string`` but None stays None."""
    if value is None:
        return None
    return to_decimal_string(value, field_name)


def to_decimals(value: Any, default: int = DEFAULT_DECIMALS) -> int:
    """Parse a token decimals field; falls back to ``default`` when absent or unparseable."""
    if value is None or isinstance(value, bool):
        return default
    try:
        decimals = int(value)
    except (TypeError, ValueError):
        return default
    return decimals if 0 <= decimals <= 255 else default
