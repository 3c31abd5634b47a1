"""
Uniswap V3 price math for pool normalization.

Key concepts:
- sqrtPriceX96: Square root of price in Q96 fixed-point format (96 bits of precision)
- price = (sqrtPriceX96 / 2^96)^2, i.e. token1 per token0 in raw units

All arithmetic stays in Python integers; a float cannot represent
on-chain magnitudes exactly.
"""

from typing import Optional, Union

# Q96 constants
Q96 = 2**96
Q192 = Q96 * Q96

DEFAULT_PRICE_PRECISION = 40


def format_fraction(numerator: int, denominator: int, precision: int = DEFAULT_PRICE_PRECISION) -> str:
    """
    Render ``numerator / denominator`` as a plain decimal string.

    Digits beyond ``precision`` are truncated; trailing zeros are stripped.

    Args:
        numerator: Non-negative integer numerator
        denominator: Positive integer denominator
        precision: Maximum number of fractional digits

    Returns:
        Decimal string such as ``"1"`` or ``"0.000123"``
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if numerator < 0:
        raise ValueError("numerator must be non-negative")

    integer_part, remainder = divmod(numerator, denominator)
    if remainder == 0 or precision <= 0:
        return str(integer_part)

    # Scale the remainder once instead of long division digit by digit
    fractional = (remainder * 10**precision) // denominator
    fractional_str = str(fractional).rjust(precision, "0").rstrip("0")
    if not fractional_str:
        return str(integer_part)
    return f"{integer_part}.{fractional_str}"


def sqrt_price_x96_to_price(
    sqrt_price_x96: Union[int, str],
    decimals0: int = 0,
    decimals1: int = 0,
    precision: int = DEFAULT_PRICE_PRECISION,
) -> str:
    """
    Convert sqrtPriceX96 to a price of token0 denominated in token1.

    Formula: price = sqrtPriceX96^2 / 2^192 * 10^(decimals0 - decimals1)

    Args:
        sqrt_price_x96: Pool sqrtPriceX96 (int or base-10 string)
        decimals0: token0 decimals (0 for the raw price)
        decimals1: token1 decimals (0 for the raw price)
        precision: Maximum number of fractional digits in the result

    Returns:
        Price as a decimal string
    """
    sqrt_price = int(sqrt_price_x96)
    if sqrt_price < 0:
        raise ValueError(f"sqrtPriceX96 must be non-negative, got {sqrt_price}")

    numerator = sqrt_price * sqrt_price
    denominator = Q192

    shift = decimals0 - decimals1
    if shift > 0:
        numerator *= 10**shift
    elif shift < 0:
        denominator *= 10**(-shift)

    return format_fraction(numerator, denominator, precision)


def try_sqrt_price_x96_to_price(
    sqrt_price_x96: Optional[Union[int, str]],
    decimals0: int = 0,
    decimals1: int = 0,
) -> Optional[str]:
    """Like ``sqrt_price_x96_to_price`` but returns None for missing or unparseable input."""
    if sqrt_price_x96 is None or sqrt_price_x96 == "":
        return None
    try:
        return sqrt_price_x96_to_price(sqrt_price_x96, decimals0, decimals1)
    except (TypeError, ValueError):
        return None
