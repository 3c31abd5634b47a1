"""
Tests for sqrtPriceX96 price conversion.
"""

import pytest

from sei_liquidity.utils.v3_math import (
    Q96,
    format_fraction,
    sqrt_price_x96_to_price,
    try_sqrt_price_x96_to_price,
)


class TestSqrtPriceConversion:
    def test_unit_price(self):
        assert sqrt_price_x96_to_price(Q96) == "1"
        assert sqrt_price_x96_to_price(str(2**96)) == "1"

    def test_squared(self):
        assert sqrt_price_x96_to_price(2 * Q96) == "4"

    def test_fractional(self):
        assert sqrt_price_x96_to_price(Q96 // 2) == "0.25"

    def test_decimal_shift(self):
        assert sqrt_price_x96_to_price(Q96, decimals0=18, decimals1=6) == "1000000000000"
        assert sqrt_price_x96_to_price(Q96, decimals0=6, decimals1=18) == "0.000000000001"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            sqrt_price_x96_to_price(-1)

    def test_zero(self):
        assert sqrt_price_x96_to_price(0) == "0"


class TestFormatFraction:
    def test_truncates(self):
        assert format_fraction(1, 3, precision=5) == "0.33333"

    def test_strips_trailing_zeros(self):
        assert format_fraction(5, 4) == "1.25"

    def test_invalid_denominator(self):
        with pytest.raises(ValueError):
            format_fraction(1, 0)


class TestTrySqrtPrice:
    @pytest.mark.parametrize("value", [None, "", "not-a-number"])
    def test_missing_or_invalid(self, value):
        assert try_sqrt_price_x96_to_price(value) is None

    def test_valid(self):
        assert try_sqrt_price_x96_to_price(str(Q96), 18, 18) == "1"
