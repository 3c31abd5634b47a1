"""
Tests for field fallback resolution and numeric normalization.
"""

from decimal import Decimal

import pytest

from sei_liquidity.fetchers import fields
from sei_liquidity.fetchers.errors import MalformedRecordError


class TestResolveField:
    def test_first_present_candidate_wins(self):
        record = {"id": "0xpool", "address": "0xaddr"}

        assert fields.resolve_field(record, fields.POOL_ADDRESS_KEYS) == "0xaddr"

    def test_falls_through_blank_and_none(self):
        record = {"address": "  ", "id": None, "poolAddress": "0xpool"}

        assert fields.resolve_field(record, fields.POOL_ADDRESS_KEYS) == "0xpool"

    def test_dotted_path(self):
        record = {"token0": {"id": "0xtoken"}}

        assert fields.resolve_field(record, fields.TOKEN0_ADDRESS_KEYS) == "0xtoken"

    def test_nested_object_is_not_a_value(self):
        record = {"token0": {"symbol": "SEI"}, "token0Address": "0xflat"}

        assert fields.resolve_field(record, fields.TOKEN0_ADDRESS_KEYS) == "0xflat"

    def test_default(self):
        assert fields.resolve_field({}, fields.APR_KEYS) is None
        assert fields.resolve_field({}, fields.RESERVE0_KEYS, "0") == "0"

    def test_zero_is_present(self):
        assert fields.resolve_field({"apr": 0}, fields.APR_KEYS) == 0


class TestDecimalStrings:
    def test_large_integer_string_kept_exactly(self):
        value = str(2**200)

        assert fields.to_decimal_string(value) == value

    def test_int_and_decimal(self):
        assert fields.to_decimal_string(12) == "12"
        assert fields.to_decimal_string(Decimal("1.50")) == "1.50"

    def test_float_uses_repr(self):
        assert fields.to_decimal_string(0.1) == "0.1"

    def test_exponent_expanded(self):
        assert fields.to_decimal_string("1e3") == "1000"

    def test_leading_plus_dropped(self):
        assert fields.to_decimal_string("+12.50") == "12.50"
        assert fields.to_decimal_string("+" + str(2**200)) == str(2**200)

    @pytest.mark.parametrize("value", ["1_000", "0.000_1", "++1"])
    def test_separators_rejected(self, value):
        with pytest.raises(MalformedRecordError):
            fields.to_decimal_string(value, "reserve0")

    @pytest.mark.parametrize("value", ["abc", True, {"v": 1}, "NaN", float("inf")])
    def test_rejected(self, value):
        with pytest.raises(MalformedRecordError):
            fields.to_decimal_string(value, "tvl")

    def test_optional(self):
        assert fields.optional_decimal_string(None) is None
        assert fields.optional_decimal_string("2.5") == "2.5"


class TestDecimals:
    @pytest.mark.parametrize(
        "value, expected",
        [("6", 6), (8, 8), (None, 18), ("x", 18), (-1, 18), (True, 18)],
    )
    def test_to_decimals(self, value, expected):
        assert fields.to_decimals(value) == expected
