"""
Tests for decimal parsing and rounding helpers.
"""

from decimal import Decimal

import pytest

from facturx_ledger.amounts import (
    gross_factor,
    is_blank,
    parse_amount,
    parse_optional_amount,
    quantize,
)
from facturx_ledger.errors import InvalidAmount


class TestParseAmount:
    """Tests for locale-flexible decimal parsing."""

    def test_dot_separator(self):
        assert parse_amount("119.00", 2) == Decimal("119.00")

    def test_comma_separator(self):
        assert parse_amount("19,5", 2) == Decimal("19.50")

    def test_surrounding_whitespace(self):
        assert parse_amount("  7 ", 2) == Decimal("7.00")

    def test_result_has_requested_scale(self):
        assert parse_amount("100", 2).as_tuple().exponent == -2
        assert parse_amount("1", 4).as_tuple().exponent == -4

    def test_rounds_half_up(self):
        assert parse_amount("0.125", 2) == Decimal("0.13")
        assert parse_amount("1.23455", 4) == Decimal("1.2346")

    def test_negative_rounds_away_from_zero(self):
        assert parse_amount("-0.125", 2) == Decimal("-0.13")

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "1,2,3", "12 34", "NaN", "Infinity"])
    def test_invalid_values_rejected(self, value):
        with pytest.raises(InvalidAmount):
            parse_amount(value, 2)

    def test_error_code_carries_field(self):
        with pytest.raises(InvalidAmount) as exc_info:
            parse_amount("ten", 4, "lines[0].quantity")
        assert exc_info.value.code == "invalid_amount:lines[0].quantity"

    @pytest.mark.parametrize("value", ["1e40", "-1e40", "1e30", "1000000000.01", "12345678901"])
    def test_magnitude_above_limit_rejected(self, value):
        with pytest.raises(InvalidAmount) as exc_info:
            parse_amount(value, 4, "lines[0].quantity")
        assert exc_info.value.code == "invalid_amount:lines[0].quantity"

    def test_limit_itself_accepted(self):
        assert parse_amount("1000000000", 4) == Decimal("1000000000.0000")
        assert parse_amount("-1000000000", 2) == Decimal("-1000000000.00")


class TestParseOptionalAmount:

    def test_blank_is_none(self):
        assert parse_optional_amount("", 2) is None
        assert parse_optional_amount(None, 2) is None

    def test_value_parsed(self):
        assert parse_optional_amount("5,5", 2) == Decimal("5.50")

    def test_invalid_still_raises(self):
        with pytest.raises(InvalidAmount):
            parse_optional_amount("five", 2)


class TestHelpers:

    def test_quantize_half_up(self):
        assert quantize(Decimal("2.675"), 2) == Decimal("2.68")
        assert quantize(Decimal("2.674"), 2) == Decimal("2.67")

    def test_gross_factor(self):
        assert gross_factor(Decimal("19")) == Decimal("1.19")
        assert gross_factor(Decimal("0")) == Decimal("1")

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank(" \t")
        assert not is_blank("0")
