"""Tests for decimal <-> base-unit conversion."""

import pytest

from swapflow.engine.units import from_base_units, to_base_units
from swapflow.errors import InvalidAmount


class TestToBaseUnits:
    """Test scaling typed amounts to base units."""

    def test_eth_amount(self):
        """Test 1.5 ETH at 18 decimals."""
        assert to_base_units("1.5", 18) == "1500000000000000000"

    def test_usdc_amount(self):
        assert to_base_units("1234.56", 6) == "1234560000"

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1", "1000000"),
            ("1.", "1000000"),
            (".5", "500000"),
            ("0", "0"),
            ("0.000000", "0"),
            ("  2.5  ", "2500000"),
        ],
    )
    def test_partial_input_forms(self, text, expected):
        """Test forms a user produces while typing."""
        assert to_base_units(text, 6) == expected

    def test_truncates_extra_fraction_digits(self):
        """Test digits beyond the token precision are dropped, not rounded."""
        assert to_base_units("1.9999999", 6) == "1999999"
        assert to_base_units("0.0000009", 6) == "0"

    def test_zero_decimals(self):
        assert to_base_units("42", 0) == "42"
        assert to_base_units("42.9", 0) == "42"

    def test_beyond_float_precision(self):
        """Test amounts past 2**53 keep every digit."""
        text = "9007199254.740993"  # (2**53 + 1) / 10**6
        assert to_base_units(text, 6) == str(2**53 + 1)

    def test_uint256_max(self):
        max_uint = 2**256 - 1
        digits = str(max_uint)
        text = f"{digits[:-18]}.{digits[-18:]}"
        assert to_base_units(text, 18) == digits

    def test_very_long_literal(self):
        """Test a million-digit amount scales exactly instead of overflowing."""
        digits = "9" * 1_000_000
        assert to_base_units(digits, 18) == digits + "0" * 18
        assert to_base_units(f"0.{digits}", 18) == "9" * 18

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "abc", "1.2.3", "-1", "+1", "1e18", "1,5", ".", "0x10", "١٢"],
    )
    def test_invalid_amounts(self, text):
        """Test malformed text is rejected."""
        with pytest.raises(InvalidAmount):
            to_base_units(text, 18)

    def test_invalid_amount_is_value_error(self):
        with pytest.raises(ValueError):
            to_base_units("nope", 18)

    @pytest.mark.parametrize("decimals", [-1, 1.5, True])
    def test_invalid_decimals(self, decimals):
        with pytest.raises(InvalidAmount):
            to_base_units("1", decimals)


class TestFromBaseUnits:
    """Test rendering base units for display."""

    def test_one_usdc(self):
        assert from_base_units("1000000", 6, 5) == "1.00000"

    def test_default_precision(self):
        assert from_base_units("1500000000000000000", 18) == "1.50000"

    def test_rounds_half_up(self):
        assert from_base_units("1234565", 6, 5) == "1.23457"
        assert from_base_units("1234564", 6, 5) == "1.23456"

    def test_rounding_carries(self):
        assert from_base_units("999999999999999999", 18, 5) == "1.00000"

    def test_zero(self):
        assert from_base_units("0", 6, 5) == "0.00000"

    def test_zero_precision(self):
        assert from_base_units("2500000", 6, 0) == "3"

    def test_more_precision_than_decimals(self):
        assert from_base_units("15", 1, 3) == "1.500"

    def test_large_amount_exact(self):
        """Test amounts far past 2**53 render without loss."""
        amount = str(2**256 - 1)
        rendered = from_base_units(amount, 18, 18)
        assert rendered.replace(".", "") == amount

    def test_very_long_amount(self):
        digits = "9" * 1_000_000
        assert from_base_units(digits, 0, 2) == digits + ".00"

    def test_accepts_int(self):
        assert from_base_units(1000000, 6, 2) == "1.00"

    @pytest.mark.parametrize("amount", ["", "1.5", "-1", "abc", "0x10"])
    def test_invalid_amounts(self, amount):
        with pytest.raises(InvalidAmount):
            from_base_units(amount, 6)


class TestRoundTrip:
    """Test base units survive a display round trip at full precision."""

    @pytest.mark.parametrize(
        "amount,decimals",
        [
            ("1", 18),
            (str(2**53 + 1), 18),
            (str(2**53 + 1), 6),
            (str(2**256 - 1), 18),
            ("123456789", 0),
        ],
    )
    def test_round_trip(self, amount, decimals):
        rendered = from_base_units(amount, decimals, decimals)
        assert to_base_units(rendered, decimals) == amount
