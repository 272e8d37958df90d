"""
Tests for input validation functions.

Tests cover:
- Decimal conversion
- String validation (required, length)
- Numeric validation (positive, non-negative, whole numbers)
- Unit validation

All validators return an (is_valid, error_message) tuple.
"""

from decimal import Decimal

import pytest

from src.utils import validators
from src.utils.constants import MAX_NAME_LENGTH, PRICE_PRECISION, PRICE_SCALE


class TestToDecimal:
    """Tests for to_decimal."""

    def test_float_goes_through_str(self):
        """2.5 becomes Decimal('2.5'), not its binary expansion."""
        assert validators.to_decimal(2.5) == Decimal("2.5")
        assert validators.to_decimal(0.1) == Decimal("0.1")

    def test_strings_and_ints(self):
        """Numeric strings and ints convert."""
        assert validators.to_decimal(" 3.75 ") == Decimal("3.75")
        assert validators.to_decimal(4) == Decimal("4")

    @pytest.mark.parametrize("value", [None, True, False, "abc", "NaN", "Infinity", float("inf")])
    def test_rejects_non_numbers(self, value):
        """Booleans, text and non-finite values give None."""
        assert validators.to_decimal(value) is None


class TestStringValidation:
    """Test string validation functions."""

    def test_validate_required_string_valid(self):
        """Non-empty string passes."""
        assert validators.validate_required_string("Steel", "Name") == (True, "")

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_validate_required_string_missing(self, value):
        """Missing or blank strings fail with a 'required' message."""
        is_valid, message = validators.validate_required_string(value, "Name")
        assert is_valid is False
        assert "required" in message.lower()
        assert message.startswith("Name")

    def test_validate_string_length(self):
        """Strings longer than the limit fail."""
        assert validators.validate_string_length("x" * MAX_NAME_LENGTH, MAX_NAME_LENGTH)[0] is True
        assert validators.validate_string_length("x" * (MAX_NAME_LENGTH + 1), MAX_NAME_LENGTH)[0] is False
        assert validators.validate_string_length(None, 5)[0] is True


class TestNumericValidation:
    """Test numeric validation functions."""

    @pytest.mark.parametrize("value", [1, "0.5", Decimal("0.0001"), 2.5])
    def test_positive_number_valid(self, value):
        """Values above zero pass."""
        assert validators.validate_positive_number(value)[0] is True

    @pytest.mark.parametrize("value", [0, -1, "abc", None])
    def test_positive_number_invalid(self, value):
        """Zero, negatives and non-numbers fail."""
        assert validators.validate_positive_number(value)[0] is False

    def test_non_negative_number(self):
        """Zero passes; negatives fail."""
        assert validators.validate_non_negative_number(0)[0] is True
        assert validators.validate_non_negative_number(Decimal("-0.01"))[0] is False

    @pytest.mark.parametrize("value", [1, "3", Decimal("2.0")])
    def test_positive_integer_valid(self, value):
        """Whole numbers above zero pass."""
        assert validators.validate_positive_integer(value)[0] is True

    @pytest.mark.parametrize("value", [0, -3, 2.5, "1.5", True, None])
    def test_positive_integer_invalid(self, value):
        """Fractions, zero, negatives and booleans fail."""
        assert validators.validate_positive_integer(value, "Batch quantity")[0] is False


class TestUnitValidation:
    """Test unit validation."""

    @pytest.mark.parametrize("unit", ["kg", "KG", "un", "m2"])
    def test_known_units(self, unit):
        """Known units pass regardless of case."""
        assert validators.validate_unit(unit)[0] is True

    @pytest.mark.parametrize("unit", ["", None, "furlong"])
    def test_unknown_units(self, unit):
        """Missing or unknown units fail."""
        assert validators.validate_unit(unit)[0] is False


class TestNumericPrecision:
    """Test that numbers fit their stored Numeric columns unchanged."""

    @pytest.mark.parametrize("value", ["0.0001", Decimal("2.5"), "2.50000", 7, "9999999999.9999"])
    def test_fits_quantity_column(self, value):
        """Up to 4 decimal places and 10 integer digits pass."""
        assert validators.validate_numeric_precision(value, "Quantity") == (True, "")

    def test_too_many_decimal_places(self):
        """0.00001 would be stored as 0.0000 and is rejected."""
        is_valid, message = validators.validate_numeric_precision(Decimal("0.00001"), "Quantity")
        assert is_valid is False
        assert message.startswith("Quantity")
        assert "4 decimal places" in message

    def test_price_scale(self):
        """2.12345 would be rounded to 2.1235 in a price column."""
        assert validators.validate_numeric_precision(
            "2.12345", "Unit price", PRICE_PRECISION, PRICE_SCALE
        )[0] is False
        assert validators.validate_numeric_precision(
            "2.1234", "Unit price", PRICE_PRECISION, PRICE_SCALE
        )[0] is True

    @pytest.mark.parametrize("value", [Decimal("10000000000"), Decimal("-10000000000")])
    def test_too_many_integer_digits(self, value):
        """Values that overflow the column are rejected."""
        assert validators.validate_numeric_precision(value, "Stock")[0] is False

    def test_price_integer_digits(self):
        """Price columns hold 8 integer digits."""
        assert validators.validate_numeric_precision(
            "100000000", "Unit price", PRICE_PRECISION, PRICE_SCALE
        )[0] is False

    def test_not_a_number(self):
        """Text fails with the invalid number message."""
        is_valid, message = validators.validate_numeric_precision("abc", "Quantity")
        assert is_valid is False
        assert "valid number" in message
