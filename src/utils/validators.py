"""
Input validation functions for the BOM Cost Tracker.

Every validator returns an (is_valid, error_message) tuple so services can
gather all problems with one request and raise a single ValidationError.
Numeric validators work on Decimal so that quantities and prices are never
rounded through float.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from .constants import (
    ALL_UNITS,
    ERROR_INVALID_INTEGER,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_UNIT,
    ERROR_REQUIRED_FIELD,
    ERROR_TOO_LARGE,
    ERROR_TOO_MANY_DECIMALS,
    QUANTITY_PRECISION,
    QUANTITY_SCALE,
)


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a user-supplied number to Decimal.

    Floats go through str() so 2.5 becomes Decimal("2.5") rather than its
    binary expansion. Booleans are rejected.

    Returns:
        Decimal value, or None if the value is not a finite number
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """Validate that a string doesn't exceed maximum length."""
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    number = to_decimal(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    number = to_decimal(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def validate_positive_integer(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a whole number greater than zero.

    Integral Decimals and strings such as "3" are accepted; 2.5 and True
    are not.
    """
    number = to_decimal(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number != number.to_integral_value():
        return False, f"{field_name}: {ERROR_INVALID_INTEGER}"
    if number <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_numeric_precision(
    value: Any,
    field_name: str = "Field",
    precision: int = QUANTITY_PRECISION,
    scale: int = QUANTITY_SCALE,
) -> Tuple[bool, str]:
    """
    Validate that a number fits a Numeric(precision, scale) column unchanged.

    Values with more decimal places than the column keeps are rejected
    rather than rounded on write, as are values with too many integer digits.

    Args:
        value: The value to validate
        field_name: Name of the field for error messages
        precision: Total significant digits the column stores
        scale: Digits the column stores after the decimal point

    Returns:
        Tuple of (is_valid, error_message)
    """
    number = to_decimal(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"

    limit = Decimal(10) ** (precision - scale)
    if abs(number) >= limit:
        return False, f"{field_name}: {ERROR_TOO_LARGE.format(limit=limit)}"

    # Trailing zeros are fine: 2.50000 stores as 2.5000
    if number != number.quantize(Decimal(1).scaleb(-scale)):
        return False, f"{field_name}: {ERROR_TOO_MANY_DECIMALS.format(scale=scale)}"
    return True, ""


def validate_unit(unit: Optional[str], field_name: str = "Unit") -> Tuple[bool, str]:
    """Validate that a unit is in the list of known units."""
    if not unit:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"

    if unit.lower() not in [u.lower() for u in ALL_UNITS]:
        return False, f"{field_name}: {ERROR_INVALID_UNIT}"

    return True, ""
