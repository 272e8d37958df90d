"""DTO formatting utilities for the service layer.

Money and percentages leave the services as 2-decimal strings so JSON
serialization never goes through float.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from src.utils.constants import MONEY_QUANTUM, PERCENT_QUANTUM

Number = Union[Decimal, float, int, str, None]


def cost_to_string(value: Number) -> str:
    """
    Convert a cost value to a 2-decimal string.

    Args:
        value: Cost value (Decimal, float, int, str, or None)

    Returns:
        String formatted as "12.34"; "0.00" if value is None.

    Examples:
        >>> cost_to_string(Decimal("12.345"))
        '12.35'
        >>> cost_to_string(Decimal("-5"))
        '-5.00'
        >>> cost_to_string(None)
        '0.00'
    """
    if value is None:
        return "0.00"

    decimal_value = Decimal(str(value))
    return str(decimal_value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP))


def percent_to_string(value: Number) -> str:
    """
    Convert a margin percentage to a 2-decimal string with a percent sign.

    Examples:
        >>> percent_to_string(Decimal("50"))
        '50.00%'
        >>> percent_to_string(Decimal("33.33333"))
        '33.33%'
    """
    if value is None:
        return "0.00%"

    decimal_value = Decimal(str(value))
    return f"{decimal_value.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)}%"
