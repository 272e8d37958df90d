"""
Constants for the BOM Cost Tracker application.

This module defines system-wide constants including:
- Application metadata
- Units of measure for raw materials
- Field limits and money precision
- Error message templates
"""

from decimal import Decimal
from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "BOM Cost Tracker"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"
DATABASE_FILENAME = "bom_tracker.db"

# ============================================================================
# Units of Measure
# ============================================================================

# Weight units
WEIGHT_UNITS: List[str] = [
    "g",  # Gram
    "kg",  # Kilogram
    "t",  # Metric ton
]

# Volume units
VOLUME_UNITS: List[str] = [
    "ml",  # Milliliter
    "l",  # Liter
    "m3",  # Cubic meter
]

# Length and area units
DIMENSION_UNITS: List[str] = [
    "cm",
    "m",
    "m2",
]

# Count/discrete units
COUNT_UNITS: List[str] = [
    "un",  # Unit
    "pc",  # Piece
    "box",
    "roll",
]

ALL_UNITS: List[str] = WEIGHT_UNITS + VOLUME_UNITS + DIMENSION_UNITS + COUNT_UNITS

# ============================================================================
# Field Limits
# ============================================================================

MAX_NAME_LENGTH = 200
MAX_TAX_ID_LENGTH = 20
MAX_PHONE_LENGTH = 30
MAX_EMAIL_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 2000

# ============================================================================
# Money and Margins
# ============================================================================

# Stored numeric columns: (total digits, digits after the point)
QUANTITY_PRECISION = 14
QUANTITY_SCALE = 4
PRICE_PRECISION = 12
PRICE_SCALE = 4

# Display precision for money values (persisted values keep 4 places)
MONEY_QUANTUM = Decimal("0.01")
PERCENT_QUANTUM = Decimal("0.01")

# Products with a margin below this percentage are reported as low margin
DEFAULT_LOW_MARGIN_THRESHOLD = Decimal("20")

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_POSITIVE = "Value must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Value must be zero or greater"
ERROR_INVALID_INTEGER = "Value must be a whole number"
ERROR_INVALID_UNIT = "Invalid unit of measure"
ERROR_TOO_MANY_DECIMALS = "Must have at most {scale} decimal places"
ERROR_TOO_LARGE = "Must be less than {limit}"
