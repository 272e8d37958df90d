"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .enums import ProductionRunStatus
from .supplier import Supplier
from .material import Material
from .price_entry import PriceEntry
from .product import Product
from .composition_line import CompositionLine
from .production_run import ProductionRun
from .production_consumption import ProductionConsumption

__all__ = [
    "Base",
    "BaseModel",
    # Catalog
    "Supplier",
    "Material",
    "PriceEntry",
    # Products
    "Product",
    "CompositionLine",
    # Production ledger
    "ProductionRun",
    "ProductionConsumption",
    "ProductionRunStatus",
]
