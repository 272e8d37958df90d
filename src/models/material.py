"""
Material model for raw materials held in stock.

Materials are consumed by production runs according to product
compositions. Stock is changed by the production ledger; min_stock only
drives the low-stock report.
"""

from decimal import Decimal

from sqlalchemy import Column, String, Text, Numeric, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import QUANTITY_PRECISION, QUANTITY_SCALE


class Material(BaseModel):
    """
    Material model representing a raw material.

    Attributes:
        name: Material display name (e.g., "Steel sheet 2mm")
        unit: Unit of measure symbol (e.g., "kg", "un")
        stock: Current quantity on hand (never negative)
        min_stock: Threshold for the low-stock report
        description: Optional description

    Relationships:
        prices: PriceEntry rows, one per supplier quoting this material
        composition_lines: Product lines that use this material
    """

    __tablename__ = "materials"

    name = Column(String(200), nullable=False)
    unit = Column(String(20), nullable=False)
    stock = Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False, default=Decimal("0"))
    min_stock = Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False, default=Decimal("0"))
    description = Column(Text, nullable=True)

    prices = relationship(
        "PriceEntry",
        back_populates="material",
        cascade="all, delete-orphan",
    )
    composition_lines = relationship("CompositionLine", back_populates="material")

    __table_args__ = (
        Index("idx_material_name", "name"),
        CheckConstraint("stock >= 0", name="ck_material_stock_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_material_min_stock_non_negative"),
    )

    @property
    def is_low_stock(self) -> bool:
        """True when stock has fallen below the alert threshold."""
        return Decimal(self.stock or 0) < Decimal(self.min_stock or 0)

    def __repr__(self) -> str:
        """String representation of material."""
        return f"Material(id={self.id}, name='{self.name}', stock={self.stock} {self.unit})"

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert material to dictionary.

        Adds supplier_count and average_price computed over the material's
        price entries (average is None when nobody quotes it).
        """
        result = super().to_dict(include_relationships=False)
        prices = [Decimal(p.unit_price) for p in self.prices]
        result["supplier_count"] = len(prices)
        result["average_price"] = str(sum(prices) / len(prices)) if prices else None
        result["is_low_stock"] = self.is_low_stock
        if include_relationships:
            result["prices"] = [p.to_dict() for p in self.prices]
        return result
