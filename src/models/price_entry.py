"""
PriceEntry model: the price catalog.

One row per (material, supplier) pair holding the supplier's unit price
for that material. Writing a price for an existing pair replaces it.
"""

from sqlalchemy import (
    Column,
    Integer,
    Numeric,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import PRICE_PRECISION, PRICE_SCALE


class PriceEntry(BaseModel):
    """
    Unit price quoted by one supplier for one material.

    Attributes:
        material_id: Foreign key to Material
        supplier_id: Foreign key to Supplier
        unit_price: Price per material unit (>= 0)
    """

    __tablename__ = "supplier_prices"

    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False
    )
    supplier_id = Column(
        Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False
    )
    unit_price = Column(Numeric(PRICE_PRECISION, PRICE_SCALE), nullable=False)

    material = relationship("Material", back_populates="prices")
    supplier = relationship("Supplier", back_populates="prices")

    __table_args__ = (
        UniqueConstraint("material_id", "supplier_id", name="uq_supplier_price_pair"),
        Index("idx_supplier_price_material", "material_id"),
        Index("idx_supplier_price_supplier", "supplier_id"),
        CheckConstraint("unit_price >= 0", name="ck_supplier_price_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of price entry."""
        return (
            f"PriceEntry(material_id={self.material_id}, "
            f"supplier_id={self.supplier_id}, unit_price={self.unit_price})"
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """Convert price entry to dictionary with material and supplier names."""
        result = super().to_dict(include_relationships=False)
        result["material_name"] = self.material.name if self.material else None
        result["material_unit"] = self.material.unit if self.material else None
        result["supplier_name"] = self.supplier.name if self.supplier else None
        return result
