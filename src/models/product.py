"""
Product model for manufactured products.

A product's cost is derived from its composition (bill of materials); its
stock counts finished goods added by completed production runs.
"""

from decimal import Decimal

from sqlalchemy import Column, String, Integer, Numeric, Text, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import PRICE_PRECISION, PRICE_SCALE


class Product(BaseModel):
    """
    Product model representing a manufactured item.

    Attributes:
        name: Product display name
        selling_price: Price charged per unit (>= 0)
        stock: Finished goods on hand
        description: Optional description

    Relationships:
        composition: Ordered CompositionLine rows (insertion order)
        production_runs: Production runs of this product
    """

    __tablename__ = "products"

    name = Column(String(200), nullable=False)
    selling_price = Column(Numeric(PRICE_PRECISION, PRICE_SCALE), nullable=False, default=Decimal("0"))
    stock = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)

    composition = relationship(
        "CompositionLine",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="CompositionLine.id",
    )
    production_runs = relationship("ProductionRun", back_populates="product")

    __table_args__ = (
        Index("idx_product_name", "name"),
        CheckConstraint("selling_price >= 0", name="ck_product_selling_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of product."""
        return f"Product(id={self.id}, name='{self.name}')"

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert product to dictionary.

        Args:
            include_relationships: If True, include composition lines

        Returns:
            Dictionary representation
        """
        result = super().to_dict(include_relationships=False)
        result["line_count"] = len(self.composition)
        if include_relationships:
            result["composition"] = [line.to_dict() for line in self.composition]
        return result
