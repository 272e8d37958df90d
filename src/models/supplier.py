"""
Supplier model for raw material vendors.

A supplier offers raw materials at a price (see PriceEntry) and is chosen
per composition line of a product.

Example: "Acme Metals" with a tax id, phone and e-mail for purchasing.
"""

from sqlalchemy import Column, String, Text, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Supplier(BaseModel):
    """
    Supplier model representing vendors of raw materials.

    Attributes:
        name: Supplier display name (fixed once a price references it)
        tax_id: Company registration / tax number
        phone: Contact phone
        email: Contact e-mail
        notes: Optional notes

    Relationships:
        prices: PriceEntry rows quoted by this supplier
        composition_lines: Product lines that buy from this supplier
    """

    __tablename__ = "suppliers"

    name = Column(String(200), nullable=False)
    tax_id = Column(String(20), nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)

    prices = relationship("PriceEntry", back_populates="supplier")
    composition_lines = relationship("CompositionLine", back_populates="supplier")

    __table_args__ = (Index("idx_supplier_name", "name"),)

    @property
    def is_referenced(self) -> bool:
        """True once any price or composition line points at this supplier."""
        return bool(self.prices) or bool(self.composition_lines)

    def __repr__(self) -> str:
        """String representation of supplier."""
        return f"Supplier(id={self.id}, name='{self.name}')"

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert supplier to dictionary.

        Args:
            include_relationships: If True, include quoted prices

        Returns:
            Dictionary representation
        """
        result = super().to_dict(include_relationships=False)
        result["price_count"] = len(self.prices)
        if include_relationships:
            result["prices"] = [p.to_dict() for p in self.prices]
        return result
