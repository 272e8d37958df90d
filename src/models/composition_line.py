"""
CompositionLine model: one bill-of-materials line of a product.

Each line names a material, the supplier it is bought from and the quantity
needed per unit of product.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import QUANTITY_PRECISION, QUANTITY_SCALE


class CompositionLine(BaseModel):
    """
    Bill-of-materials line.

    Attributes:
        product_id: Foreign key to the owning Product
        material_id: Foreign key to Material
        supplier_id: Foreign key to the chosen Supplier
        quantity: Material quantity per product unit (> 0)
    """

    __tablename__ = "composition_lines"

    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    supplier_id = Column(
        Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False
    )
    quantity = Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False)

    product = relationship("Product", back_populates="composition")
    material = relationship("Material", back_populates="composition_lines")
    supplier = relationship("Supplier", back_populates="composition_lines")

    __table_args__ = (
        Index("idx_composition_product", "product_id"),
        Index("idx_composition_material", "material_id"),
        CheckConstraint("quantity > 0", name="ck_composition_quantity_positive"),
    )

    def __repr__(self) -> str:
        """String representation of composition line."""
        return (
            f"CompositionLine(product_id={self.product_id}, material_id={self.material_id}, "
            f"supplier_id={self.supplier_id}, quantity={self.quantity})"
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """Convert line to dictionary with material and supplier names."""
        result = super().to_dict(include_relationships=False)
        if self.material is not None:
            result["material_name"] = self.material.name
            result["unit"] = self.material.unit
        if self.supplier is not None:
            result["supplier_name"] = self.supplier.name
        return result
