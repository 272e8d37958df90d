"""
ProductionConsumption model: material deductions of a production run.

Each row records how much of one material a run took from stock when it
was created. Cancelling the run adds these quantities back, so the
restoration does not depend on the product's current composition.
"""

from sqlalchemy import (
    Column,
    Integer,
    ForeignKey,
    Index,
    Numeric,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import QUANTITY_PRECISION, QUANTITY_SCALE


class ProductionConsumption(BaseModel):
    """
    Material deduction ledger entry.

    Attributes:
        production_run_id: Foreign key to parent ProductionRun
        material_id: Foreign key to the Material deducted
        quantity: Amount deducted (> 0), in the material's unit
    """

    __tablename__ = "production_consumptions"

    production_run_id = Column(
        Integer,
        ForeignKey("production_runs.id", ondelete="CASCADE"),
        nullable=False,
    )
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    quantity = Column(Numeric(QUANTITY_PRECISION, QUANTITY_SCALE), nullable=False)

    production_run = relationship("ProductionRun", back_populates="consumptions")
    material = relationship("Material")

    __table_args__ = (
        Index("idx_prod_consumption_run", "production_run_id"),
        Index("idx_prod_consumption_material", "material_id"),
        CheckConstraint("quantity > 0", name="ck_prod_consumption_quantity_positive"),
    )

    def __repr__(self) -> str:
        """String representation of production consumption."""
        return (
            f"ProductionConsumption(id={self.id}, "
            f"production_run_id={self.production_run_id}, "
            f"material_id={self.material_id}, quantity={self.quantity})"
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """Convert consumption to dictionary with the material name."""
        result = super().to_dict(include_relationships=False)
        if self.material is not None:
            result["material_name"] = self.material.name
            result["unit"] = self.material.unit
        return result
