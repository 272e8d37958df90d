"""
ProductionRun model for batch manufacturing runs.

A run is created pending with its materials already deducted from stock,
then moves once to completed (finished goods added) or cancelled
(materials returned). The deductions are kept in ProductionConsumption so
a cancellation restores exactly what was taken.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import ProductionRunStatus


class ProductionRun(BaseModel):
    """
    ProductionRun model for tracking batch production.

    Attributes:
        product_id: Foreign key to the Product being made
        batch_quantity: Number of product units in the batch (> 0)
        status: 'pending', 'completed' or 'cancelled'
        completed_at: When the run was completed
        cancelled_at: When the run was cancelled
        notes: Optional notes
    """

    __tablename__ = "production_runs"

    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    batch_quantity = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=ProductionRunStatus.PENDING.value)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    product = relationship("Product", back_populates="production_runs")
    consumptions = relationship(
        "ProductionConsumption",
        back_populates="production_run",
        cascade="all, delete-orphan",
        order_by="ProductionConsumption.id",
    )

    __table_args__ = (
        Index("idx_production_run_product", "product_id"),
        Index("idx_production_run_status", "status"),
        Index("idx_production_run_created_at", "created_at"),
        CheckConstraint("batch_quantity > 0", name="ck_production_run_batch_positive"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_production_run_status",
        ),
    )

    @property
    def run_status(self) -> ProductionRunStatus:
        """Status as an enum member."""
        return ProductionRunStatus(self.status)

    def __repr__(self) -> str:
        """String representation of production run."""
        return (
            f"ProductionRun(id={self.id}, product_id={self.product_id}, "
            f"batch_quantity={self.batch_quantity}, status='{self.status}')"
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert production run to dictionary.

        Args:
            include_relationships: If True, include product name and consumptions

        Returns:
            Dictionary representation
        """
        result = super().to_dict(include_relationships=False)
        if include_relationships:
            result["product_name"] = self.product.name if self.product else None
            result["consumptions"] = [c.to_dict() for c in self.consumptions]
        return result
