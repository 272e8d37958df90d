"""Stock Service - material and finished-goods stock mutation.

adjust_material_stock() and adjust_product_stock() always run inside the
caller's transaction: they take a required session so the production
ledger can combine several adjustments into one atomic commit. Neither
lets stock go below zero.

get_low_stock_materials() lists materials under their minimum stock for
the low-stock report.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models import Material, Product
from src.services.database import session_scope
from src.services.exceptions import (
    MaterialNotFoundError,
    NegativeStockError,
    ProductNotFoundError,
)
from src.services.logging_utils import get_service_logger

logger = get_service_logger(__name__)


def adjust_material_stock(material_id: int, delta: Decimal, session: Session) -> Decimal:
    """Add delta (negative to deduct) to a material's stock.

    Transaction boundary: Inherits session from caller.

    Args:
        material_id: Material to adjust
        delta: Signed quantity in the material's unit
        session: Caller's session

    Returns:
        The new stock level

    Raises:
        MaterialNotFoundError: If the material does not exist
        NegativeStockError: If the result would be below zero
    """
    material = session.query(Material).filter(Material.id == material_id).first()
    if material is None:
        raise MaterialNotFoundError(material_id)

    current = Decimal(material.stock)
    delta = Decimal(delta)
    new_stock = current + delta
    if new_stock < 0:
        raise NegativeStockError("material", material_id, current, delta)

    material.stock = new_stock
    session.flush()
    logger.debug(f"Material {material_id} stock {current} -> {new_stock}")
    return new_stock


def adjust_product_stock(product_id: int, delta: int, session: Session) -> int:
    """Add delta finished units to a product's stock.

    Transaction boundary: Inherits session from caller.

    Raises:
        ProductNotFoundError: If the product does not exist
        NegativeStockError: If the result would be below zero
    """
    product = session.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise ProductNotFoundError(product_id)

    current = product.stock or 0
    new_stock = current + delta
    if new_stock < 0:
        raise NegativeStockError("product", product_id, Decimal(current), Decimal(delta))

    product.stock = new_stock
    session.flush()
    logger.debug(f"Product {product_id} stock {current} -> {new_stock}")
    return new_stock


def _get_low_stock_materials_impl(session: Session) -> List[Dict[str, Any]]:
    materials = session.query(Material).filter(Material.stock < Material.min_stock).all()

    def stock_ratio(material: Material) -> Decimal:
        minimum = Decimal(material.min_stock)
        return Decimal(material.stock) / minimum if minimum > 0 else Decimal("0")

    return [m.to_dict() for m in sorted(materials, key=lambda m: (stock_ratio(m), m.id))]


def get_low_stock_materials(session: Optional[Session] = None) -> List[Dict[str, Any]]:
    """Materials whose stock is below their minimum, most depleted first.

    Ordering is by stock / min_stock ascending.
    """
    if session is not None:
        return _get_low_stock_materials_impl(session)
    with session_scope() as session:
        return _get_low_stock_materials_impl(session)
