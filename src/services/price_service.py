"""Price Service - the supplier price catalog.

Each (material, supplier) pair has at most one price. upsert_price()
inserts the price or replaces the existing one for the pair; it never
appends a second row.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models import Material, PriceEntry, Supplier
from src.services.database import session_scope
from src.services.exceptions import MaterialNotFoundError, SupplierNotFoundError, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import PRICE_PRECISION, PRICE_SCALE
from src.utils.validators import (
    to_decimal,
    validate_non_negative_number,
    validate_numeric_precision,
)

logger = get_service_logger(__name__)


def upsert_price(
    material_id: int,
    supplier_id: int,
    unit_price: Any,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """Set the unit price a supplier charges for a material.

    Args:
        material_id: Material being quoted
        supplier_id: Supplier quoting it
        unit_price: Price per material unit (>= 0)
        session: Optional database session

    Returns:
        Price entry as dictionary, with "created" True for a new pair and
        False when an existing price was replaced

    Raises:
        ValidationError: If unit_price is not a non-negative number
        MaterialNotFoundError: If the material does not exist
        SupplierNotFoundError: If the supplier does not exist
    """
    if session is not None:
        return _upsert_price_impl(material_id, supplier_id, unit_price, session)
    with session_scope() as session:
        return _upsert_price_impl(material_id, supplier_id, unit_price, session)


def _upsert_price_impl(
    material_id: int, supplier_id: int, unit_price: Any, session: Session
) -> Dict[str, Any]:
    ok, msg = validate_non_negative_number(unit_price, "Unit price")
    if ok:
        ok, msg = validate_numeric_precision(unit_price, "Unit price", PRICE_PRECISION, PRICE_SCALE)
    if not ok:
        raise ValidationError([msg])

    if session.query(Material.id).filter(Material.id == material_id).first() is None:
        raise MaterialNotFoundError(material_id)
    if session.query(Supplier.id).filter(Supplier.id == supplier_id).first() is None:
        raise SupplierNotFoundError(supplier_id)

    price = to_decimal(unit_price)
    entry = (
        session.query(PriceEntry)
        .filter(PriceEntry.material_id == material_id, PriceEntry.supplier_id == supplier_id)
        .first()
    )
    created = entry is None
    if created:
        entry = PriceEntry(material_id=material_id, supplier_id=supplier_id, unit_price=price)
        session.add(entry)
    else:
        entry.unit_price = price
    session.flush()

    log_operation(
        logger,
        "upsert_price",
        "created" if created else "replaced",
        material_id=material_id,
        supplier_id=supplier_id,
        unit_price=str(price),
    )
    result = entry.to_dict()
    result["created"] = created
    return result


def get_all_prices(session: Optional[Session] = None) -> List[Dict[str, Any]]:
    """All price entries ordered by material name then supplier name."""
    if session is not None:
        return _get_all_prices_impl(session)
    with session_scope() as session:
        return _get_all_prices_impl(session)


def _get_all_prices_impl(session: Session) -> List[Dict[str, Any]]:
    entries = (
        session.query(PriceEntry)
        .join(Material, PriceEntry.material_id == Material.id)
        .join(Supplier, PriceEntry.supplier_id == Supplier.id)
        .order_by(Material.name, Supplier.name)
        .all()
    )
    return [entry.to_dict() for entry in entries]


def get_cheapest_price(
    material_id: int, session: Optional[Session] = None
) -> Optional[Dict[str, Any]]:
    """Lowest quote for a material (ties broken by supplier ID), or None."""
    if session is not None:
        return _get_cheapest_price_impl(material_id, session)
    with session_scope() as session:
        return _get_cheapest_price_impl(material_id, session)


def _get_cheapest_price_impl(material_id: int, session: Session) -> Optional[Dict[str, Any]]:
    entry = (
        session.query(PriceEntry)
        .filter(PriceEntry.material_id == material_id)
        .order_by(PriceEntry.unit_price, PriceEntry.supplier_id)
        .first()
    )
    return entry.to_dict() if entry else None


def delete_price(material_id: int, supplier_id: int, session: Optional[Session] = None) -> bool:
    """Remove a supplier's price for a material.

    Composition lines using the pair stay in place and cost as unresolved.

    Returns:
        True if a price was deleted, False if the pair had no price
    """
    if session is not None:
        return _delete_price_impl(material_id, supplier_id, session)
    with session_scope() as session:
        return _delete_price_impl(material_id, supplier_id, session)


def _delete_price_impl(material_id: int, supplier_id: int, session: Session) -> bool:
    deleted = (
        session.query(PriceEntry)
        .filter(PriceEntry.material_id == material_id, PriceEntry.supplier_id == supplier_id)
        .delete(synchronize_session="fetch")
    )
    if deleted:
        log_operation(
            logger, "delete_price", "success", material_id=material_id, supplier_id=supplier_id
        )
    return bool(deleted)

