"""Catalog Service - read access to materials, suppliers and prices.

This module is the read side the costing, simulation and production
services depend on:
- get_material / get_supplier / get_price / list_prices_for_material
- load_price_catalog(), which takes a PriceCatalog snapshot of every
  material, supplier and price in one transaction

Lookups by ID raise the matching NotFoundError; get_price returns None
when the supplier does not quote the material.

Session Management Pattern:
- All public functions accept session=None parameter
- If session provided, use it directly
- If session is None, create a new session via session_scope()
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models import Material, PriceEntry, Supplier
from src.services.database import session_scope
from src.services.dto import PriceCatalog
from src.services.exceptions import MaterialNotFoundError, SupplierNotFoundError


def _get_material_or_raise(material_id: int, session: Session) -> Material:
    material = session.query(Material).filter(Material.id == material_id).first()
    if material is None:
        raise MaterialNotFoundError(material_id)
    return material


def _get_supplier_or_raise(supplier_id: int, session: Session) -> Supplier:
    supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
    if supplier is None:
        raise SupplierNotFoundError(supplier_id)
    return supplier


def get_material(material_id: int, session: Optional[Session] = None) -> Dict[str, Any]:
    """Get a material by ID.

    Raises:
        MaterialNotFoundError: If the material does not exist
    """
    if session is not None:
        return _get_material_or_raise(material_id, session).to_dict()
    with session_scope() as session:
        return _get_material_or_raise(material_id, session).to_dict()


def get_supplier(supplier_id: int, session: Optional[Session] = None) -> Dict[str, Any]:
    """Get a supplier by ID.

    Raises:
        SupplierNotFoundError: If the supplier does not exist
    """
    if session is not None:
        return _get_supplier_or_raise(supplier_id, session).to_dict()
    with session_scope() as session:
        return _get_supplier_or_raise(supplier_id, session).to_dict()


def _get_price_impl(material_id: int, supplier_id: int, session: Session) -> Optional[Decimal]:
    _get_material_or_raise(material_id, session)
    _get_supplier_or_raise(supplier_id, session)
    entry = (
        session.query(PriceEntry)
        .filter(PriceEntry.material_id == material_id, PriceEntry.supplier_id == supplier_id)
        .first()
    )
    return Decimal(entry.unit_price) if entry is not None else None


def get_price(
    material_id: int, supplier_id: int, session: Optional[Session] = None
) -> Optional[Decimal]:
    """Get the unit price a supplier charges for a material.

    Returns:
        Decimal unit price, or None if the supplier does not quote it

    Raises:
        MaterialNotFoundError: If the material does not exist
        SupplierNotFoundError: If the supplier does not exist
    """
    if session is not None:
        return _get_price_impl(material_id, supplier_id, session)
    with session_scope() as session:
        return _get_price_impl(material_id, supplier_id, session)


def _list_prices_for_material_impl(material_id: int, session: Session) -> List[Dict[str, Any]]:
    _get_material_or_raise(material_id, session)
    entries = (
        session.query(PriceEntry)
        .filter(PriceEntry.material_id == material_id)
        .order_by(PriceEntry.unit_price, PriceEntry.supplier_id)
        .all()
    )
    return [entry.to_dict() for entry in entries]


def list_prices_for_material(
    material_id: int, session: Optional[Session] = None
) -> List[Dict[str, Any]]:
    """List every supplier quote for a material, cheapest first.

    Equal prices are ordered by supplier ID.

    Raises:
        MaterialNotFoundError: If the material does not exist
    """
    if session is not None:
        return _list_prices_for_material_impl(material_id, session)
    with session_scope() as session:
        return _list_prices_for_material_impl(material_id, session)


def _load_price_catalog_impl(session: Session) -> PriceCatalog:
    prices = session.query(
        PriceEntry.material_id, PriceEntry.supplier_id, PriceEntry.unit_price
    ).all()
    materials = session.query(Material.id, Material.name, Material.unit).all()
    suppliers = session.query(Supplier.id, Supplier.name).all()
    return PriceCatalog.build(
        prices=[(m_id, s_id, Decimal(price)) for m_id, s_id, price in prices],
        materials=[(m_id, name, unit) for m_id, name, unit in materials],
        suppliers=[(s_id, name) for s_id, name in suppliers],
    )


def load_price_catalog(session: Optional[Session] = None) -> PriceCatalog:
    """Snapshot all materials, suppliers and prices.

    The snapshot is immutable and detached from the session; the pure
    costing and simulation functions run against it.
    """
    if session is not None:
        return _load_price_catalog_impl(session)
    with session_scope() as session:
        return _load_price_catalog_impl(session)
