"""Supplier Service - CRUD operations for supplier management.

Key rules:
- Contact fields (tax_id, phone, email, notes) can always be updated
- The name is fixed once a price or composition line references the supplier
- A referenced supplier cannot be deleted

Example Usage:
    >>> from src.services.supplier_service import create_supplier, get_all_suppliers
    >>>
    >>> supplier = create_supplier(name="Acme Metals", email="sales@acme.test")
    >>> supplier["name"]
    'Acme Metals'
    >>> [s["name"] for s in get_all_suppliers()]
    ['Acme Metals']
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models import CompositionLine, PriceEntry, Supplier
from src.services.database import session_scope
from src.services.exceptions import SupplierInUse, SupplierNotFoundError, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_TAX_ID_LENGTH,
)
from src.utils.validators import validate_required_string, validate_string_length

logger = get_service_logger(__name__)

CONTACT_FIELDS = ("tax_id", "phone", "email", "notes")
UPDATABLE_FIELDS = ("name",) + CONTACT_FIELDS

_FIELD_LIMITS = {
    "name": MAX_NAME_LENGTH,
    "tax_id": MAX_TAX_ID_LENGTH,
    "phone": MAX_PHONE_LENGTH,
    "email": MAX_EMAIL_LENGTH,
    "notes": MAX_NOTES_LENGTH,
}


def _validate_fields(data: Dict[str, Any], require_name: bool) -> None:
    errors = []
    if require_name or "name" in data:
        ok, msg = validate_required_string(data.get("name"), "Name")
        if not ok:
            errors.append(msg)
    for field_name, limit in _FIELD_LIMITS.items():
        ok, msg = validate_string_length(data.get(field_name), limit, field_name)
        if not ok:
            errors.append(msg)
    if errors:
        raise ValidationError(errors)


def _dependency_counts(supplier_id: int, session: Session) -> Dict[str, int]:
    return {
        "prices": session.query(PriceEntry).filter(PriceEntry.supplier_id == supplier_id).count(),
        "composition_lines": session.query(CompositionLine)
        .filter(CompositionLine.supplier_id == supplier_id)
        .count(),
    }


def create_supplier(
    name: str,
    tax_id: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    notes: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """Create a new supplier.

    Args:
        name: Supplier name (required)
        tax_id: Company registration / tax number (optional)
        phone: Contact phone (optional)
        email: Contact e-mail (optional)
        notes: Additional notes (optional)
        session: Optional database session for transactional atomicity

    Returns:
        Dict[str, Any]: Created supplier as dictionary

    Raises:
        ValidationError: If name is missing or a field is too long
    """
    data = {"name": name, "tax_id": tax_id, "phone": phone, "email": email, "notes": notes}
    if session is not None:
        return _create_supplier_impl(data, session)
    with session_scope() as session:
        return _create_supplier_impl(data, session)


def _create_supplier_impl(data: Dict[str, Any], session: Session) -> Dict[str, Any]:
    """Implementation of create_supplier."""
    _validate_fields(data, require_name=True)
    data["name"] = data["name"].strip()

    supplier = Supplier(**data)
    session.add(supplier)
    session.flush()
    log_operation(logger, "create_supplier", "success", supplier_id=supplier.id)
    return supplier.to_dict()


def get_supplier(supplier_id: int, session: Optional[Session] = None) -> Optional[Dict[str, Any]]:
    """Get supplier by ID.

    Returns:
        Dict[str, Any]: Supplier data as dictionary, or None if not found
    """
    if session is not None:
        return _get_supplier_impl(supplier_id, session)
    with session_scope() as session:
        return _get_supplier_impl(supplier_id, session)


def _get_supplier_impl(supplier_id: int, session: Session) -> Optional[Dict[str, Any]]:
    """Implementation of get_supplier."""
    supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
    return supplier.to_dict() if supplier else None


def get_all_suppliers(session: Optional[Session] = None) -> List[Dict[str, Any]]:
    """Get all suppliers sorted by name."""
    if session is not None:
        return _get_all_suppliers_impl(session)
    with session_scope() as session:
        return _get_all_suppliers_impl(session)


def _get_all_suppliers_impl(session: Session) -> List[Dict[str, Any]]:
    """Implementation of get_all_suppliers."""
    return [s.to_dict() for s in session.query(Supplier).order_by(Supplier.name, Supplier.id).all()]


def update_supplier(
    supplier_id: int,
    session: Optional[Session] = None,
    **kwargs,
) -> Dict[str, Any]:
    """Update supplier attributes.

    Args:
        supplier_id: Supplier ID
        session: Optional database session
        **kwargs: Fields to update (name, tax_id, phone, email, notes)

    Returns:
        Dict[str, Any]: Updated supplier as dictionary

    Raises:
        SupplierNotFoundError: If supplier not found
        SupplierInUse: If renaming a supplier that is already referenced
        ValidationError: If an unknown field is given or a value is invalid
    """
    if session is not None:
        return _update_supplier_impl(supplier_id, session, **kwargs)
    with session_scope() as session:
        return _update_supplier_impl(supplier_id, session, **kwargs)


def _update_supplier_impl(supplier_id: int, session: Session, **kwargs) -> Dict[str, Any]:
    """Implementation of update_supplier."""
    unknown = sorted(set(kwargs) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError([f"Unknown supplier field(s): {', '.join(unknown)}"])

    supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise SupplierNotFoundError(supplier_id)

    _validate_fields(kwargs, require_name=False)

    if "name" in kwargs:
        new_name = kwargs["name"].strip()
        if new_name != supplier.name:
            deps = _dependency_counts(supplier_id, session)
            if any(deps.values()):
                raise SupplierInUse(supplier_id, deps)
        kwargs["name"] = new_name

    for key, value in kwargs.items():
        setattr(supplier, key, value)

    session.flush()
    return supplier.to_dict()


def delete_supplier(supplier_id: int, session: Optional[Session] = None) -> bool:
    """Delete a supplier that nothing references.

    Raises:
        SupplierNotFoundError: If supplier not found
        SupplierInUse: If prices or composition lines reference the supplier
    """
    if session is not None:
        return _delete_supplier_impl(supplier_id, session)
    with session_scope() as session:
        return _delete_supplier_impl(supplier_id, session)


def _delete_supplier_impl(supplier_id: int, session: Session) -> bool:
    """Implementation of delete_supplier."""
    supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise SupplierNotFoundError(supplier_id)

    deps = _dependency_counts(supplier_id, session)
    if any(deps.values()):
        raise SupplierInUse(supplier_id, deps)

    session.delete(supplier)
    session.flush()
    log_operation(logger, "delete_supplier", "success", supplier_id=supplier_id)
    return True
