"""Material Service - CRUD operations for raw materials.

Stock can be set when a material is created; afterwards it changes only
through the production ledger (see stock_service), so update_material
refuses a 'stock' field. Listing includes how many suppliers quote each
material and their average price.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.models import CompositionLine, Material, ProductionConsumption
from src.services.database import session_scope
from src.services.exceptions import MaterialInUse, MaterialNotFoundError, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from src.utils.validators import (
    to_decimal,
    validate_non_negative_number,
    validate_numeric_precision,
    validate_required_string,
    validate_string_length,
    validate_unit,
)

logger = get_service_logger(__name__)

UPDATABLE_FIELDS = ("name", "unit", "min_stock", "description")


def _validate_material_data(data: Dict[str, Any], partial: bool) -> List[str]:
    errors = []
    if not partial or "name" in data:
        ok, msg = validate_required_string(data.get("name"), "Name")
        if not ok:
            errors.append(msg)
        ok, msg = validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Name")
        if not ok:
            errors.append(msg)
    if not partial or "unit" in data:
        ok, msg = validate_unit(data.get("unit"))
        if not ok:
            errors.append(msg)
    for field_name in ("stock", "min_stock"):
        if field_name in data and data[field_name] is not None:
            ok, msg = validate_non_negative_number(data[field_name], field_name)
            if ok:
                ok, msg = validate_numeric_precision(data[field_name], field_name)
            if not ok:
                errors.append(msg)
    ok, msg = validate_string_length(data.get("description"), MAX_DESCRIPTION_LENGTH, "Description")
    if not ok:
        errors.append(msg)
    return errors


def create_material(
    name: str,
    unit: str,
    stock: Any = 0,
    min_stock: Any = 0,
    description: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """Create a new material.

    Args:
        name: Material name (required)
        unit: Unit of measure symbol, e.g. "kg" or "un"
        stock: Opening stock (>= 0)
        min_stock: Low-stock threshold (>= 0)
        description: Optional description
        session: Optional database session

    Returns:
        Created material as dictionary

    Raises:
        ValidationError: If any field is invalid
    """
    data = {
        "name": name,
        "unit": unit,
        "stock": stock,
        "min_stock": min_stock,
        "description": description,
    }
    if session is not None:
        return _create_material_impl(data, session)
    with session_scope() as session:
        return _create_material_impl(data, session)


def _create_material_impl(data: Dict[str, Any], session: Session) -> Dict[str, Any]:
    errors = _validate_material_data(data, partial=False)
    if errors:
        raise ValidationError(errors)

    material = Material(
        name=data["name"].strip(),
        unit=data["unit"].lower(),
        stock=to_decimal(data["stock"] or 0),
        min_stock=to_decimal(data["min_stock"] or 0),
        description=data["description"],
    )
    session.add(material)
    session.flush()
    log_operation(logger, "create_material", "success", material_id=material.id)
    return material.to_dict()


def get_material(material_id: int, session: Optional[Session] = None) -> Optional[Dict[str, Any]]:
    """Get material by ID, or None if not found."""
    if session is not None:
        return _get_material_impl(material_id, session)
    with session_scope() as session:
        return _get_material_impl(material_id, session)


def _get_material_impl(material_id: int, session: Session) -> Optional[Dict[str, Any]]:
    material = session.query(Material).filter(Material.id == material_id).first()
    return material.to_dict(include_relationships=True) if material else None


def get_all_materials(session: Optional[Session] = None) -> List[Dict[str, Any]]:
    """Get all materials sorted by name.

    Each entry carries supplier_count and average_price (None when no
    supplier quotes the material).
    """
    if session is not None:
        return _get_all_materials_impl(session)
    with session_scope() as session:
        return _get_all_materials_impl(session)


def _get_all_materials_impl(session: Session) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in session.query(Material).order_by(Material.name, Material.id).all()]


def update_material(
    material_id: int,
    session: Optional[Session] = None,
    **kwargs,
) -> Dict[str, Any]:
    """Update material attributes.

    Args:
        material_id: Material ID
        session: Optional database session
        **kwargs: Fields to update (name, unit, min_stock, description)

    Raises:
        MaterialNotFoundError: If material not found
        ValidationError: If a value is invalid or 'stock' is passed
    """
    if session is not None:
        return _update_material_impl(material_id, session, **kwargs)
    with session_scope() as session:
        return _update_material_impl(material_id, session, **kwargs)


def _update_material_impl(material_id: int, session: Session, **kwargs) -> Dict[str, Any]:
    if "stock" in kwargs:
        raise ValidationError(["stock: Stock changes only through production runs"])
    unknown = sorted(set(kwargs) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError([f"Unknown material field(s): {', '.join(unknown)}"])

    material = session.query(Material).filter(Material.id == material_id).first()
    if material is None:
        raise MaterialNotFoundError(material_id)

    errors = _validate_material_data(kwargs, partial=True)
    if errors:
        raise ValidationError(errors)

    if "name" in kwargs:
        material.name = kwargs["name"].strip()
    if "unit" in kwargs:
        material.unit = kwargs["unit"].lower()
    if "min_stock" in kwargs:
        material.min_stock = to_decimal(kwargs["min_stock"] or 0)
    if "description" in kwargs:
        material.description = kwargs["description"]

    session.flush()
    return material.to_dict()


def delete_material(material_id: int, session: Optional[Session] = None) -> bool:
    """Delete a material and its prices.

    Raises:
        MaterialNotFoundError: If material not found
        MaterialInUse: If a product composition or a production run uses the material
    """
    if session is not None:
        return _delete_material_impl(material_id, session)
    with session_scope() as session:
        return _delete_material_impl(material_id, session)


def _delete_material_impl(material_id: int, session: Session) -> bool:
    material = session.query(Material).filter(Material.id == material_id).first()
    if material is None:
        raise MaterialNotFoundError(material_id)

    deps = {
        "products": session.query(func.count(func.distinct(CompositionLine.product_id)))
        .filter(CompositionLine.material_id == material_id)
        .scalar(),
        "production_consumptions": session.query(ProductionConsumption)
        .filter(ProductionConsumption.material_id == material_id)
        .count(),
    }
    if any(deps.values()):
        raise MaterialInUse(material_id, deps)

    session.delete(material)
    session.flush()
    log_operation(logger, "delete_material", "success", material_id=material_id)
    return True


def get_material_stock(material_id: int, session: Optional[Session] = None) -> Decimal:
    """Current stock of a material.

    Raises:
        MaterialNotFoundError: If material not found
    """
    if session is not None:
        return _get_material_stock_impl(material_id, session)
    with session_scope() as session:
        return _get_material_stock_impl(material_id, session)


def _get_material_stock_impl(material_id: int, session: Session) -> Decimal:
    stock = session.query(Material.stock).filter(Material.id == material_id).scalar()
    if stock is None:
        raise MaterialNotFoundError(material_id)
    return Decimal(stock)
