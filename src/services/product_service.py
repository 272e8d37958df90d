"""Product Service - manufactured products and their compositions.

A product's composition (bill of materials) is written together with the
product: create_product() and update_product() validate every line first
and then replace the whole composition in one transaction. Lines keep their
insertion order.

get_composition() returns the composition as CompositionItem values, the
input format of the costing, simulation and production services.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from src.models import CompositionLine, Material, Product, ProductionRun, Supplier
from src.services.database import session_scope
from src.services.dto import CompositionItem
from src.services.exceptions import (
    MaterialNotFoundError,
    ProductInUse,
    ProductNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    PRICE_PRECISION,
    PRICE_SCALE,
)
from src.utils.validators import (
    to_decimal,
    validate_non_negative_number,
    validate_numeric_precision,
    validate_positive_integer,
    validate_positive_number,
    validate_required_string,
    validate_string_length,
)

logger = get_service_logger(__name__)

UPDATABLE_FIELDS = ("name", "selling_price", "description", "composition")


def _validate_lines(lines: Iterable[Dict[str, Any]]) -> Tuple[List[CompositionItem], List[str]]:
    """Check line shape and quantities; returns parsed items and error messages."""
    items: List[CompositionItem] = []
    errors: List[str] = []
    for index, line in enumerate(lines, start=1):
        missing = [key for key in ("material_id", "supplier_id", "quantity") if line.get(key) is None]
        if missing:
            errors.append(f"Line {index}: missing {', '.join(missing)}")
            continue
        line_errors = []
        for key in ("material_id", "supplier_id"):
            ok, msg = validate_positive_integer(line[key], f"Line {index} {key}")
            if not ok:
                line_errors.append(msg)
        ok, msg = validate_positive_number(line["quantity"], f"Line {index} quantity")
        if ok:
            ok, msg = validate_numeric_precision(line["quantity"], f"Line {index} quantity")
        if not ok:
            line_errors.append(msg)
        if line_errors:
            errors.extend(line_errors)
            continue
        items.append(
            CompositionItem(
                material_id=int(to_decimal(line["material_id"])),
                supplier_id=int(to_decimal(line["supplier_id"])),
                quantity=to_decimal(line["quantity"]),
            )
        )
    return items, errors


def _validate_product_fields(data: Dict[str, Any], partial: bool) -> List[str]:
    errors = []
    if not partial or "name" in data:
        ok, msg = validate_required_string(data.get("name"), "Name")
        if not ok:
            errors.append(msg)
        ok, msg = validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Name")
        if not ok:
            errors.append(msg)
    if not partial or "selling_price" in data:
        ok, msg = validate_non_negative_number(data.get("selling_price"), "Selling price")
        if ok:
            ok, msg = validate_numeric_precision(
                data.get("selling_price"), "Selling price", PRICE_PRECISION, PRICE_SCALE
            )
        if not ok:
            errors.append(msg)
    ok, msg = validate_string_length(data.get("description"), MAX_DESCRIPTION_LENGTH, "Description")
    if not ok:
        errors.append(msg)
    return errors


def _check_references(items: Iterable[CompositionItem], session: Session) -> None:
    """Raise NotFoundError for the first line naming a missing material or supplier."""
    for item in items:
        if session.query(Material.id).filter(Material.id == item.material_id).first() is None:
            raise MaterialNotFoundError(item.material_id)
        if session.query(Supplier.id).filter(Supplier.id == item.supplier_id).first() is None:
            raise SupplierNotFoundError(item.supplier_id)


def _replace_composition(product: Product, items: List[CompositionItem], session: Session) -> None:
    product.composition.clear()
    session.flush()
    for item in items:
        product.composition.append(
            CompositionLine(
                material_id=item.material_id,
                supplier_id=item.supplier_id,
                quantity=item.quantity,
            )
        )
    session.flush()


def _load_product(product_id: int, session: Session) -> Optional[Product]:
    return (
        session.query(Product)
        .options(selectinload(Product.composition))
        .filter(Product.id == product_id)
        .first()
    )


def create_product(
    name: str,
    selling_price: Any,
    composition: Optional[List[Dict[str, Any]]] = None,
    description: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """Create a product with its composition.

    Args:
        name: Product name (required)
        selling_price: Selling price per unit (>= 0)
        composition: Lines as dicts with material_id, supplier_id, quantity (> 0)
        description: Optional description
        session: Optional database session

    Returns:
        Created product as dictionary, including its composition

    Raises:
        ValidationError: If a field or line is invalid
        MaterialNotFoundError: If a line names a missing material
        SupplierNotFoundError: If a line names a missing supplier
    """
    data = {"name": name, "selling_price": selling_price, "description": description}
    if session is not None:
        return _create_product_impl(data, composition or [], session)
    with session_scope() as session:
        return _create_product_impl(data, composition or [], session)


def _create_product_impl(
    data: Dict[str, Any], composition: List[Dict[str, Any]], session: Session
) -> Dict[str, Any]:
    errors = _validate_product_fields(data, partial=False)
    items, line_errors = _validate_lines(composition)
    errors.extend(line_errors)
    if errors:
        raise ValidationError(errors)
    _check_references(items, session)

    product = Product(
        name=data["name"].strip(),
        selling_price=to_decimal(data["selling_price"]),
        description=data["description"],
        stock=0,
    )
    session.add(product)
    session.flush()
    _replace_composition(product, items, session)

    log_operation(
        logger, "create_product", "success", product_id=product.id, line_count=len(items)
    )
    return product.to_dict(include_relationships=True)


def get_product(product_id: int, session: Optional[Session] = None) -> Optional[Dict[str, Any]]:
    """Get a product with its composition, or None if not found."""
    if session is not None:
        return _get_product_impl(product_id, session)
    with session_scope() as session:
        return _get_product_impl(product_id, session)


def _get_product_impl(product_id: int, session: Session) -> Optional[Dict[str, Any]]:
    product = _load_product(product_id, session)
    return product.to_dict(include_relationships=True) if product else None


def get_all_products(session: Optional[Session] = None) -> List[Dict[str, Any]]:
    """All products sorted by name, each with its composition."""
    if session is not None:
        return _get_all_products_impl(session)
    with session_scope() as session:
        return _get_all_products_impl(session)


def _get_all_products_impl(session: Session) -> List[Dict[str, Any]]:
    products = (
        session.query(Product)
        .options(selectinload(Product.composition))
        .order_by(Product.name, Product.id)
        .all()
    )
    return [p.to_dict(include_relationships=True) for p in products]


def update_product(
    product_id: int,
    session: Optional[Session] = None,
    **kwargs,
) -> Dict[str, Any]:
    """Update product fields; a 'composition' argument replaces the whole composition.

    Runs already created keep their own consumption records, so changing
    the composition does not affect what cancelling them restores.

    Raises:
        ProductNotFoundError: If product not found
        ValidationError: If a field or line is invalid
        MaterialNotFoundError / SupplierNotFoundError: If a line references a missing entity
    """
    if session is not None:
        return _update_product_impl(product_id, session, **kwargs)
    with session_scope() as session:
        return _update_product_impl(product_id, session, **kwargs)


def _update_product_impl(product_id: int, session: Session, **kwargs) -> Dict[str, Any]:
    unknown = sorted(set(kwargs) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError([f"Unknown product field(s): {', '.join(unknown)}"])

    product = _load_product(product_id, session)
    if product is None:
        raise ProductNotFoundError(product_id)

    errors = _validate_product_fields(kwargs, partial=True)
    items: Optional[List[CompositionItem]] = None
    if "composition" in kwargs:
        items, line_errors = _validate_lines(kwargs["composition"] or [])
        errors.extend(line_errors)
    if errors:
        raise ValidationError(errors)
    if items is not None:
        _check_references(items, session)

    if "name" in kwargs:
        product.name = kwargs["name"].strip()
    if "selling_price" in kwargs:
        product.selling_price = to_decimal(kwargs["selling_price"])
    if "description" in kwargs:
        product.description = kwargs["description"]
    if items is not None:
        _replace_composition(product, items, session)

    session.flush()
    return product.to_dict(include_relationships=True)


def delete_product(product_id: int, session: Optional[Session] = None) -> bool:
    """Delete a product and its composition.

    Raises:
        ProductNotFoundError: If product not found
        ProductInUse: If production runs reference the product
    """
    if session is not None:
        return _delete_product_impl(product_id, session)
    with session_scope() as session:
        return _delete_product_impl(product_id, session)


def _delete_product_impl(product_id: int, session: Session) -> bool:
    product = session.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise ProductNotFoundError(product_id)

    run_count = (
        session.query(ProductionRun).filter(ProductionRun.product_id == product_id).count()
    )
    if run_count:
        raise ProductInUse(product_id, {"production_runs": run_count})

    session.delete(product)
    session.flush()
    log_operation(logger, "delete_product", "success", product_id=product_id)
    return True


def get_composition(
    product_id: int, session: Optional[Session] = None
) -> Tuple[CompositionItem, ...]:
    """A product's composition as CompositionItem values in insertion order.

    Raises:
        ProductNotFoundError: If product not found
    """
    if session is not None:
        return _get_composition_impl(product_id, session)
    with session_scope() as session:
        return _get_composition_impl(product_id, session)


def _get_composition_impl(product_id: int, session: Session) -> Tuple[CompositionItem, ...]:
    product = _load_product(product_id, session)
    if product is None:
        raise ProductNotFoundError(product_id)
    return composition_items(product)


def composition_items(product: Product) -> Tuple[CompositionItem, ...]:
    """Convert a loaded Product's lines to CompositionItem values."""
    return tuple(
        CompositionItem(
            material_id=line.material_id,
            supplier_id=line.supplier_id,
            quantity=to_decimal(line.quantity),
        )
        for line in product.composition
    )
