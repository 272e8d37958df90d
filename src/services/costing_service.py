"""Costing Service - bill-of-materials cost resolution.

resolve_cost() is the cost engine: a pure function of a composition, a
PriceCatalog snapshot and a selling price. For every line it looks up the
exact (material, supplier) price:

- priced lines cost unit_price * quantity
- lines without a price are returned flagged as unresolved and add zero

Totals are exact Decimal sums. Margin is profit as a percentage of cost
and is defined as 0 when the cost is 0. Profit may be negative.

calculate_product_cost() and get_low_margin_products() load the inputs
from the database and delegate to resolve_cost().
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from src.models import Product
from src.services.catalog_service import load_price_catalog
from src.services.database import session_scope
from src.services.dto import CompositionItem, CostLine, CostResult, PriceCatalog, HUNDRED, ZERO
from src.services.dto_utils import cost_to_string, percent_to_string
from src.services.exceptions import (
    MaterialNotFoundError,
    ProductNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.product_service import composition_items
from src.utils.config import get_config
from src.utils.validators import to_decimal, validate_non_negative_number

logger = get_service_logger(__name__)


def compute_margin(selling_price: Decimal, total_cost: Decimal) -> Decimal:
    """
    Profit as a percentage of cost.

    Returns:
        (selling_price - total_cost) / total_cost * 100, or 0 when total_cost is 0

    Examples:
        >>> compute_margin(Decimal("15"), Decimal("10"))
        Decimal('50.0')
        >>> compute_margin(Decimal("15"), Decimal("0"))
        Decimal('0')
    """
    if total_cost == 0:
        return ZERO
    return (selling_price - total_cost) / total_cost * HUNDRED


def resolve_cost(
    composition: Sequence[CompositionItem],
    catalog: PriceCatalog,
    selling_price: Any,
) -> CostResult:
    """
    Compute the material cost, margin and profit of a composition.

    Args:
        composition: Lines in display order
        catalog: Price snapshot to resolve against
        selling_price: Selling price per product unit (>= 0)

    Returns:
        CostResult with one CostLine per composition line

    Raises:
        ValidationError: If selling_price is not a non-negative number
        MaterialNotFoundError: If a line names a material missing from the catalog
        SupplierNotFoundError: If a line names a supplier missing from the catalog
    """
    ok, msg = validate_non_negative_number(selling_price, "Selling price")
    if not ok:
        raise ValidationError([msg])
    selling_price = to_decimal(selling_price)

    lines: List[CostLine] = []
    material_cost = ZERO

    for item in composition:
        material_name = catalog.material_names.get(item.material_id)
        if material_name is None:
            raise MaterialNotFoundError(item.material_id)
        supplier_name = catalog.supplier_names.get(item.supplier_id)
        if supplier_name is None:
            raise SupplierNotFoundError(item.supplier_id)

        unit_price = catalog.get_price(item.material_id, item.supplier_id)
        resolved = unit_price is not None
        line_cost = unit_price * item.quantity if resolved else ZERO
        material_cost += line_cost

        lines.append(
            CostLine(
                material_id=item.material_id,
                material_name=material_name,
                unit=catalog.material_units.get(item.material_id, ""),
                supplier_id=item.supplier_id,
                supplier_name=supplier_name,
                quantity=item.quantity,
                unit_price=unit_price,
                line_cost=line_cost,
                resolved=resolved,
            )
        )

    # Labor, overhead and packaging are added by callers, not here
    total_cost = material_cost
    result = CostResult(
        lines=tuple(lines),
        material_cost=material_cost,
        total_cost=total_cost,
        selling_price=selling_price,
        margin=compute_margin(selling_price, total_cost),
        profit=selling_price - total_cost,
    )

    if result.has_unresolved:
        log_operation(
            logger,
            "resolve_cost",
            "unresolved_lines",
            level=logging.WARNING,
            unresolved=[(line.material_id, line.supplier_id) for line in result.unresolved_lines],
        )
    return result


def _load_product_or_raise(product_id: int, session: Session) -> Product:
    product = (
        session.query(Product)
        .options(selectinload(Product.composition))
        .filter(Product.id == product_id)
        .first()
    )
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def calculate_product_cost(
    product_id: int,
    selling_price: Optional[Any] = None,
    session: Optional[Session] = None,
) -> CostResult:
    """
    Cost a stored product against the current price catalog.

    Args:
        product_id: Product to cost
        selling_price: Override for the product's own selling price
        session: Optional database session

    Raises:
        ProductNotFoundError: If the product does not exist
    """
    if session is not None:
        return _calculate_product_cost_impl(product_id, selling_price, session)
    with session_scope() as session:
        return _calculate_product_cost_impl(product_id, selling_price, session)


def _calculate_product_cost_impl(
    product_id: int, selling_price: Optional[Any], session: Session
) -> CostResult:
    product = _load_product_or_raise(product_id, session)
    catalog = load_price_catalog(session=session)
    price = product.selling_price if selling_price is None else selling_price
    result = resolve_cost(composition_items(product), catalog, price)
    log_operation(
        logger,
        "calculate_product_cost",
        "success",
        level=logging.DEBUG,
        product_id=product_id,
        total_cost=str(result.total_cost),
    )
    return result


def get_low_margin_products(
    threshold: Optional[Any] = None, session: Optional[Session] = None
) -> List[Dict[str, Any]]:
    """
    Products whose margin is below a threshold percentage.

    Products with zero material cost have no meaningful margin and are not
    reported.

    Args:
        threshold: Margin percentage; defaults to the configured low_margin_threshold
        session: Optional database session

    Returns:
        List of dicts (product_id, product_name, total_cost, selling_price,
        margin, has_unresolved), lowest margin first
    """
    limit = get_config().low_margin_threshold if threshold is None else Decimal(str(threshold))
    if session is not None:
        return _get_low_margin_products_impl(limit, session)
    with session_scope() as session:
        return _get_low_margin_products_impl(limit, session)


def _get_low_margin_products_impl(threshold: Decimal, session: Session) -> List[Dict[str, Any]]:
    catalog = load_price_catalog(session=session)
    products = session.query(Product).options(selectinload(Product.composition)).all()

    flagged = []
    for product in products:
        result = resolve_cost(composition_items(product), catalog, product.selling_price)
        if result.total_cost > 0 and result.margin < threshold:
            flagged.append((result.margin, product.id, product.name, result))

    flagged.sort(key=lambda entry: (entry[0], entry[1]))
    return [
        {
            "product_id": product_id,
            "product_name": product_name,
            "total_cost": cost_to_string(result.total_cost),
            "selling_price": cost_to_string(result.selling_price),
            "margin": percent_to_string(result.margin),
            "has_unresolved": result.has_unresolved,
        }
        for _, product_id, product_name, result in flagged
    ]
