"""Simulation Service - alternate supplier choices without persisting them.

Pure functions:
- optimize_composition(): move every line to the cheapest supplier of its material
- with_supplier_override(): copy a composition with one line's supplier replaced
- compare(): cost both compositions and report simulated-minus-original deltas

Tie-break rule for optimize_composition(): when several suppliers share
the lowest price, a line keeps its current supplier if that supplier is
one of them; otherwise the lowest supplier ID wins. Materials nobody
quotes are left as they are.

simulate_cheapest_suppliers() and simulate_supplier_override() read a
stored product and the current catalog; neither writes anything.
"""

from dataclasses import replace
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from src.services.catalog_service import load_price_catalog
from src.services.costing_service import _load_product_or_raise, resolve_cost
from src.services.database import session_scope
from src.services.dto import CompositionItem, CostComparison, LineChange, PriceCatalog
from src.services.exceptions import SupplierNotFoundError, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.product_service import composition_items

logger = get_service_logger(__name__)


def optimize_composition(
    composition: Sequence[CompositionItem], catalog: PriceCatalog
) -> Tuple[CompositionItem, ...]:
    """
    Rewrite each line to the cheapest supplier for its material.

    Args:
        composition: Original lines
        catalog: Price snapshot

    Returns:
        New composition tuple; the input is not modified
    """
    optimized: List[CompositionItem] = []
    for item in composition:
        quotes = catalog.prices_for_material(item.material_id)
        if not quotes:
            optimized.append(item)
            continue

        lowest = quotes[0][1]
        cheapest = [supplier_id for supplier_id, price in quotes if price == lowest]
        if item.supplier_id in cheapest:
            optimized.append(item)
        else:
            optimized.append(replace(item, supplier_id=min(cheapest)))
    return tuple(optimized)


def with_supplier_override(
    composition: Sequence[CompositionItem], line_index: int, supplier_id: int
) -> Tuple[CompositionItem, ...]:
    """
    Copy a composition with one line bought from a different supplier.

    Args:
        composition: Original lines
        line_index: Zero-based index of the line to change
        supplier_id: Supplier to use for that line

    Raises:
        ValidationError: If line_index is out of range
    """
    if not 0 <= line_index < len(composition):
        raise ValidationError(
            [f"Line index {line_index} out of range for a composition of {len(composition)} line(s)"]
        )
    items = list(composition)
    items[line_index] = replace(items[line_index], supplier_id=supplier_id)
    return tuple(items)


def _line_changes(
    original: Sequence[CompositionItem],
    simulated: Sequence[CompositionItem],
    catalog: PriceCatalog,
) -> Tuple[LineChange, ...]:
    changes = []
    for index, (before, after) in enumerate(zip(original, simulated)):
        if before.supplier_id == after.supplier_id and before.material_id == after.material_id:
            continue
        old_price = catalog.get_price(before.material_id, before.supplier_id)
        new_price = catalog.get_price(after.material_id, after.supplier_id)
        saving = None
        if old_price is not None and new_price is not None:
            saving = (old_price - new_price) * after.quantity
        changes.append(
            LineChange(
                index=index,
                material_id=after.material_id,
                quantity=after.quantity,
                original_supplier_id=before.supplier_id,
                new_supplier_id=after.supplier_id,
                original_unit_price=old_price,
                new_unit_price=new_price,
                saving=saving,
            )
        )
    return tuple(changes)


def compare(
    original: Sequence[CompositionItem],
    simulated: Sequence[CompositionItem],
    catalog: PriceCatalog,
    selling_price: Any,
) -> CostComparison:
    """
    Cost two compositions at the same selling price.

    Returns:
        CostComparison whose cost, profit and margin deltas are simulated
        minus original, plus the per-line supplier changes
    """
    original_result = resolve_cost(original, catalog, selling_price)
    simulated_result = resolve_cost(simulated, catalog, selling_price)
    return CostComparison(
        original=original_result,
        simulated=simulated_result,
        cost_delta=simulated_result.total_cost - original_result.total_cost,
        profit_delta=simulated_result.profit - original_result.profit,
        margin_delta=simulated_result.margin - original_result.margin,
        line_changes=_line_changes(original, simulated, catalog),
    )


def simulate_cheapest_suppliers(
    product_id: int,
    selling_price: Optional[Any] = None,
    session: Optional[Session] = None,
) -> CostComparison:
    """
    Compare a stored product against its cheapest-supplier composition.

    Nothing is written; the optimized composition only exists in the result.

    Raises:
        ProductNotFoundError: If the product does not exist
    """
    if session is not None:
        return _simulate_impl(product_id, selling_price, None, session)
    with session_scope() as session:
        return _simulate_impl(product_id, selling_price, None, session)


def simulate_supplier_override(
    product_id: int,
    line_index: int,
    supplier_id: int,
    selling_price: Optional[Any] = None,
    session: Optional[Session] = None,
) -> CostComparison:
    """
    Compare a stored product against a copy with one line's supplier replaced.

    Raises:
        ProductNotFoundError: If the product does not exist
        SupplierNotFoundError: If the supplier does not exist
        ValidationError: If line_index is out of range
    """
    override = (line_index, supplier_id)
    if session is not None:
        return _simulate_impl(product_id, selling_price, override, session)
    with session_scope() as session:
        return _simulate_impl(product_id, selling_price, override, session)


def _simulate_impl(
    product_id: int,
    selling_price: Optional[Any],
    override: Optional[Tuple[int, int]],
    session: Session,
) -> CostComparison:
    product = _load_product_or_raise(product_id, session)
    catalog = load_price_catalog(session=session)
    original = composition_items(product)
    price = product.selling_price if selling_price is None else selling_price

    if override is None:
        operation = "simulate_cheapest_suppliers"
        simulated = optimize_composition(original, catalog)
    else:
        operation = "simulate_supplier_override"
        line_index, supplier_id = override
        if supplier_id not in catalog.supplier_names:
            raise SupplierNotFoundError(supplier_id)
        simulated = with_supplier_override(original, line_index, supplier_id)

    comparison = compare(original, simulated, catalog, price)
    log_operation(
        logger,
        operation,
        "success",
        product_id=product_id,
        cost_delta=str(comparison.cost_delta),
        changed_lines=len(comparison.line_changes),
    )
    return comparison
