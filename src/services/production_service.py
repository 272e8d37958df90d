"""
Production Service - the production ledger.

This service provides:
- Material requirements for a batch (calculate_requirements)
- Dry-run feasibility checks and the largest producible batch
- Production run creation, which deducts materials at once so stock is
  reserved the moment a run is accepted
- The pending -> completed / pending -> cancelled state machine

Atomicity:
create_production_run() locks the affected material rows (ordered by ID),
checks every requirement and only then deducts. When any material is
short it raises InsufficientStockError listing all shortfalls and nothing
is written. Each deduction is stored as a ProductionConsumption row, and
cancelling a run adds exactly those rows back.

Session Management Pattern:
- All public functions accept session=None parameter
- If session provided, the caller owns the transaction
- If session is None, a new session_scope() commits or rolls back the
  whole operation
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from src.models import Material, Product, ProductionConsumption, ProductionRun
from src.models.enums import ProductionRunStatus
from src.services.database import session_scope
from src.services.dto import CompositionItem, StockShortfall
from src.services.exceptions import (
    InsufficientStockError,
    InvalidStatusError,
    InvalidTransitionError,
    NoCompositionDefinedError,
    ProductNotFoundError,
    ProductionRunNotFoundError,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.product_service import composition_items
from src.services.stock_service import adjust_material_stock, adjust_product_stock
from src.utils.constants import MAX_NOTES_LENGTH
from src.utils.datetime_utils import utc_now
from src.utils.validators import validate_positive_integer, validate_string_length

logger = get_service_logger(__name__)

TARGET_STATUSES = (ProductionRunStatus.COMPLETED.value, ProductionRunStatus.CANCELLED.value)


# =============================================================================
# Requirements and feasibility
# =============================================================================


def calculate_requirements(
    composition: Sequence[CompositionItem], batch_quantity: int
) -> Dict[int, Decimal]:
    """
    Material quantities needed for a batch.

    Lines that use the same material (from different suppliers) are summed,
    since they draw on the same stock.

    Args:
        composition: Lines with quantity per product unit
        batch_quantity: Number of product units

    Returns:
        Dict of material_id -> required quantity, in first-seen line order

    Example:
        >>> calculate_requirements([CompositionItem(1, 1, Decimal("4"))], 2)
        {1: Decimal('8')}
    """
    requirements: Dict[int, Decimal] = {}
    for item in composition:
        needed = item.quantity * batch_quantity
        requirements[item.material_id] = requirements.get(item.material_id, Decimal("0")) + needed
    return requirements


def _find_shortfalls(
    requirements: Dict[int, Decimal], materials: Dict[int, Material]
) -> List[StockShortfall]:
    shortfalls = []
    for material_id in sorted(requirements):
        required = requirements[material_id]
        material = materials[material_id]
        available = Decimal(material.stock)
        if available < required:
            shortfalls.append(
                StockShortfall(
                    material_id=material_id,
                    material_name=material.name,
                    unit=material.unit,
                    required=required,
                    available=available,
                )
            )
    return shortfalls


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


def _load_materials(material_ids, session: Session, lock: bool = False) -> Dict[int, Material]:
    query = session.query(Material).filter(Material.id.in_(list(material_ids))).order_by(Material.id)
    if lock:
        # Row locks in ID order; SQLite serializes writers instead
        query = query.with_for_update()
    return {material.id: material for material in query.all()}


def _validate_batch_quantity(batch_quantity: Any) -> int:
    ok, msg = validate_positive_integer(batch_quantity, "Batch quantity")
    if not ok:
        raise ValidationError([msg])
    return int(Decimal(str(batch_quantity)))


def check_can_produce(
    product_id: int, batch_quantity: int, session: Optional[Session] = None
) -> Dict[str, Any]:
    """
    Check whether current stock covers a batch, without changing anything.

    Args:
        product_id: Product to make
        batch_quantity: Number of units (positive integer)
        session: Optional database session

    Returns:
        Dict with:
        - can_produce: bool
        - requirements: list of {material_id, required}
        - missing: list of shortfall dicts (material, required, available, missing)

    Raises:
        ValidationError: If batch_quantity is not a positive integer
        ProductNotFoundError: If the product does not exist
        NoCompositionDefinedError: If the product has no composition
    """
    if session is not None:
        return _check_can_produce_impl(product_id, batch_quantity, session)
    with session_scope() as session:
        return _check_can_produce_impl(product_id, batch_quantity, session)


def _check_can_produce_impl(
    product_id: int, batch_quantity: Any, session: Session
) -> Dict[str, Any]:
    batch_quantity = _validate_batch_quantity(batch_quantity)
    product = _load_product_or_raise(product_id, session)
    composition = composition_items(product)
    if not composition:
        raise NoCompositionDefinedError(product_id)

    requirements = calculate_requirements(composition, batch_quantity)
    shortfalls = _find_shortfalls(requirements, _load_materials(requirements, session))
    return {
        "can_produce": not shortfalls,
        "requirements": [
            {"material_id": material_id, "required": str(required)}
            for material_id, required in requirements.items()
        ],
        "missing": [shortfall.to_dict() for shortfall in shortfalls],
    }


def get_max_producible(product_id: int, session: Optional[Session] = None) -> int:
    """
    Largest batch the current material stock allows.

    Returns:
        The minimum over materials of floor(stock / required per unit);
        0 for a product with no composition

    Raises:
        ProductNotFoundError: If the product does not exist
    """
    if session is not None:
        return _get_max_producible_impl(product_id, session)
    with session_scope() as session:
        return _get_max_producible_impl(product_id, session)


def _get_max_producible_impl(product_id: int, session: Session) -> int:
    product = _load_product_or_raise(product_id, session)
    per_unit = calculate_requirements(composition_items(product), 1)
    if not per_unit:
        return 0

    materials = _load_materials(per_unit, session)
    return min(
        int(Decimal(materials[material_id].stock) // required)
        for material_id, required in per_unit.items()
    )


# =============================================================================
# Run lifecycle
# =============================================================================


def create_production_run(
    product_id: int,
    batch_quantity: int,
    notes: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    Create a pending production run and deduct its materials.

    Args:
        product_id: Product to make
        batch_quantity: Number of units (positive integer)
        notes: Optional notes
        session: Optional database session

    Returns:
        The new run as a dictionary, including its consumptions

    Raises:
        ValidationError: If batch_quantity or notes are invalid
        ProductNotFoundError: If the product does not exist
        NoCompositionDefinedError: If the product has no composition
        InsufficientStockError: If any material is short; no stock is changed
    """
    if session is not None:
        return _create_production_run_impl(product_id, batch_quantity, notes, session)
    with session_scope() as session:
        return _create_production_run_impl(product_id, batch_quantity, notes, session)


def _create_production_run_impl(
    product_id: int, batch_quantity: Any, notes: Optional[str], session: Session
) -> Dict[str, Any]:
    batch_quantity = _validate_batch_quantity(batch_quantity)
    ok, msg = validate_string_length(notes, MAX_NOTES_LENGTH, "Notes")
    if not ok:
        raise ValidationError([msg])

    product = _load_product_or_raise(product_id, session)
    composition = composition_items(product)
    if not composition:
        log_operation(
            logger,
            "create_production_run",
            "no_composition",
            level=logging.WARNING,
            product_id=product_id,
        )
        raise NoCompositionDefinedError(product_id)

    requirements = calculate_requirements(composition, batch_quantity)
    materials = _load_materials(requirements, session, lock=True)
    shortfalls = _find_shortfalls(requirements, materials)
    if shortfalls:
        log_operation(
            logger,
            "create_production_run",
            "insufficient_stock",
            level=logging.WARNING,
            product_id=product_id,
            batch_quantity=batch_quantity,
            short_materials=[s.material_id for s in shortfalls],
        )
        raise InsufficientStockError(product_id, shortfalls)

    run = ProductionRun(
        product_id=product_id,
        batch_quantity=batch_quantity,
        status=ProductionRunStatus.PENDING.value,
        notes=notes,
    )
    session.add(run)
    session.flush()

    for material_id in sorted(requirements):
        required = requirements[material_id]
        adjust_material_stock(material_id, -required, session)
        session.add(
            ProductionConsumption(
                production_run_id=run.id,
                material_id=material_id,
                quantity=required,
            )
        )
    session.flush()
    session.refresh(run)

    log_operation(
        logger,
        "create_production_run",
        "success",
        production_run_id=run.id,
        product_id=product_id,
        batch_quantity=batch_quantity,
    )
    return run.to_dict(include_relationships=True)


def _load_run_for_update(production_run_id: int, session: Session) -> ProductionRun:
    run = (
        session.query(ProductionRun)
        .filter(ProductionRun.id == production_run_id)
        .with_for_update()
        .first()
    )
    if run is None:
        raise ProductionRunNotFoundError(production_run_id)
    return run


def _require_pending(run: ProductionRun, requested: str) -> None:
    if run.run_status.is_terminal:
        log_operation(
            logger,
            "transition_production_run",
            "invalid_transition",
            level=logging.WARNING,
            production_run_id=run.id,
            current_status=run.status,
            requested_status=requested,
        )
        raise InvalidTransitionError(run.id, run.status, requested)


def complete_production_run(
    production_run_id: int, session: Optional[Session] = None
) -> Dict[str, Any]:
    """
    Mark a pending run completed and add its batch to the product's stock.

    Material stock is not touched; it was deducted when the run was created.

    Raises:
        ProductionRunNotFoundError: If the run does not exist
        InvalidTransitionError: If the run is not pending
    """
    if session is not None:
        return _complete_production_run_impl(production_run_id, session)
    with session_scope() as session:
        return _complete_production_run_impl(production_run_id, session)


def _complete_production_run_impl(production_run_id: int, session: Session) -> Dict[str, Any]:
    run = _load_run_for_update(production_run_id, session)
    _require_pending(run, ProductionRunStatus.COMPLETED.value)

    new_stock = adjust_product_stock(run.product_id, run.batch_quantity, session)
    run.status = ProductionRunStatus.COMPLETED.value
    run.completed_at = utc_now()
    session.flush()

    log_operation(
        logger,
        "complete_production_run",
        "success",
        production_run_id=run.id,
        product_id=run.product_id,
        product_stock=new_stock,
    )
    return run.to_dict(include_relationships=True)


def cancel_production_run(
    production_run_id: int, session: Optional[Session] = None
) -> Dict[str, Any]:
    """
    Cancel a pending run and return its deducted materials to stock.

    The quantities restored are the run's recorded consumptions, so later
    edits to the product's composition do not change them.

    Raises:
        ProductionRunNotFoundError: If the run does not exist
        InvalidTransitionError: If the run is not pending
    """
    if session is not None:
        return _cancel_production_run_impl(production_run_id, session)
    with session_scope() as session:
        return _cancel_production_run_impl(production_run_id, session)


def _cancel_production_run_impl(production_run_id: int, session: Session) -> Dict[str, Any]:
    run = _load_run_for_update(production_run_id, session)
    _require_pending(run, ProductionRunStatus.CANCELLED.value)

    consumptions = sorted(run.consumptions, key=lambda c: c.material_id)
    _load_materials([c.material_id for c in consumptions], session, lock=True)
    for consumption in consumptions:
        adjust_material_stock(consumption.material_id, Decimal(consumption.quantity), session)

    run.status = ProductionRunStatus.CANCELLED.value
    run.cancelled_at = utc_now()
    session.flush()

    log_operation(
        logger,
        "cancel_production_run",
        "success",
        production_run_id=run.id,
        product_id=run.product_id,
        restored_materials=[c.material_id for c in consumptions],
    )
    return run.to_dict(include_relationships=True)


def update_production_run_status(
    production_run_id: int, status: Any, session: Optional[Session] = None
) -> Dict[str, Any]:
    """
    Move a run to 'completed' or 'cancelled'.

    The status is checked before the run is even loaded.

    Raises:
        InvalidStatusError: If status is neither 'completed' nor 'cancelled'
        ProductionRunNotFoundError: If the run does not exist
        InvalidTransitionError: If the run is not pending
    """
    if status not in TARGET_STATUSES:
        log_operation(
            logger,
            "update_production_run_status",
            "invalid_status",
            level=logging.WARNING,
            production_run_id=production_run_id,
            requested_status=repr(status),
        )
        raise InvalidStatusError(status, TARGET_STATUSES)

    if status == ProductionRunStatus.COMPLETED.value:
        return complete_production_run(production_run_id, session=session)
    return cancel_production_run(production_run_id, session=session)


# =============================================================================
# Queries
# =============================================================================


def get_production_run(
    production_run_id: int, session: Optional[Session] = None
) -> Dict[str, Any]:
    """
    Get a run with its product name and consumptions.

    Raises:
        ProductionRunNotFoundError: If the run does not exist
    """
    if session is not None:
        return _get_production_run_impl(production_run_id, session)
    with session_scope() as session:
        return _get_production_run_impl(production_run_id, session)


def _get_production_run_impl(production_run_id: int, session: Session) -> Dict[str, Any]:
    run = session.query(ProductionRun).filter(ProductionRun.id == production_run_id).first()
    if run is None:
        raise ProductionRunNotFoundError(production_run_id)
    return run.to_dict(include_relationships=True)


def list_production_runs(
    status: Optional[str] = None,
    product_id: Optional[int] = None,
    session: Optional[Session] = None,
) -> List[Dict[str, Any]]:
    """
    List runs, newest first.

    Args:
        status: Optional status filter ('pending', 'completed', 'cancelled')
        product_id: Optional product filter
        session: Optional database session

    Raises:
        InvalidStatusError: If status is not a known status
    """
    if status is not None and status not in [s.value for s in ProductionRunStatus]:
        raise InvalidStatusError(status, [s.value for s in ProductionRunStatus])
    if session is not None:
        return _list_production_runs_impl(status, product_id, session)
    with session_scope() as session:
        return _list_production_runs_impl(status, product_id, session)


def _list_production_runs_impl(
    status: Optional[str], product_id: Optional[int], session: Session
) -> List[Dict[str, Any]]:
    query = session.query(ProductionRun).options(
        selectinload(ProductionRun.product),
        selectinload(ProductionRun.consumptions),
    )
    if status is not None:
        query = query.filter(ProductionRun.status == status)
    if product_id is not None:
        query = query.filter(ProductionRun.product_id == product_id)
    runs = query.order_by(ProductionRun.created_at.desc(), ProductionRun.id.desc()).all()
    return [run.to_dict(include_relationships=True) for run in runs]
