"""Service layer exception classes for the BOM Cost Tracker.

Every error a service raises derives from ServiceError. Exceptions keep
their structured details as attributes so callers (CLI, HTTP layer) can
render their own messages.

Exception Hierarchy:
    ServiceError
    ├── NotFoundError
    │   ├── SupplierNotFoundError
    │   ├── MaterialNotFoundError
    │   ├── ProductNotFoundError
    │   └── ProductionRunNotFoundError
    ├── ValidationError
    ├── InsufficientStockError
    ├── NoCompositionDefinedError
    ├── InvalidTransitionError
    ├── InvalidStatusError
    ├── NegativeStockError
    ├── SupplierInUse
    ├── MaterialInUse
    └── ProductInUse

An unresolved price is not an exception: costing reports it on the
breakdown line (CostLine.resolved is False).
"""

from decimal import Decimal
from typing import Dict, List, Sequence


class ServiceError(Exception):
    """Base exception for all service layer errors."""

    pass


class NotFoundError(ServiceError):
    """Raised when a referenced entity does not exist.

    Args:
        entity: Entity kind, e.g. "Material"
        entity_id: The identifier that was not found
    """

    entity = "Entity"

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} with ID {entity_id} not found")


class SupplierNotFoundError(NotFoundError):
    """Raised when a supplier cannot be found by ID.

    Example:
        >>> raise SupplierNotFoundError(123)
        SupplierNotFoundError: Supplier with ID 123 not found
    """

    entity = "Supplier"

    @property
    def supplier_id(self) -> int:
        return self.entity_id


class MaterialNotFoundError(NotFoundError):
    """Raised when a material cannot be found by ID."""

    entity = "Material"

    @property
    def material_id(self) -> int:
        return self.entity_id


class ProductNotFoundError(NotFoundError):
    """Raised when a product cannot be found by ID."""

    entity = "Product"

    @property
    def product_id(self) -> int:
        return self.entity_id


class ProductionRunNotFoundError(NotFoundError):
    """Raised when a production run cannot be found by ID."""

    entity = "Production run"

    @property
    def production_run_id(self) -> int:
        return self.entity_id


class ValidationError(ServiceError):
    """Raised when input validation fails.

    Args:
        errors: List of human-readable validation messages
    """

    def __init__(self, errors: List[str]):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class InsufficientStockError(ServiceError):
    """Raised when a production run needs more material than is in stock.

    Every deficient material is reported, not just the first one found.

    Args:
        product_id: Product the run was requested for
        shortfalls: StockShortfall entries (material, required, available)

    Example:
        >>> raise InsufficientStockError(3, [StockShortfall(1, "Steel", "kg", Decimal("12"), Decimal("2"))])
        InsufficientStockError: Insufficient stock for product 3: Steel (required 12 kg, available 2 kg)
    """

    def __init__(self, product_id: int, shortfalls: Sequence):
        self.product_id = product_id
        self.shortfalls = list(shortfalls)
        details = ", ".join(
            f"{s.material_name} (required {s.required} {s.unit}, available {s.available} {s.unit})"
            for s in self.shortfalls
        )
        super().__init__(f"Insufficient stock for product {product_id}: {details}")


class NoCompositionDefinedError(ServiceError):
    """Raised when production is requested for a product without a bill of materials."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} has no composition defined")


class InvalidTransitionError(ServiceError):
    """Raised when a production run is moved out of a terminal status.

    Args:
        production_run_id: The run being transitioned
        current_status: Its current status value
        requested_status: The status that was requested
    """

    def __init__(self, production_run_id: int, current_status: str, requested_status: str):
        self.production_run_id = production_run_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Cannot move production run {production_run_id} from "
            f"'{current_status}' to '{requested_status}': only pending runs can change status"
        )


class InvalidStatusError(ServiceError):
    """Raised when a status change names a status that is not a valid target."""

    def __init__(self, status, allowed: Sequence[str] = ("completed", "cancelled")):
        self.status = status
        self.allowed = tuple(allowed)
        super().__init__(
            f"Invalid production status {status!r}; expected one of: {', '.join(self.allowed)}"
        )


class NegativeStockError(ServiceError):
    """Raised when a stock adjustment would leave stock below zero."""

    def __init__(self, entity: str, entity_id: int, current: Decimal, delta: Decimal):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.delta = delta
        super().__init__(
            f"Adjusting {entity} {entity_id} stock by {delta} would leave {current + delta}"
        )


class SupplierInUse(ServiceError):
    """Raised when deleting or renaming a supplier that is referenced.

    Args:
        supplier_id: The supplier ID
        dependencies: Dictionary of dependency counts {entity_type: count}
    """

    def __init__(self, supplier_id: int, dependencies: Dict[str, int]):
        self.supplier_id = supplier_id
        self.dependencies = dependencies
        details = ", ".join(
            f"{count} {entity_type}" for entity_type, count in dependencies.items() if count > 0
        )
        super().__init__(f"Supplier {supplier_id} is referenced by {details}")


class MaterialInUse(ServiceError):
    """Raised when deleting a material used by compositions or production runs.

    Args:
        material_id: The material ID
        dependencies: Dictionary of dependency counts {entity_type: count}
    """

    def __init__(self, material_id: int, dependencies: Dict[str, int]):
        self.material_id = material_id
        self.dependencies = dependencies
        details = ", ".join(
            f"{count} {entity_type}" for entity_type, count in dependencies.items() if count > 0
        )
        super().__init__(f"Cannot delete material {material_id}: used in {details}")


class ProductInUse(ServiceError):
    """Raised when deleting a product that has production runs.

    Example:
        >>> raise ProductInUse(12, {"production_runs": 4})
        ProductInUse: Cannot delete product 12: used in 4 production_runs
    """

    def __init__(self, product_id: int, dependencies: Dict[str, int]):
        self.product_id = product_id
        self.dependencies = dependencies
        details = ", ".join(
            f"{count} {entity_type}" for entity_type, count in dependencies.items() if count > 0
        )
        super().__init__(f"Cannot delete product {product_id}: used in {details}")
