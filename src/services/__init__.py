"""Services package - Business logic layer for the BOM Cost Tracker.

This package contains all service modules that provide business logic
and database operations for the application.

Architecture:
- Services: Stateless functions organized by domain (catalog, costing, production)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- supplier_service: Supplier CRUD
- material_service: Material CRUD
- price_service: Price catalog upserts and queries
- product_service: Products and their compositions
- catalog_service: Read side and PriceCatalog snapshots
- stock_service: Material and product stock adjustments
- costing_service: Cost, margin and profit of a composition
- simulation_service: Cheapest-supplier and override simulations
- production_service: Production run ledger

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- dto: Frozen value types exchanged by the engines
"""

# Service modules
from . import (
    database,
    supplier_service,
    material_service,
    price_service,
    product_service,
    catalog_service,
    stock_service,
    costing_service,
    simulation_service,
    production_service,
)

# Cost engine
from .costing_service import (
    calculate_product_cost,
    compute_margin,
    get_low_margin_products,
    resolve_cost,
)

# Simulation engine
from .simulation_service import (
    compare,
    optimize_composition,
    simulate_cheapest_suppliers,
    simulate_supplier_override,
    with_supplier_override,
)

# Production ledger
from .production_service import (
    calculate_requirements,
    cancel_production_run,
    check_can_produce,
    complete_production_run,
    create_production_run,
    get_max_producible,
    get_production_run,
    list_production_runs,
    update_production_run_status,
)

from .dto import (
    CompositionItem,
    CostComparison,
    CostLine,
    CostResult,
    LineChange,
    PriceCatalog,
    StockShortfall,
)

from .exceptions import (
    ServiceError,
    NotFoundError,
    SupplierNotFoundError,
    MaterialNotFoundError,
    ProductNotFoundError,
    ProductionRunNotFoundError,
    ValidationError,
    InsufficientStockError,
    NoCompositionDefinedError,
    InvalidTransitionError,
    InvalidStatusError,
    NegativeStockError,
    SupplierInUse,
    MaterialInUse,
    ProductInUse,
)

from .database import session_scope

__all__ = [
    # Modules
    "database",
    "supplier_service",
    "material_service",
    "price_service",
    "product_service",
    "catalog_service",
    "stock_service",
    "costing_service",
    "simulation_service",
    "production_service",
    # Cost engine
    "resolve_cost",
    "compute_margin",
    "calculate_product_cost",
    "get_low_margin_products",
    # Simulation engine
    "optimize_composition",
    "with_supplier_override",
    "compare",
    "simulate_cheapest_suppliers",
    "simulate_supplier_override",
    # Production ledger
    "calculate_requirements",
    "check_can_produce",
    "get_max_producible",
    "create_production_run",
    "complete_production_run",
    "cancel_production_run",
    "update_production_run_status",
    "get_production_run",
    "list_production_runs",
    # Value types
    "CompositionItem",
    "PriceCatalog",
    "CostLine",
    "CostResult",
    "LineChange",
    "CostComparison",
    "StockShortfall",
    # Exceptions
    "ServiceError",
    "NotFoundError",
    "SupplierNotFoundError",
    "MaterialNotFoundError",
    "ProductNotFoundError",
    "ProductionRunNotFoundError",
    "ValidationError",
    "InsufficientStockError",
    "NoCompositionDefinedError",
    "InvalidTransitionError",
    "InvalidStatusError",
    "NegativeStockError",
    "SupplierInUse",
    "MaterialInUse",
    "ProductInUse",
    # Infrastructure
    "session_scope",
]
