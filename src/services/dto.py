"""Data Transfer Objects for the costing, simulation and production services.

The engines in costing_service and simulation_service are pure functions
over these frozen values: a PriceCatalog snapshot and a tuple of
CompositionItem lines in, a CostResult or CostComparison out. Nothing in
here touches the database, so results can be computed in parallel against
one snapshot.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from src.services.dto_utils import cost_to_string, percent_to_string

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CompositionItem:
    """One bill-of-materials line: material, chosen supplier, quantity per unit."""

    material_id: int
    supplier_id: int
    quantity: Decimal


@dataclass(frozen=True)
class PriceCatalog:
    """Read-only snapshot of materials, suppliers and their prices.

    Attributes:
        prices: (material_id, supplier_id) -> unit price
        material_names: material_id -> display name
        material_units: material_id -> unit symbol
        supplier_names: supplier_id -> display name

    Build instances with PriceCatalog.build(), which freezes the mappings.
    """

    prices: Mapping[Tuple[int, int], Decimal] = field(default_factory=dict)
    material_names: Mapping[int, str] = field(default_factory=dict)
    material_units: Mapping[int, str] = field(default_factory=dict)
    supplier_names: Mapping[int, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        prices: Iterable[Tuple[int, int, Decimal]],
        materials: Iterable[Tuple[int, str, str]],
        suppliers: Iterable[Tuple[int, str]],
    ) -> "PriceCatalog":
        """
        Build a frozen catalog.

        Args:
            prices: (material_id, supplier_id, unit_price) triples
            materials: (material_id, name, unit) triples
            suppliers: (supplier_id, name) pairs

        Returns:
            PriceCatalog whose mappings cannot be modified
        """
        price_map: Dict[Tuple[int, int], Decimal] = {}
        for material_id, supplier_id, unit_price in prices:
            price_map[(material_id, supplier_id)] = Decimal(unit_price)

        names: Dict[int, str] = {}
        units: Dict[int, str] = {}
        for material_id, material_name, unit in materials:
            names[material_id] = material_name
            units[material_id] = unit

        return cls(
            prices=MappingProxyType(price_map),
            material_names=MappingProxyType(names),
            material_units=MappingProxyType(units),
            supplier_names=MappingProxyType(dict(suppliers)),
        )

    def get_price(self, material_id: int, supplier_id: int) -> Optional[Decimal]:
        """Unit price for the pair, or None when the supplier does not quote it."""
        return self.prices.get((material_id, supplier_id))

    def prices_for_material(self, material_id: int) -> List[Tuple[int, Decimal]]:
        """All (supplier_id, unit_price) quotes for a material, cheapest first.

        Equal prices are ordered by supplier id.
        """
        quotes = [
            (supplier_id, price)
            for (quoted_material_id, supplier_id), price in self.prices.items()
            if quoted_material_id == material_id
        ]
        return sorted(quotes, key=lambda quote: (quote[1], quote[0]))


@dataclass(frozen=True)
class CostLine:
    """Breakdown entry for one composition line.

    An unresolved line has no price for its (material, supplier) pair: its
    unit_price is None and it contributes zero to the totals.
    """

    material_id: int
    material_name: str
    unit: str
    supplier_id: int
    supplier_name: str
    quantity: Decimal
    unit_price: Optional[Decimal]
    line_cost: Decimal
    resolved: bool

    def to_dict(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "unit": self.unit,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "quantity": str(self.quantity),
            "unit_price": cost_to_string(self.unit_price) if self.resolved else None,
            "line_cost": cost_to_string(self.line_cost),
            "resolved": self.resolved,
        }


@dataclass(frozen=True)
class CostResult:
    """Cost, margin and profit of one composition at one selling price.

    Attributes:
        lines: Breakdown in composition order
        material_cost: Sum of resolved line costs
        total_cost: Equal to material_cost; other cost categories are the caller's
        selling_price: Selling price the margin was computed against
        margin: (selling_price - total_cost) / total_cost * 100, 0 when total_cost is 0
        profit: selling_price - total_cost, may be negative
    """

    lines: Tuple[CostLine, ...]
    material_cost: Decimal
    total_cost: Decimal
    selling_price: Decimal
    margin: Decimal
    profit: Decimal

    @property
    def unresolved_lines(self) -> List[CostLine]:
        """Lines whose (material, supplier) pair has no price."""
        return [line for line in self.lines if not line.resolved]

    @property
    def has_unresolved(self) -> bool:
        return any(not line.resolved for line in self.lines)

    def to_dict(self) -> dict:
        """Serialize with money at 2 places and margin as a percentage string."""
        return {
            "material_cost": cost_to_string(self.material_cost),
            "total_cost": cost_to_string(self.total_cost),
            "selling_price": cost_to_string(self.selling_price),
            "margin": percent_to_string(self.margin),
            "profit": cost_to_string(self.profit),
            "has_unresolved": self.has_unresolved,
            "breakdown": [line.to_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class LineChange:
    """Supplier change on one line between an original and a simulated composition.

    saving is (original_unit_price - new_unit_price) * quantity; positive
    means the simulated supplier is cheaper. It is None when either side is
    unpriced.
    """

    index: int
    material_id: int
    quantity: Decimal
    original_supplier_id: int
    new_supplier_id: int
    original_unit_price: Optional[Decimal]
    new_unit_price: Optional[Decimal]
    saving: Optional[Decimal]

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "material_id": self.material_id,
            "quantity": str(self.quantity),
            "original_supplier_id": self.original_supplier_id,
            "new_supplier_id": self.new_supplier_id,
            "original_unit_price": cost_to_string(self.original_unit_price)
            if self.original_unit_price is not None
            else None,
            "new_unit_price": cost_to_string(self.new_unit_price)
            if self.new_unit_price is not None
            else None,
            "saving": cost_to_string(self.saving) if self.saving is not None else None,
        }


@dataclass(frozen=True)
class CostComparison:
    """Original vs simulated cost; every delta is simulated minus original."""

    original: CostResult
    simulated: CostResult
    cost_delta: Decimal
    profit_delta: Decimal
    margin_delta: Decimal
    line_changes: Tuple[LineChange, ...] = ()

    @property
    def original_cost(self) -> Decimal:
        return self.original.total_cost

    @property
    def simulated_cost(self) -> Decimal:
        return self.simulated.total_cost

    def to_dict(self) -> dict:
        return {
            "original_cost": cost_to_string(self.original_cost),
            "simulated_cost": cost_to_string(self.simulated_cost),
            "cost_delta": cost_to_string(self.cost_delta),
            "profit_delta": cost_to_string(self.profit_delta),
            "margin_delta": percent_to_string(self.margin_delta),
            "line_changes": [change.to_dict() for change in self.line_changes],
            "original": self.original.to_dict(),
            "simulated": self.simulated.to_dict(),
        }


@dataclass(frozen=True)
class StockShortfall:
    """A material whose stock cannot cover a production run."""

    material_id: int
    material_name: str
    unit: str
    required: Decimal
    available: Decimal

    @property
    def missing(self) -> Decimal:
        return self.required - self.available

    def to_dict(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "unit": self.unit,
            "required": str(self.required),
            "available": str(self.available),
            "missing": str(self.missing),
        }
