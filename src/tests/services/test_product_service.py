"""Tests for Product Service.

Tests cover:
- Create product with composition
- Composition ordering and replacement
- Validation of lines and references
- Delete protection for products with production runs
"""

import pytest
from decimal import Decimal

from src.services import product_service, production_service
from src.services.dto import CompositionItem
from src.services.exceptions import (
    MaterialNotFoundError,
    ProductInUse,
    ProductNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)


class TestCreateProduct:
    """Tests for create_product."""

    def test_create_with_composition(self, bom_setup):
        """The stored product carries its lines with names."""
        product = product_service.get_product(bom_setup["product"])

        assert product["name"] == "P"
        assert Decimal(product["selling_price"]) == Decimal("15")
        assert product["stock"] == 0
        assert product["line_count"] == 1
        line = product["composition"][0]
        assert line["material_name"] == "A"
        assert line["supplier_name"] == "S1"
        assert Decimal(line["quantity"]) == Decimal("4")

    def test_create_without_composition(self, test_db):
        """An empty composition is allowed."""
        product = product_service.create_product(name="Kit", selling_price="9.90")
        assert product["composition"] == []

    def test_invalid_lines_reported(self, bom_setup):
        """Zero quantities and missing keys are validation errors."""
        with pytest.raises(ValidationError) as exc_info:
            product_service.create_product(
                name="Bad",
                selling_price=1,
                composition=[
                    {"material_id": bom_setup["material_a"], "supplier_id": bom_setup["s1"], "quantity": 0},
                    {"material_id": bom_setup["material_a"], "quantity": 1},
                ],
            )
        assert len(exc_info.value.errors) == 2

    def test_non_numeric_ids_reported(self, bom_setup):
        """Ids that are not whole numbers are validation errors, not crashes."""
        with pytest.raises(ValidationError) as exc_info:
            product_service.create_product(
                name="Bad",
                selling_price=1,
                composition=[{"material_id": "abc", "supplier_id": "1.5", "quantity": 1}],
            )

        errors = exc_info.value.errors
        assert len(errors) == 2
        assert errors[0].startswith("Line 1 material_id")
        assert errors[1].startswith("Line 1 supplier_id")
        assert [p["name"] for p in product_service.get_all_products()] == ["P"]

    def test_numeric_string_ids_accepted(self, bom_setup):
        """Ids given as numeric strings are converted."""
        product = product_service.create_product(
            name="Strings",
            selling_price=1,
            composition=[
                {
                    "material_id": str(bom_setup["material_a"]),
                    "supplier_id": str(bom_setup["s1"]),
                    "quantity": "1",
                }
            ],
        )

        assert product["composition"][0]["material_id"] == bom_setup["material_a"]

    def test_quantity_finer_than_storage_rejected(self, bom_setup):
        """A quantity that would be stored as zero is refused."""
        with pytest.raises(ValidationError) as exc_info:
            product_service.create_product(
                name="Tiny",
                selling_price=1,
                composition=[
                    {
                        "material_id": bom_setup["material_a"],
                        "supplier_id": bom_setup["s1"],
                        "quantity": Decimal("0.00001"),
                    }
                ],
            )

        assert "decimal places" in exc_info.value.errors[0]
        assert [p["name"] for p in product_service.get_all_products()] == ["P"]

    def test_stored_values_round_trip_exactly(self, bom_setup):
        """Quantities and prices at storage scale come back unchanged."""
        product = product_service.create_product(
            name="Exact",
            selling_price=Decimal("12.3456"),
            composition=[
                {
                    "material_id": bom_setup["material_a"],
                    "supplier_id": bom_setup["s1"],
                    "quantity": Decimal("0.0001"),
                }
            ],
        )

        composition = product_service.get_composition(product["id"])
        assert composition[0].quantity == Decimal("0.0001")
        assert Decimal(product_service.get_product(product["id"])["selling_price"]) == Decimal("12.3456")

    def test_selling_price_finer_than_storage_rejected(self, test_db):
        """Selling price keeps at most 4 decimal places."""
        with pytest.raises(ValidationError):
            product_service.create_product(name="Odd", selling_price="1.00001")

    def test_negative_selling_price(self, test_db):
        """Selling price must be zero or greater."""
        with pytest.raises(ValidationError):
            product_service.create_product(name="Bad", selling_price=-1)

    def test_missing_material_reference(self, bom_setup):
        """A line naming a missing material is rejected."""
        with pytest.raises(MaterialNotFoundError):
            product_service.create_product(
                name="Bad",
                selling_price=1,
                composition=[{"material_id": 999, "supplier_id": bom_setup["s1"], "quantity": 1}],
            )

    def test_missing_supplier_reference(self, bom_setup):
        """A line naming a missing supplier is rejected."""
        with pytest.raises(SupplierNotFoundError):
            product_service.create_product(
                name="Bad",
                selling_price=1,
                composition=[
                    {"material_id": bom_setup["material_a"], "supplier_id": 999, "quantity": 1}
                ],
            )


class TestComposition:
    """Tests for get_composition and composition replacement."""

    def test_get_composition_preserves_order(self, two_material_setup):
        """Lines come back in insertion order as CompositionItem values."""
        items = product_service.get_composition(two_material_setup["product_q"])

        assert items == (
            CompositionItem(two_material_setup["material_a"], two_material_setup["s1"], Decimal("2")),
            CompositionItem(two_material_setup["material_b"], two_material_setup["s2"], Decimal("2")),
        )

    def test_update_replaces_composition(self, two_material_setup):
        """Passing a composition replaces every line."""
        product_service.update_product(
            two_material_setup["product_q"],
            composition=[
                {
                    "material_id": two_material_setup["material_b"],
                    "supplier_id": two_material_setup["s2"],
                    "quantity": "0.5",
                }
            ],
        )

        items = product_service.get_composition(two_material_setup["product_q"])

        assert items == (
            CompositionItem(two_material_setup["material_b"], two_material_setup["s2"], Decimal("0.5")),
        )

    def test_update_without_composition_keeps_lines(self, bom_setup):
        """Updating other fields leaves the composition alone."""
        result = product_service.update_product(bom_setup["product"], selling_price=18)

        assert Decimal(result["selling_price"]) == Decimal("18")
        assert result["line_count"] == 1

    def test_get_composition_missing_product(self, test_db):
        """Missing product raises ProductNotFoundError."""
        with pytest.raises(ProductNotFoundError):
            product_service.get_composition(999)


class TestDeleteProduct:
    """Tests for delete_product."""

    def test_delete_product(self, bom_setup):
        """A product without runs is deleted with its lines."""
        assert product_service.delete_product(bom_setup["product"]) is True
        assert product_service.get_product(bom_setup["product"]) is None

    def test_delete_product_with_runs_blocked(self, bom_setup):
        """Production history keeps the product alive."""
        production_service.create_production_run(bom_setup["product"], 1)

        with pytest.raises(ProductInUse) as exc_info:
            product_service.delete_product(bom_setup["product"])

        assert exc_info.value.dependencies == {"production_runs": 1}
