"""Tests for Catalog Service read operations and snapshots."""

import pytest
from decimal import Decimal

from src.services import catalog_service, price_service
from src.services.exceptions import MaterialNotFoundError, SupplierNotFoundError


class TestLookups:
    """Tests for get_material, get_supplier and get_price."""

    def test_get_material_and_supplier(self, bom_setup):
        """Lookups return dicts for existing entities."""
        assert catalog_service.get_material(bom_setup["material_a"])["name"] == "A"
        assert catalog_service.get_supplier(bom_setup["s1"])["name"] == "S1"

    def test_missing_entities_raise(self, test_db):
        """Unknown IDs raise the matching NotFoundError."""
        with pytest.raises(MaterialNotFoundError):
            catalog_service.get_material(1)
        with pytest.raises(SupplierNotFoundError):
            catalog_service.get_supplier(1)

    def test_get_price(self, bom_setup):
        """Quoted pair returns its price; an unquoted pair returns None."""
        assert catalog_service.get_price(bom_setup["material_a"], bom_setup["s1"]) == Decimal("2.50")
        assert catalog_service.get_price(bom_setup["material_a"], bom_setup["s2"]) is None

    def test_get_price_unknown_supplier(self, bom_setup):
        """A price lookup for a missing supplier is NotFound, not None."""
        with pytest.raises(SupplierNotFoundError):
            catalog_service.get_price(bom_setup["material_a"], 999)

    def test_list_prices_cheapest_first(self, bom_setup):
        """Quotes are ordered by price."""
        price_service.upsert_price(bom_setup["material_a"], bom_setup["s2"], Decimal("1.75"))

        quotes = catalog_service.list_prices_for_material(bom_setup["material_a"])

        assert [q["supplier_id"] for q in quotes] == [bom_setup["s2"], bom_setup["s1"]]


class TestLoadPriceCatalog:
    """Tests for load_price_catalog."""

    def test_snapshot_contents(self, bom_setup):
        """The snapshot holds every price, material and supplier."""
        catalog = catalog_service.load_price_catalog()

        assert catalog.get_price(bom_setup["material_a"], bom_setup["s1"]) == Decimal("2.50")
        assert catalog.material_names[bom_setup["material_a"]] == "A"
        assert catalog.material_units[bom_setup["material_a"]] == "kg"
        assert set(catalog.supplier_names) == {bom_setup["s1"], bom_setup["s2"]}

    def test_snapshot_is_immutable(self, bom_setup):
        """Snapshot mappings cannot be written."""
        catalog = catalog_service.load_price_catalog()

        with pytest.raises(TypeError):
            catalog.prices[(1, 1)] = Decimal("1")

    def test_snapshot_not_affected_by_later_writes(self, bom_setup):
        """A snapshot keeps the prices it was taken with."""
        catalog = catalog_service.load_price_catalog()
        price_service.upsert_price(bom_setup["material_a"], bom_setup["s1"], Decimal("9"))

        assert catalog.get_price(bom_setup["material_a"], bom_setup["s1"]) == Decimal("2.50")
