"""Tests for Stock Service adjustments and the low-stock report."""

import pytest
from decimal import Decimal

from src.services import material_service, stock_service
from src.services.database import session_scope
from src.services.exceptions import MaterialNotFoundError, NegativeStockError, ProductNotFoundError


class TestAdjustStock:
    """Tests for adjust_material_stock and adjust_product_stock."""

    def test_adjust_material_stock(self, sample_material):
        """Deltas add to and subtract from stock."""
        with session_scope() as session:
            assert stock_service.adjust_material_stock(
                sample_material["id"], Decimal("-2.5"), session
            ) == Decimal("7.5")
            stock_service.adjust_material_stock(sample_material["id"], Decimal("1"), session)

        assert material_service.get_material_stock(sample_material["id"]) == Decimal("8.5")

    def test_material_stock_never_negative(self, sample_material):
        """Going below zero raises and the transaction rolls back."""
        with pytest.raises(NegativeStockError):
            with session_scope() as session:
                stock_service.adjust_material_stock(sample_material["id"], Decimal("-4"), session)
                stock_service.adjust_material_stock(sample_material["id"], Decimal("-7"), session)

        assert material_service.get_material_stock(sample_material["id"]) == Decimal("10")

    def test_adjust_missing_material(self, test_db):
        """Unknown material raises MaterialNotFoundError."""
        with session_scope() as session:
            with pytest.raises(MaterialNotFoundError):
                stock_service.adjust_material_stock(1, Decimal("1"), session)

    def test_adjust_product_stock(self, bom_setup):
        """Finished units are added to the product."""
        with session_scope() as session:
            assert stock_service.adjust_product_stock(bom_setup["product"], 3, session) == 3
            with pytest.raises(NegativeStockError):
                stock_service.adjust_product_stock(bom_setup["product"], -4, session)

    def test_adjust_missing_product(self, test_db):
        """Unknown product raises ProductNotFoundError."""
        with session_scope() as session:
            with pytest.raises(ProductNotFoundError):
                stock_service.adjust_product_stock(1, 1, session)


class TestLowStock:
    """Tests for get_low_stock_materials."""

    def test_low_stock_ordered_by_ratio(self, test_db):
        """Materials below minimum are listed most depleted first."""
        material_service.create_material(name="Fine", unit="kg", stock=10, min_stock=5)
        material_service.create_material(name="Half", unit="kg", stock=5, min_stock=10)
        material_service.create_material(name="Empty", unit="un", stock=0, min_stock=4)

        names = [m["name"] for m in stock_service.get_low_stock_materials()]

        assert names == ["Empty", "Half"]

    def test_zero_minimum_never_low(self, test_db):
        """A material without a minimum is never reported."""
        material_service.create_material(name="Any", unit="kg", stock=0, min_stock=0)

        assert stock_service.get_low_stock_materials() == []
