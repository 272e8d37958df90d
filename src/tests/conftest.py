"""Pytest configuration and fixtures for service layer tests."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from src.models.base import Base
from src.services.database import get_session_factory


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    # Create in-memory SQLite database for testing
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Create all tables
    Base.metadata.create_all(engine)

    # Create session factory
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    # Provide database to test
    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)

    # Restore original session factory
    db_module.get_session_factory = original_get_session


@pytest.fixture(scope="function")
def sample_supplier(test_db):
    """Provide a sample supplier for tests."""
    from src.services import supplier_service

    return supplier_service.create_supplier(name="Acme Metals", tax_id="12.345.678/0001-90")


@pytest.fixture(scope="function")
def sample_material(test_db):
    """Provide a sample material with 10 kg in stock."""
    from src.services import material_service

    return material_service.create_material(
        name="Steel Sheet", unit="kg", stock=Decimal("10"), min_stock=Decimal("5")
    )


@pytest.fixture(scope="function")
def bom_setup(test_db):
    """
    Set up a one-material product.

    Creates:
    - Suppliers S1 and S2
    - Material A: 10 kg in stock, quoted 2.50 by S1
    - Product P: selling price 15, composition [A x 4 @ S1]

    Returns a dict of IDs.
    """
    from src.services import material_service, price_service, product_service, supplier_service

    s1 = supplier_service.create_supplier(name="S1")
    s2 = supplier_service.create_supplier(name="S2")
    material_a = material_service.create_material(name="A", unit="kg", stock=Decimal("10"))
    price_service.upsert_price(material_a["id"], s1["id"], Decimal("2.50"))
    product = product_service.create_product(
        name="P",
        selling_price=Decimal("15"),
        composition=[
            {"material_id": material_a["id"], "supplier_id": s1["id"], "quantity": Decimal("4")}
        ],
    )
    return {
        "s1": s1["id"],
        "s2": s2["id"],
        "material_a": material_a["id"],
        "product": product["id"],
    }


@pytest.fixture(scope="function")
def two_material_setup(bom_setup):
    """
    Extend bom_setup with a second product using two materials.

    Creates:
    - Material B: 3 un in stock, quoted 1.00 by S2
    - Product Q: selling price 40, composition [A x 2 @ S1, B x 2 @ S2]

    With A=10 and B=3, a batch of 2 needs A=4 (enough) and B=4 (short).
    """
    from src.services import material_service, price_service, product_service

    material_b = material_service.create_material(name="B", unit="un", stock=Decimal("3"))
    price_service.upsert_price(material_b["id"], bom_setup["s2"], Decimal("1.00"))
    product = product_service.create_product(
        name="Q",
        selling_price=Decimal("40"),
        composition=[
            {"material_id": bom_setup["material_a"], "supplier_id": bom_setup["s1"], "quantity": 2},
            {"material_id": material_b["id"], "supplier_id": bom_setup["s2"], "quantity": 2},
        ],
    )
    return {**bom_setup, "material_b": material_b["id"], "product_q": product["id"]}
