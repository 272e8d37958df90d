"""Tests for database initialization and the session_scope transaction boundary."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from src.models import Material
from src.services import database
from src.utils import config as config_module


@pytest.fixture
def memory_database(monkeypatch):
    """Point the global engine at a fresh in-memory database."""
    monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "sqlite:///:memory:")
    config_module.reset_config()
    database.close_connections()
    yield
    database.close_connections()
    config_module.reset_config()


class TestInitialization:
    """Tests for table creation and verification."""

    def test_initialize_app_database(self, memory_database):
        """Initialization creates the core tables."""
        database.initialize_app_database()

        assert database.verify_database() is True

    def test_reset_requires_confirmation(self, memory_database):
        """reset_database refuses to run without confirm=True."""
        with pytest.raises(ValueError):
            database.reset_database()

    def test_reset_database_empties_tables(self, memory_database):
        """A confirmed reset drops existing rows."""
        database.initialize_app_database()
        with database.session_scope() as session:
            session.add(Material(name="A", unit="kg", stock=Decimal("1")))

        database.reset_database(confirm=True)

        with database.session_scope() as session:
            assert session.query(Material).count() == 0


class TestSessionScope:
    """Tests for session_scope commit and rollback."""

    def test_commits_on_success(self, memory_database):
        """Work inside the scope is committed."""
        database.initialize_app_database()
        with database.session_scope() as session:
            session.add(Material(name="A", unit="kg", stock=Decimal("1")))

        with database.session_scope() as session:
            assert session.query(Material).count() == 1

    def test_rolls_back_on_error(self, memory_database):
        """An exception discards every change made in the scope."""
        database.initialize_app_database()
        with pytest.raises(RuntimeError):
            with database.session_scope() as session:
                session.add(Material(name="A", unit="kg", stock=Decimal("1")))
                session.flush()
                raise RuntimeError("boom")

        with database.session_scope() as session:
            assert session.query(Material).count() == 0


class TestFileEngine:
    """Tests for file-backed SQLite engines."""

    def test_transaction_takes_write_lock_at_begin(self, tmp_path):
        """A transaction is open on the driver before any write is issued."""
        engine = database.create_database_engine(f"sqlite:///{tmp_path / 'locks.db'}")
        try:
            with engine.connect() as conn:
                with conn.begin():
                    conn.exec_driver_sql("SELECT 1")
                    assert conn.connection.dbapi_connection.in_transaction is True
        finally:
            engine.dispose()

    def test_second_writer_waits_for_first(self, tmp_path):
        """While one transaction is open another cannot begin."""
        url = f"sqlite:///{tmp_path / 'locks.db'}"
        engine = database.create_database_engine(url)
        other = create_engine(url, connect_args={"timeout": 0.1})
        try:
            with engine.connect() as conn:
                with conn.begin():
                    conn.exec_driver_sql("SELECT 1")
                    with pytest.raises(OperationalError):
                        with other.connect() as other_conn:
                            other_conn.exec_driver_sql("BEGIN IMMEDIATE")
        finally:
            other.dispose()
            engine.dispose()
