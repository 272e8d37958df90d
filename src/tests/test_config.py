"""Tests for configuration management."""

from decimal import Decimal

import pytest

from src.utils import config as config_module
from src.utils.config import Config, get_config, reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from the process environment and singleton."""
    for name in (
        config_module.ENV_VAR_ENVIRONMENT,
        config_module.ENV_VAR_DATABASE_URL,
        config_module.ENV_VAR_LOG_LEVEL,
        config_module.ENV_VAR_LOW_MARGIN,
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestConfig:
    """Tests for Config."""

    def test_database_url_override(self, monkeypatch):
        """An explicit URL wins over the SQLite file location."""
        monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "postgresql://db/bom")

        config = Config("production")

        assert config.database_url == "postgresql://db/bom"
        assert config.database_exists() is True

    def test_development_database_in_project_data(self, monkeypatch, tmp_path):
        """Development mode keeps the SQLite file under the project data/ dir."""
        monkeypatch.setattr(Config, "_get_project_data_dir", lambda self: tmp_path / "data")

        config = Config("development")

        assert config.is_development
        assert config.database_path == tmp_path / "data" / "bom_tracker.db"
        assert config.database_url.startswith("sqlite:///")
        assert (tmp_path / "data").is_dir()

    def test_defaults(self, monkeypatch):
        """Log level defaults to INFO and margin threshold to 20."""
        monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "sqlite:///:memory:")

        config = Config()

        assert config.log_level == "INFO"
        assert config.low_margin_threshold == Decimal("20")

    def test_low_margin_from_environment(self, monkeypatch):
        """BOM_TRACKER_LOW_MARGIN sets the threshold."""
        monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "sqlite:///:memory:")
        monkeypatch.setenv(config_module.ENV_VAR_LOW_MARGIN, "12.5")

        assert Config().low_margin_threshold == Decimal("12.5")

    def test_invalid_low_margin_falls_back(self, monkeypatch):
        """An unparseable threshold falls back to the default."""
        monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "sqlite:///:memory:")
        monkeypatch.setenv(config_module.ENV_VAR_LOW_MARGIN, "lots")

        assert Config().low_margin_threshold == Decimal("20")


class TestGetConfig:
    """Tests for the configuration singleton."""

    def test_environment_from_variable(self, monkeypatch):
        """BOM_TRACKER_ENV picks the environment on first use."""
        monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "sqlite:///:memory:")
        monkeypatch.setenv(config_module.ENV_VAR_ENVIRONMENT, "development")

        assert get_config().environment == "development"

    def test_singleton_keeps_environment(self, monkeypatch):
        """A later call with another environment returns the existing instance."""
        monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "sqlite:///:memory:")
        first = get_config("development")

        assert get_config("production") is first
        assert first.environment == "development"
