"""
Configuration management for the BOM Cost Tracker.

This module handles:
- Database path and URL configuration
- Environment-specific configuration (development vs. production)
- Logging level and margin alert threshold
"""

import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    DEFAULT_LOW_MARGIN_THRESHOLD,
)

ENV_VAR_ENVIRONMENT = "BOM_TRACKER_ENV"
ENV_VAR_DATABASE_URL = "BOM_TRACKER_DATABASE_URL"
ENV_VAR_LOG_LEVEL = "BOM_TRACKER_LOG_LEVEL"
ENV_VAR_LOW_MARGIN = "BOM_TRACKER_LOW_MARGIN"


class Config:
    """
    Application configuration manager.

    Settings are read once from the environment when the instance is
    created. A database URL override takes precedence over the file-based
    SQLite location.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION

        # Determine base directory
        if environment == "development":
            # Use project data/ directory for development
            self._base_dir = self._get_project_data_dir()
        else:
            # Use a per-user directory for production
            self._base_dir = self._get_user_data_dir()

        # Database configuration
        self._database_dir = self._base_dir
        self._database_path = self._database_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_VAR_DATABASE_URL) or None

        # Logging and margin alerts
        self._log_level = os.environ.get(ENV_VAR_LOG_LEVEL, "INFO").upper()
        self._low_margin_threshold = self._read_low_margin_threshold()

        # Ensure directories exist (not needed for a database URL override)
        if self._database_url_override is None:
            self._ensure_directories()

    def _get_project_data_dir(self) -> Path:
        """Get the project's data/ directory for development."""
        # Get the project root (3 levels up from this file)
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """Get the per-user application directory for production."""
        return Path.home() / ".bom_tracker"

    def _ensure_directories(self):
        """Create necessary directories if they don't exist."""
        self._database_dir.mkdir(parents=True, exist_ok=True)

    def _read_low_margin_threshold(self) -> Decimal:
        raw = os.environ.get(ENV_VAR_LOW_MARGIN)
        # Unset means the default threshold
        if raw is None:
            return DEFAULT_LOW_MARGIN_THRESHOLD
        try:
            return Decimal(raw)
        except InvalidOperation:
            logging.getLogger(__name__).warning(
                f"Ignoring invalid {ENV_VAR_LOW_MARGIN}={raw!r}; "
                f"using default {DEFAULT_LOW_MARGIN_THRESHOLD}"
            )
            return DEFAULT_LOW_MARGIN_THRESHOLD

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def database_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            The override URL if one is configured, else a sqlite:/// URL
        """
        if self._database_url_override:
            return self._database_url_override
        # Use forward slashes for SQLite URL
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def log_level(self) -> str:
        """Logging level name for the command line."""
        return self._log_level

    @property
    def low_margin_threshold(self) -> Decimal:
        """Margin percentage below which a product is flagged."""
        return self._low_margin_threshold

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if the database exists.

        Non-SQLite URLs are assumed to point at a provisioned server.
        """
        if self._database_url_override:
            return True
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing a
    different environment argument; this prevents switching databases in the
    middle of a session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    BOM_TRACKER_ENV or defaults to production. Ignored if the
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        # First call - create the singleton
        if environment is None:
            # Check environment variable, default to production
            environment = os.environ.get(ENV_VAR_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        # Log warning but don't replace singleton to prevent switching databases
        logging.getLogger(__name__).warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None
