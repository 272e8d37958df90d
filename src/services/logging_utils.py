"""Service layer logging utilities.

Provides structured logging for service operations so costing, simulation
and production ledger calls all log in one format.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="create_production_run",
        outcome="success",
        production_run_id=12,
        product_id=3,
    )

    log_operation(
        logger,
        operation="create_production_run",
        outcome="insufficient_stock",
        level=logging.WARNING,
        product_id=3,
        short_materials=[7, 9],
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "bom_tracker.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named 'bom_tracker.services.<module>'

    Example:
        >>> logger = get_service_logger("src.services.production_service")
        >>> logger.name
        'bom_tracker.services.production_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message reads "<operation>: <outcome>"; the operation, outcome and
    every context field are attached through 'extra' so handlers can emit
    them as structured fields.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "resolve_cost", "cancel_production_run")
        outcome: Outcome description (e.g., "success", "invalid_transition")
        level: Log level (default: INFO)
        **context: Additional context fields (entity IDs, amounts, error details)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
