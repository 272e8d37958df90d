"""
Enumerations for production tracking.

ProductionRunStatus is the state set of the production ledger:

    PENDING -> COMPLETED
    PENDING -> CANCELLED

Both COMPLETED and CANCELLED are terminal.
"""

from enum import Enum


class ProductionRunStatus(str, Enum):
    """
    Lifecycle status of a production run.

    Values:
        PENDING: Run accepted; its materials are already deducted from stock
        COMPLETED: Finished goods were added to product stock
        CANCELLED: Deducted materials were returned to stock
    """

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """True for statuses that admit no further transition."""
        return self is not ProductionRunStatus.PENDING
