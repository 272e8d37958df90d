"""Timezone-aware timestamp helpers.

Models and services stamp rows with UTC datetimes that carry tzinfo, so
every timestamp comes from here instead of datetime.utcnow().

Usage:
    from src.utils.datetime_utils import utc_now

    created_at = Column(DateTime, default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time in UTC with tzinfo attached."""
    return datetime.now(timezone.utc)
