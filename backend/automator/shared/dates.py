"""
Date helpers.

All timestamps handled by the service are naive UTC datetimes.
"""

from datetime import datetime, timezone


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC, naive values are kept as is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
