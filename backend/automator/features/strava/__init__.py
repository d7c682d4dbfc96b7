"""
Strava integration module.

Components:
- StravaProvider: protocol for the external Strava client
- RecordsTracker: protocol for personal records tracking
- Activity, Gear, Athlete, PowerStream: data types
- StravaError and subclasses: provider errors
"""

from .types import Activity, Gear, Athlete, PowerStream
from .provider import StravaProvider, RecordsTracker
from .errors import (
    StravaError,
    StravaAPIError,
    StravaNotFoundError,
    StravaRateLimitError,
    is_not_found,
    friendly_error_message,
)

__all__ = [
    # Types
    "Activity",
    "Gear",
    "Athlete",
    "PowerStream",
    # Protocols
    "StravaProvider",
    "RecordsTracker",
    # Errors
    "StravaError",
    "StravaAPIError",
    "StravaNotFoundError",
    "StravaRateLimitError",
    "is_not_found",
    "friendly_error_message",
]
