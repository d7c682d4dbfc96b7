"""
User module.

Usage:
    from automator.features.users import User, UserRegistry

Types:
- User, UserProfile, UserPreferences

Protocols:
- UserRegistry: read and partially update users
- NotificationSink: user facing notifications
"""

from .types import User, UserProfile, UserPreferences
from .registry import UserRegistry, NotificationSink

__all__ = [
    "User",
    "UserProfile",
    "UserPreferences",
    "UserRegistry",
    "NotificationSink",
]
