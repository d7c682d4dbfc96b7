"""
Shared building blocks used across features.
"""

from .repository import BaseRepository
from .events import EventBus

__all__ = [
    "BaseRepository",
    "EventBus",
]
