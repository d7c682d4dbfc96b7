"""
Database Models

Feature models live next to their feature (features/<name>/models.py)
and register themselves on the shared declarative Base.
"""

from automator.models.base import Base

__all__ = ["Base"]
