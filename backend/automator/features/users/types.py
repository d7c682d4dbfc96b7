"""
User data as seen by the processing pipeline.

Accounts are managed elsewhere; the pipeline reads these fields and
only changes them through the UserRegistry.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from automator.features.recipes.types import Recipe


@dataclass
class UserProfile:
    ftp: Optional[int] = None


@dataclass
class UserPreferences:
    privacy_mode: bool = False
    ftp_auto_update: bool = False


@dataclass
class User:
    id: str
    display_name: str
    strava_id: Optional[str] = None
    recipes: dict[str, Recipe] = field(default_factory=dict)
    suspended: bool = False
    write_suspended: bool = False
    is_pro: bool = False
    profile: UserProfile = field(default_factory=UserProfile)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    date_last_ftp_update: Optional[datetime] = None
    date_last_batch_processing: Optional[datetime] = None
    activity_count: int = 0

    def __str__(self) -> str:
        return f"User {self.id} {self.display_name}"
