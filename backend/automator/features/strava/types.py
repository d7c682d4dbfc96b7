"""
Strava data types consumed by the processing pipeline.

Activities are snapshots per fetch. The only mutable part is
`updated_fields`, which recipes append to when they change a field.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from automator.shared.constants import RACE_WORKOUT_TYPES
from automator.shared.dates import to_naive_utc


@dataclass
class Gear:
    """Bike or shoes attached to an activity."""
    id: str
    name: Optional[str] = None


@dataclass
class Activity:
    """Strava activity details."""
    id: int
    type: str
    sport_type: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    private_note: Optional[str] = None

    # Timing
    date_start: Optional[datetime] = None
    date_end: Optional[datetime] = None
    utc_start_offset: Optional[int] = None  # minutes
    moving_time: Optional[int] = None  # seconds
    total_time: Optional[int] = None  # elapsed, seconds
    distance: Optional[float] = None  # meters

    # Power
    has_power: bool = False
    watts_avg: Optional[float] = None
    watts_weighted: Optional[float] = None

    # Flags
    commute: bool = False
    private: bool = False
    trainer: bool = False
    hide_home: bool = False
    workout_type: Optional[int] = None

    gear: Optional[Gear] = None
    location_start: Optional[tuple[float, float]] = None
    location_end: Optional[tuple[float, float]] = None

    # Set while processing
    linkback: bool = False
    new_records: list[str] = field(default_factory=list)
    updated_fields: list[str] = field(default_factory=list)

    def __post_init__(self):
        # Timestamps are handled as naive UTC throughout the service
        if self.date_start:
            self.date_start = to_naive_utc(self.date_start)
        if self.date_end:
            self.date_end = to_naive_utc(self.date_end)

    @property
    def duration(self) -> int:
        """Moving time, falling back to elapsed time."""
        return self.moving_time or self.total_time or 0

    @property
    def end(self) -> Optional[datetime]:
        """End date, derived from the start when the provider omits it."""
        if self.date_end:
            return self.date_end
        if self.date_start:
            return self.date_start + timedelta(seconds=self.total_time or self.moving_time or 0)
        return None

    @property
    def is_race(self) -> bool:
        return self.workout_type in RACE_WORKOUT_TYPES


@dataclass
class PowerStream:
    """Per-second power samples of an activity."""
    data: list[float] = field(default_factory=list)
    resolution: Optional[str] = None


@dataclass
class Athlete:
    """Subset of the Strava athlete profile."""
    id: str
    ftp: Optional[int] = None
