"""
Strava provider interface.

The HTTP client lives outside this service; the pipeline only depends
on this protocol. Any call may raise StravaError, and a gone resource
raises StravaNotFoundError.
"""

from datetime import datetime
from typing import Optional, Protocol, TYPE_CHECKING

from .types import Activity, Athlete, PowerStream

if TYPE_CHECKING:
    from automator.features.users.types import User


class StravaProvider(Protocol):
    """Async access to the athlete's Strava data."""

    async def get_activity(self, user: "User", activity_id: int) -> Activity:
        ...

    async def list_activities(
        self,
        user: "User",
        after: datetime,
        before: Optional[datetime] = None,
    ) -> list[Activity]:
        ...

    async def update_activity(self, user: "User", activity: Activity) -> None:
        """Push the fields listed in activity.updated_fields."""
        ...

    async def get_athlete(self, user: "User") -> Athlete:
        ...

    async def update_athlete_ftp(self, user: "User", ftp: int) -> None:
        ...

    async def get_power_stream(self, user: "User", activity_id: int) -> PowerStream:
        ...


class RecordsTracker(Protocol):
    """Personal records bookkeeping for an athlete."""

    async def check_activity_records(self, user: "User", activities: list[Activity]) -> None:
        ...
