"""
User registry and notification interfaces.
"""

from datetime import datetime
from typing import Any, Optional, Protocol

from .types import User


class UserRegistry(Protocol):

    async def get_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def get_by_strava_id(self, athlete_id: str) -> Optional[User]:
        ...

    async def update(self, user_id: str, **fields: Any) -> None:
        """Persist a partial update of the user."""
        ...

    async def increment_activity_count(self, user: User) -> None:
        ...


class NotificationSink(Protocol):

    async def create_notification(
        self,
        user: User,
        title: str,
        body: str,
        activity_id: Optional[int] = None,
        date_expiry: Optional[datetime] = None,
    ) -> None:
        ...
