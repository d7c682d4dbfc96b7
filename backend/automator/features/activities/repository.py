"""
Processed activity repository.

Data access layer for the queue entries and processing outcomes.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from automator.shared.repository import BaseRepository
from .models import ProcessedActivity


class ProcessedActivityRepository(BaseRepository[ProcessedActivity]):
    """Repository for queued and processed activities."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ProcessedActivity)

    async def get_queued(self, before: datetime, limit: int) -> list[ProcessedActivity]:
        """
        Get activities queued at or before the given date.

        Args:
            before: Only entries with date_queued <= before
            limit: Maximum entries to return

        Returns:
            Entries ordered by date_queued, oldest first
        """
        result = await self.db.execute(
            select(ProcessedActivity)
            .where(ProcessedActivity.date_queued <= before)
            .order_by(ProcessedActivity.date_queued)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_batch(self, limit: int) -> list[ProcessedActivity]:
        """Get entries queued by historical batch processing, regardless of age."""
        result = await self.db.execute(
            select(ProcessedActivity)
            .where(ProcessedActivity.batch == True)  # noqa: E712
            .order_by(ProcessedActivity.date_queued)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_processed(
        self,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[ProcessedActivity]:
        """
        Get processed activities, newest first. Pending queue entries
        are never included.

        Args:
            user_id: Filter by owner
            date_from: Processed at or after
            date_to: Processed at or before
            limit: Maximum entries to return
        """
        query = (
            select(ProcessedActivity)
            .where(ProcessedActivity.date_processed.isnot(None))
            .order_by(desc(ProcessedActivity.date_processed))
        )
        if user_id:
            query = query.where(ProcessedActivity.user_id == user_id)
        if date_from:
            query = query.where(ProcessedActivity.date_processed >= date_from)
        if date_to:
            query = query.where(ProcessedActivity.date_processed <= date_to)
        if limit:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_processed(
        self,
        user_id: Optional[str] = None,
        before: Optional[datetime] = None,
    ) -> int:
        """
        Delete activities by owner and / or processing date.

        Args:
            user_id: Delete only this user's activities
            before: Delete only activities processed before this date

        Returns:
            Number of deleted rows
        """
        query = delete(ProcessedActivity)
        if user_id:
            query = query.where(ProcessedActivity.user_id == user_id)
        if before:
            query = query.where(ProcessedActivity.date_processed < before)

        result = await self.db.execute(query)
        return result.rowcount or 0
