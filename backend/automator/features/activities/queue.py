"""
Activity processing queue.

Activities that could not be processed in real time (or that belong to
a historical batch) are stored as pending ProcessedActivity rows and
drained periodically into the ActivityProcessor.

Queue Flow:
1. enqueue(): upsert the row for the activity id, keep the original
   date_queued and bump retry_count
2. check_queued(): cheap poll, drains only when the in-memory
   watermark is older than the delay interval
3. drain(): fetch due rows (or batch rows), process each one in
   isolation, delete on success, retry or drop on failure
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from automator.config import Settings, settings
from automator.features.users import User, UserRegistry
from .models import ProcessedActivity
from .repository import ProcessedActivityRepository

if TYPE_CHECKING:
    from .processor import ActivityProcessor

logger = logging.getLogger(__name__)


class ActivityQueue:
    """
    Idempotent queue of activities waiting to be processed.

    The watermark (oldest_queue_date) only decides when to poll the
    database; which rows get processed is always decided by a
    time-filtered query, so losing it on restart only delays draining.

    Usage:
        queue = ActivityQueue(AsyncSessionLocal, users)
        queue.bind_processor(processor)
        await queue.enqueue(user, activity_id)
        await queue.check_queued()
    """

    def __init__(
        self,
        db_factory: async_sessionmaker[AsyncSession],
        users: UserRegistry,
        config: Settings = settings,
    ):
        self._db_factory = db_factory
        self.users = users
        self.config = config
        self.processor: Optional["ActivityProcessor"] = None

        # Date of the oldest activity queued since the last drain
        self.oldest_queue_date: Optional[datetime] = None

    def bind_processor(self, processor: "ActivityProcessor") -> None:
        self.processor = processor

    @property
    def delay(self) -> timedelta:
        return timedelta(seconds=self.config.queue_delay_interval)

    # -------------------------------------------------------------------------
    # Enqueue
    # -------------------------------------------------------------------------

    async def enqueue(self, user: User, activity_id: int, batch: bool = False) -> None:
        """
        Add activity to the queue, to be processed on a later drain.

        If the activity was already queued, the original date_queued is
        kept and only retry_count is incremented.

        Args:
            user: Activity owner
            activity_id: Strava activity ID
            batch: Queued as part of a historical batch processing
        """
        if user.suspended:
            logger.warning(f"{user} is suspended, won't queue activity {activity_id}")
            return

        now = datetime.utcnow()

        try:
            async with self._db_factory() as db:
                repo = ProcessedActivityRepository(db)
                record = await repo.get_by_id(activity_id)
                existing = record is not None

                if not existing:
                    record = ProcessedActivity(
                        id=activity_id,
                        user_id=user.id,
                        user_display_name=user.display_name,
                        date_queued=now,
                        retry_count=1,
                        batch=batch,
                        linkback=False,
                    )
                    await repo.add(record)
                else:
                    record.date_queued = record.date_queued or now
                    record.retry_count = (record.retry_count or 0) + 1
                    record.date_processed = None
                    if batch:
                        record.batch = True

                await db.commit()
        except Exception as e:
            logger.error(f"{user} activity {activity_id}: failed to queue: {e}")
            raise

        if existing:
            logger.warning(f"{user} activity {activity_id} already queued or processed")
        else:
            logger.info(f"{user} activity {activity_id} queued")

        # First pending item since the last drain?
        if self.oldest_queue_date is None:
            self.oldest_queue_date = now

    # -------------------------------------------------------------------------
    # Draining
    # -------------------------------------------------------------------------

    async def check_queued(self) -> bool:
        """
        Drain the queue if the oldest queued activity reached the delay
        interval.

        Returns:
            True if a drain was triggered
        """
        min_date = datetime.utcnow() - self.delay

        if self.oldest_queue_date is not None and min_date > self.oldest_queue_date:
            await self.drain()
            return True

        logger.debug(f"Nothing to be processed at the moment, oldest_queue_date = {self.oldest_queue_date}")
        return False

    async def get_queued(self, before: datetime, batch_size: int) -> list[ProcessedActivity]:
        """
        Get due queued activities, falling back to batch activities of
        any age when nothing recent is due.

        Args:
            before: Only activities queued at or before this date
            batch_size: Maximum number of activities
        """
        async with self._db_factory() as db:
            repo = ProcessedActivityRepository(db)
            records = await repo.get_queued(before, batch_size)

            if records:
                logger.info(f"Batch size {batch_size}: got {len(records)} queued activities")
                return records

            records = await repo.get_batch(batch_size)

        if records:
            logger.info(f"Batch size {batch_size}: got {len(records)} batch activities")
        else:
            logger.debug(f"Batch size {batch_size}: no queued or batch activities")
        return records

    async def drain(self, batch_size: Optional[int] = None) -> int:
        """
        Process queued activities.

        Each activity is processed in isolation: failures are retried on
        a later drain until queue_max_retry is reached, then dropped.

        Args:
            batch_size: Override the configured batch size

        Returns:
            Number of activities processed with an outcome
        """
        if self.processor is None:
            raise RuntimeError("ActivityQueue has no processor bound")

        batch_size = batch_size or self.config.queue_batch_size
        users_cache: dict[str, Optional[User]] = {}

        # Enqueues during the drain start a fresh window
        self.oldest_queue_date = None

        before = datetime.utcnow() - self.delay
        records = await self.get_queued(before, batch_size)

        if not records:
            return 0

        processed_count = 0
        retry_pending = False

        for record in records:
            try:
                if record.user_id not in users_cache:
                    users_cache[record.user_id] = await self.users.get_by_id(record.user_id)
                user = users_cache[record.user_id]

                if user is None:
                    logger.warning(f"{record.user_log()} not found, dropping queued activity {record.id}")
                    await self.delete_queued(record)
                    continue

                processed = await self.processor.process(user, record.id, queued=True)

                # Invalid activity or no matching recipes
                if processed is None:
                    await self.delete_queued(record)
                else:
                    processed_count += 1
                    await self._clear_pending(record)

            except Exception as e:
                try:
                    if record.retry_count >= self.config.queue_max_retry:
                        logger.warning(
                            f"Failed to process queued activity {record.id} from user "
                            f"{record.user_id} too many times, dropping it: {e}"
                        )
                        await self.delete_queued(record)
                    else:
                        logger.warning(
                            f"Failed to process queued activity {record.id} from user "
                            f"{record.user_id}, will retry: {e}"
                        )
                        await self._increment_retry(record)
                        retry_pending = True
                except Exception as inner:
                    logger.error(f"Queued activity {record.id}: failed to handle processing error: {inner}")

        logger.info(f"Batch size {batch_size}: processed {processed_count} out of {len(records)} queued activities")

        # More work left: a full batch may have a backlog behind it,
        # and retries should run after the delay interval
        if self.oldest_queue_date is None:
            if len(records) >= batch_size:
                self.oldest_queue_date = before
            elif retry_pending:
                self.oldest_queue_date = datetime.utcnow()

        return processed_count

    async def delete_queued(self, record: ProcessedActivity) -> None:
        """Delete the queued (or processed) activity."""
        try:
            async with self._db_factory() as db:
                count = await ProcessedActivityRepository(db).delete_by_id(record.id)
                await db.commit()
        except Exception as e:
            logger.error(f"{record.user_log()} activity {record.id}: failed to delete: {e}")
            raise

        if count > 0:
            logger.info(f"{record.user_log()} activity {record.id} deleted")
        else:
            logger.warning(f"{record.user_log()} activity {record.id} not previously saved")

    async def _increment_retry(self, record: ProcessedActivity) -> None:
        async with self._db_factory() as db:
            await ProcessedActivityRepository(db).increment(record.id, "retry_count")
            await db.commit()

    async def _clear_pending(self, record: ProcessedActivity) -> None:
        """Remove the queue entry if saving the outcome did not replace it."""
        async with self._db_factory() as db:
            repo = ProcessedActivityRepository(db)
            stored = await repo.get_by_id(record.id)
            if stored is not None and stored.is_pending:
                await repo.delete_by_id(record.id)
                await db.commit()
