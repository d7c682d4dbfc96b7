"""
Activity processing.

Runs a Strava activity through the user's recipes, pushes the changed
fields back to Strava and saves the outcome.

Processing Flow:
1. Skip users without recipes or suspended users
2. Fetch the activity (404 is terminal, other errors queue a retry)
3. Check personal records
4. Evaluate recipes in order (defaults first), stop at a kill switch
5. Push updated fields to Strava (errors are recorded, not raised)
6. Save the ProcessedActivity and emit the processed event
7. Trigger an FTP update for recent, hard enough rides
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from automator.config import Settings, settings
from automator.shared.constants import EVENT_ACTIVITY_PROCESSED
from automator.shared.dates import to_naive_utc
from automator.shared.events import EventBus
from automator.features.recipes import Recipe, RecipeEngine
from automator.features.strava import (
    Activity,
    StravaProvider,
    RecordsTracker,
    is_not_found,
    friendly_error_message,
)
from automator.features.users import User, UserRegistry, NotificationSink
from .exceptions import InvalidDateRangeError, MissingFilterError
from .fields import format_updated_fields, unique_fields
from .models import ProcessedActivity
from .queue import ActivityQueue
from .repository import ProcessedActivityRepository
from .schemas import ActivityFilter

if TYPE_CHECKING:
    from automator.features.ftp import FtpEstimator

logger = logging.getLogger(__name__)

# Activities older than this never trigger an automatic FTP update
FTP_RECENT_ACTIVITY = timedelta(days=2)

# Failure notifications expire after this period
NOTIFICATION_EXPIRY = timedelta(days=14)


class ActivityProcessor:
    """
    Activity processing orchestrator.

    Usage:
        processor = ActivityProcessor(
            AsyncSessionLocal, strava, recipes, users, notifications,
            records, queue=queue, ftp=ftp, events=events,
        )
        result = await processor.process(user, activity_id)
    """

    def __init__(
        self,
        db_factory: async_sessionmaker[AsyncSession],
        strava: StravaProvider,
        recipes: RecipeEngine,
        users: UserRegistry,
        notifications: NotificationSink,
        records: RecordsTracker,
        queue: ActivityQueue,
        ftp: Optional["FtpEstimator"] = None,
        events: Optional[EventBus] = None,
        config: Settings = settings,
    ):
        self._db_factory = db_factory
        self.strava = strava
        self.recipes = recipes
        self.users = users
        self.notifications = notifications
        self.records = records
        self.queue = queue
        self.ftp = ftp
        self.events = events or EventBus()
        self.config = config

    # -------------------------------------------------------------------------
    # Processing
    # -------------------------------------------------------------------------

    async def process(
        self,
        user: User,
        activity_id: int,
        queued: bool = False
    ) -> Optional[ProcessedActivity]:
        """
        Process an activity event pushed by Strava.

        Args:
            user: Activity owner
            activity_id: Strava activity ID
            queued: Activity comes from the queue (False means real time)

        Returns:
            The saved ProcessedActivity, or None if nothing was done
        """
        if not user.recipes:
            logger.info(f"{user} has no recipes, won't process activity {activity_id}")
            return None

        if user.suspended:
            logger.warning(f"{user} is suspended, won't process activity {activity_id}")
            return None

        activity = await self._fetch_activity(user, activity_id, queued)
        if activity is None:
            return None

        try:
            await self.records.check_activity_records(user, [activity])
        except Exception as e:
            logger.error(f"{user} activity {activity_id}: failed to check records: {e}")

        recipe_ids = await self._evaluate_recipes(user, activity)
        result = None

        if recipe_ids:
            actions = unique_fields([
                action.type
                for rid in recipe_ids
                for action in user.recipes[rid].actions
            ])
            logger.info(
                f"{user} activity {activity_id}: {'from queue' if queued else 'realtime'}, "
                f"recipes: {', '.join(recipe_ids)}, actions: {', '.join(actions)}"
            )

            activity.updated_fields = unique_fields(activity.updated_fields)

            # Write suspended (possibly missing permissions)? Stop here.
            if user.write_suspended:
                logger.warning(f"{user} activity {activity_id}: user write suspended, won't update the activity")
                return None

            save_error = await self._update_activity(user, activity)

            try:
                await self.users.increment_activity_count(user)
                user.activity_count += 1
            except Exception as e:
                logger.error(f"{user} activity {activity_id}: failed to increment activity count: {e}")

            try:
                result = await self.save_processed_activity(user, activity, recipe_ids, save_error)
            except Exception as e:
                logger.error(f"{user} activity {activity_id}: not saved to database: {e}")
                result = self._build_record(user, activity, recipe_ids, save_error)

            await self.events.emit(EVENT_ACTIVITY_PROCESSED, user, activity)
        else:
            logger.info(f"{user} activity {activity_id}: no matching recipes")

        await self._check_ftp(user, activity)

        return result

    async def _fetch_activity(self, user: User, activity_id: int, queued: bool) -> Optional[Activity]:
        """Get the activity from Strava, queueing a retry on transient errors."""
        try:
            return await self.strava.get_activity(user, activity_id)
        except Exception as e:
            if is_not_found(e):
                logger.warning(f"{user} activity {activity_id} not found")
                return None

            logger.error(f"{user} activity {activity_id}: failed to fetch: {e}")

            # Queue to retry later; from then on the queue handles retries
            if not queued:
                await self.queue.enqueue(user, activity_id)
            raise

    def sorted_recipes(self, user: User) -> list[Recipe]:
        """
        User recipes in evaluation order, capped to the free plan limit
        when the user is not PRO.
        """
        recipes = sorted(user.recipes.values(), key=Recipe.sort_key)

        if not user.is_pro and len(recipes) > self.config.free_max_recipes:
            recipes = recipes[:self.config.free_max_recipes]

        return recipes

    async def _evaluate_recipes(self, user: User, activity: Activity) -> list[str]:
        """Evaluate recipes in order, returning the ids of the ones that fired."""
        recipe_ids: list[str] = []

        for recipe in self.sorted_recipes(user):
            try:
                if await self.recipes.evaluate(user, recipe.id, activity):
                    recipe_ids.append(recipe.id)

                    if recipe.kill_switch:
                        logger.debug(f"{user} activity {activity.id}: recipe {recipe.id} kill switch")
                        break
            except Exception as e:
                logger.error(f"{user} activity {activity.id}: recipe {recipe.id} failed: {e}")

        return recipe_ids

    async def _update_activity(self, user: User, activity: Activity) -> Optional[str]:
        """
        Push updated fields to Strava.

        Returns:
            A user facing error message if the update failed
        """
        try:
            await self.strava.update_activity(user, activity)
            return None
        except Exception as e:
            logger.error(f"{user} activity {activity.id}: failed to update on Strava: {e}")
            save_error = friendly_error_message(e)

        # Let the user know the activity could not be updated
        if activity.end:
            try:
                local_end = activity.end
                if activity.utc_start_offset:
                    local_end = local_end + timedelta(minutes=activity.utc_start_offset)

                title = f"Failed to process activity {activity.id}"
                body = (
                    f"There was an error processing your {activity.sport_type} \"{activity.name}\", "
                    f"on {local_end:%Y-%m-%d %H:%M}. Strava returned an error message."
                )
                await self.notifications.create_notification(
                    user,
                    title=title,
                    body=body,
                    activity_id=activity.id,
                    date_expiry=datetime.utcnow() + NOTIFICATION_EXPIRY,
                )
            except Exception:
                logger.warning(f"Failed creating notification for activity {activity.id}, from {user}")

        return save_error

    async def _check_ftp(self, user: User, activity: Activity) -> None:
        """Update the FTP if opted in and the activity is recent and hard enough."""
        if self.ftp is None:
            return

        try:
            current_ftp = user.profile.ftp
            should_update = user.preferences.ftp_auto_update and current_ftp
            if not should_update:
                return

            power_increased = activity.has_power and (activity.watts_weighted or 0) >= current_ftp
            is_recent = (
                activity.date_start is not None
                and activity.date_start > datetime.utcnow() - FTP_RECENT_ACTIVITY
            )

            if power_increased and is_recent:
                await self.ftp.process(user)
        except Exception as e:
            logger.error(f"{user} activity {activity.id}: failed to auto update FTP: {e}")

    # -------------------------------------------------------------------------
    # Processed activities
    # -------------------------------------------------------------------------

    def _build_record(
        self,
        user: User,
        activity: Activity,
        recipe_ids: list[str],
        error: Optional[str] = None,
    ) -> ProcessedActivity:
        recipe_details = {}
        for rid in recipe_ids:
            recipe = user.recipes[rid]
            recipe_details[rid] = {
                "title": recipe.title,
                "conditions": [self.recipes.get_condition_summary(c) for c in recipe.conditions],
                "actions": [self.recipes.get_action_summary(a) for a in recipe.actions],
            }

        record = ProcessedActivity(
            id=activity.id,
            user_id=user.id,
            user_display_name=user.display_name,
            date_queued=None,
            date_processed=datetime.utcnow(),
            retry_count=0,
            batch=False,
            recipes=recipe_details,
            updated_fields=format_updated_fields(activity),
            error=str(error) if error else None,
            linkback=bool(activity.linkback),
            sport_type=None,
            name=None,
            date_start=None,
            utc_start_offset=None,
            new_records=None,
        )

        # Activity details only when the user has not opted for privacy mode
        if not user.preferences.privacy_mode:
            record.sport_type = activity.sport_type
            record.name = activity.name
            record.date_start = activity.date_start
            record.utc_start_offset = activity.utc_start_offset
            if activity.new_records:
                record.new_records = list(activity.new_records)

        return record

    async def save_processed_activity(
        self,
        user: User,
        activity: Activity,
        recipe_ids: list[str],
        error: Optional[str] = None,
    ) -> ProcessedActivity:
        """
        Save a processed activity with user and recipe details.

        Overwrites the queue entry of the same activity, if any.

        Args:
            user: Activity owner
            activity: Strava activity details
            recipe_ids: Triggered recipe IDs
            error: Error message, if updating Strava failed
        """
        record = self._build_record(user, activity, recipe_ids, error)

        if record.linkback:
            logger.info(f"{user} activity {activity.id}: linkback")

        try:
            async with self._db_factory() as db:
                await ProcessedActivityRepository(db).replace(record)
                await db.commit()
        except Exception as e:
            logger.error(f"{user} activity {activity.id}: failed to save processed activity: {e}")
            raise

        logger.debug(f"{user} activity {activity.id}: saved processed activity")
        return record

    async def get_processed_activities(
        self,
        user: Optional[User] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[ProcessedActivity]:
        """
        Get processed activities, newest first.

        Args:
            user: Activities owner, all users if not set
            date_from: Processed since date
            date_to: Processed up to date
            limit: Maximum number of results
        """
        date_from = to_naive_utc(date_from) if date_from else None
        date_to = to_naive_utc(date_to) if date_to else None

        async with self._db_factory() as db:
            activities = await ProcessedActivityRepository(db).get_processed(
                user_id=user.id if user else None,
                date_from=date_from,
                date_to=date_to,
                limit=limit,
            )

        logger.info(
            f"{user or 'All users'}: got {len(activities) or 'no'} activities"
            f"{f' from {date_from:%Y-%m-%d}' if date_from else ''}"
            f"{f' to {date_to:%Y-%m-%d}' if date_to else ''}"
            f"{f', limit {limit}' if limit else ''}"
        )
        return activities

    async def delete_processed_activities(
        self,
        user: Optional[User] = None,
        age_days: Optional[int] = None,
    ) -> int:
        """
        Delete processed activities for a user and / or older than the
        given number of days. At least one of them is required.

        Returns:
            Number of deleted activities
        """
        if not user and not age_days:
            raise MissingFilterError("At least a user or a max age in days is necessary")

        user_log = str(user) if user else "All users"
        since_log = f"older than {age_days} days" if age_days else "since the beginning"
        before = datetime.utcnow() - timedelta(days=age_days) if age_days else None

        async with self._db_factory() as db:
            count = await ProcessedActivityRepository(db).delete_processed(
                user_id=user.id if user else None,
                before=before,
            )
            await db.commit()

        logger.info(f"{user_log}, {since_log}: deleted {count or 'no'} activities")
        return count

    # -------------------------------------------------------------------------
    # Batch processing
    # -------------------------------------------------------------------------

    async def batch_process(
        self,
        user: User,
        date_from: datetime,
        date_to: Optional[datetime] = None,
        activity_filter: Optional[ActivityFilter] = None,
    ) -> int:
        """
        Queue the user's activities in the given date range.

        Args:
            user: Activities owner
            date_from: Activities since this date
            date_to: Activities up to this date, defaults to now
            activity_filter: Optional activity filters

        Returns:
            Number of activities queued
        """
        now = datetime.utcnow()
        date_from = to_naive_utc(date_from)
        date_to = to_naive_utc(date_to) if date_to else now
        activity_filter = activity_filter or ActivityFilter()
        date_log = f"{date_from:%Y-%m-%d %H:%M} to {date_to:%Y-%m-%d %H:%M}"

        if user.suspended or not user.recipes:
            logger.info(f"{user} is suspended or has no recipes, won't batch process")
            return 0

        max_days = self.config.batch_days_for(user.is_pro)
        min_date = (now - timedelta(days=max_days)).replace(hour=0, minute=0, second=0, microsecond=0)
        if date_from < min_date:
            raise InvalidDateRangeError(f"Invalid date range, minimum allowed date: {min_date:%Y-%m-%d}")

        activities = await self.strava.list_activities(user, after=date_from, before=date_to)

        if not activities:
            logger.warning(f"{user}, {date_log}: no activities for that date range")
            return 0

        count = 0
        for activity in activities:
            if not activity_filter.matches(activity):
                continue
            try:
                await self.queue.enqueue(user, activity.id, batch=True)
                count += 1
            except Exception as e:
                logger.error(f"{user} activity {activity.id}: failed to queue for batch: {e}")

        await self.users.update(user.id, date_last_batch_processing=now)
        user.date_last_batch_processing = now

        logger.info(f"{user}, {date_log}: queued {count} out of {len(activities)} activities")
        return count
