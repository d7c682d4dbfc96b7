"""
Tests for ActivityProcessor.process.

Strava, the recipe engine and the user registry are mocked; processed
activities and queue entries go to an in-memory database.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from automator.features.activities import ActivityProcessor, ActivityQueue
from automator.features.recipes import RecipeAction
from automator.features.strava import StravaAPIError, StravaNotFoundError
from automator.features.users import UserPreferences
from automator.shared.constants import EVENT_ACTIVITY_PROCESSED
from automator.shared.events import EventBus


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def ftp():
    return AsyncMock()


@pytest.fixture
def processor(db_factory, strava, recipe_engine, users, notifications, records, ftp, events, config):
    queue = ActivityQueue(db_factory, users, config=config)
    p = ActivityProcessor(
        db_factory,
        strava,
        recipe_engine,
        users,
        notifications,
        records,
        queue=queue,
        ftp=ftp,
        events=events,
        config=config,
    )
    queue.bind_processor(p)
    return p


def rename_to(new_name: str):
    """Recipe evaluation that fires and renames the activity."""
    async def evaluate(user, recipe_id, activity):
        activity.name = new_name
        activity.updated_fields.append("name")
        return True
    return evaluate


# =============================================================================
# Early exits
# =============================================================================

class TestEarlyExit:
    """Cases where nothing gets fetched or written."""

    async def test_user_without_recipes(self, processor, make_user, strava):
        result = await processor.process(make_user(recipes={}), 1001)

        assert result is None
        strava.get_activity.assert_not_called()

    async def test_suspended_user(self, processor, make_user, strava):
        result = await processor.process(make_user(suspended=True), 1001)

        assert result is None
        strava.get_activity.assert_not_called()

    async def test_activity_not_found(self, processor, make_user, strava, get_record):
        strava.get_activity.side_effect = StravaNotFoundError("Activity not found")

        result = await processor.process(make_user(), 1001)

        assert result is None
        assert await get_record(1001) is None

    async def test_no_recipe_fired(self, processor, make_user, make_activity, strava, get_record):
        strava.get_activity.return_value = make_activity()

        result = await processor.process(make_user(), 1001)

        assert result is None
        strava.update_activity.assert_not_called()
        assert await get_record(1001) is None


# =============================================================================
# Fetch failures
# =============================================================================

class TestFetchFailure:
    """Transient errors while fetching the activity."""

    async def test_realtime_failure_is_queued_and_raised(
        self, processor, make_user, strava, get_record
    ):
        strava.get_activity.side_effect = StravaAPIError("Server error", status_code=500)

        with pytest.raises(StravaAPIError):
            await processor.process(make_user(), 1001)

        record = await get_record(1001)
        assert record is not None
        assert record.is_pending
        assert record.retry_count == 1

    async def test_queued_failure_is_not_requeued(self, processor, make_user, strava, get_record):
        strava.get_activity.side_effect = StravaAPIError("Server error", status_code=500)

        with pytest.raises(StravaAPIError):
            await processor.process(make_user(), 1001, queued=True)

        assert await get_record(1001) is None


# =============================================================================
# Recipes
# =============================================================================

class TestRecipes:
    """Recipe ordering, limits and kill switch."""

    async def test_evaluation_order(self, processor, make_user, make_recipe, make_activity, strava, recipe_engine):
        recipes = [
            make_recipe("late", order=5),
            make_recipe("unordered"),
            make_recipe("default", default_for="Ride"),
            make_recipe("early", order=1),
        ]
        user = make_user(recipes={r.id: r for r in recipes}, is_pro=True)
        strava.get_activity.return_value = make_activity()

        await processor.process(user, 1001)

        evaluated = [c.args[1] for c in recipe_engine.evaluate.await_args_list]
        assert evaluated == ["default", "early", "late", "unordered"]

    async def test_free_plan_limit(self, processor, make_user, make_recipe, make_activity, strava, recipe_engine):
        recipes = [make_recipe(f"r{i}", order=i) for i in range(1, 5)]
        user = make_user(recipes={r.id: r for r in recipes})
        strava.get_activity.return_value = make_activity()

        await processor.process(user, 1001)

        assert recipe_engine.evaluate.await_count == 2

    async def test_pro_plan_evaluates_all(self, processor, make_user, make_recipe, make_activity, strava, recipe_engine):
        recipes = [make_recipe(f"r{i}", order=i) for i in range(1, 5)]
        user = make_user(recipes={r.id: r for r in recipes}, is_pro=True)
        strava.get_activity.return_value = make_activity()

        await processor.process(user, 1001)

        assert recipe_engine.evaluate.await_count == 4

    async def test_kill_switch_stops_evaluation(
        self, processor, make_user, make_recipe, make_activity, strava, recipe_engine
    ):
        recipes = [
            make_recipe("r1", order=1, kill_switch=True),
            make_recipe("r2", order=2),
        ]
        user = make_user(recipes={r.id: r for r in recipes})
        strava.get_activity.return_value = make_activity()
        recipe_engine.evaluate.side_effect = rename_to("Stopped")

        result = await processor.process(user, 1001)

        assert recipe_engine.evaluate.await_count == 1
        assert list(result.recipes) == ["r1"]

    async def test_failing_recipe_is_skipped(
        self, processor, make_user, make_recipe, make_activity, strava, recipe_engine
    ):
        recipes = [make_recipe("r1", order=1), make_recipe("r2", order=2)]
        user = make_user(recipes={r.id: r for r in recipes})
        strava.get_activity.return_value = make_activity()

        async def evaluate(u, recipe_id, activity):
            if recipe_id == "r1":
                raise ValueError("bad condition")
            return await rename_to("Second")(u, recipe_id, activity)

        recipe_engine.evaluate.side_effect = evaluate

        result = await processor.process(user, 1001)

        assert list(result.recipes) == ["r2"]

    async def test_records_failure_does_not_stop_processing(
        self, processor, make_user, make_activity, strava, recipe_engine, records
    ):
        strava.get_activity.return_value = make_activity()
        records.check_activity_records.side_effect = RuntimeError("records down")
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        result = await processor.process(make_user(), 1001)

        assert result is not None


# =============================================================================
# Updating and saving
# =============================================================================

class TestUpdate:
    """A recipe fired: update Strava and save the outcome."""

    async def test_updates_and_saves(
        self, processor, make_user, make_activity, strava, recipe_engine, users, get_record
    ):
        user = make_user()
        activity = make_activity()
        strava.get_activity.return_value = activity
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        result = await processor.process(user, 1001)

        strava.update_activity.assert_awaited_once_with(user, activity)
        users.increment_activity_count.assert_awaited_once_with(user)
        assert user.activity_count == 1

        record = await get_record(1001)
        assert record.user_id == "u1"
        assert record.date_processed is not None
        assert record.updated_fields == {"name": "Renamed"}
        assert record.recipes["r1"] == {
            "title": "Recipe r1",
            "conditions": ["distance gt 10"],
            "actions": ["name: Morning ride"],
        }
        assert record.error is None
        assert record.name == "Renamed"
        assert record.sport_type == "Ride"
        assert result.id == 1001

    async def test_duplicate_fields_removed(self, processor, make_user, make_activity, strava, recipe_engine):
        strava.get_activity.return_value = make_activity()

        async def evaluate(user, recipe_id, activity):
            activity.updated_fields += ["name", "gear", "name"]
            return True

        recipe_engine.evaluate.side_effect = evaluate

        result = await processor.process(make_user(), 1001)

        assert list(result.updated_fields) == ["name", "gear"]
        assert result.updated_fields["gear"] == "Road bike (b123)"

    async def test_replaces_queue_entry(
        self, processor, make_user, make_activity, strava, recipe_engine, get_record
    ):
        user = make_user()
        await processor.queue.enqueue(user, 1001, batch=True)
        strava.get_activity.return_value = make_activity()
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        await processor.process(user, 1001, queued=True)

        record = await get_record(1001)
        assert not record.is_pending
        assert record.date_queued is None
        assert record.retry_count == 0
        assert record.batch is False

    async def test_privacy_mode_hides_details(
        self, processor, make_user, make_activity, strava, recipe_engine, get_record
    ):
        user = make_user(preferences=UserPreferences(privacy_mode=True))
        strava.get_activity.return_value = make_activity()
        recipe_engine.evaluate.side_effect = rename_to("Secret")

        await processor.process(user, 1001)

        record = await get_record(1001)
        assert record.name is None
        assert record.sport_type is None
        assert record.date_start is None
        assert record.updated_fields == {"name": "Secret"}

    async def test_write_suspended_user(
        self, processor, make_user, make_activity, strava, recipe_engine, get_record
    ):
        strava.get_activity.return_value = make_activity()
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        result = await processor.process(make_user(write_suspended=True), 1001)

        assert result is None
        strava.update_activity.assert_not_called()
        assert await get_record(1001) is None

    async def test_update_failure_is_recorded(
        self, processor, make_user, make_activity, strava, recipe_engine, notifications, get_record
    ):
        user = make_user()
        strava.get_activity.return_value = make_activity(utc_start_offset=120)
        strava.update_activity.side_effect = StravaAPIError(
            "Forbidden", status_code=403, friendly_message="Missing write permissions"
        )
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        result = await processor.process(user, 1001)

        assert result is not None
        record = await get_record(1001)
        assert record.error == "Missing write permissions"

        notifications.create_notification.assert_awaited_once()
        kwargs = notifications.create_notification.await_args.kwargs
        assert kwargs["activity_id"] == 1001
        assert kwargs["title"] == "Failed to process activity 1001"
        assert "Strava returned an error message" in kwargs["body"]
        assert kwargs["date_expiry"] > datetime.utcnow() + timedelta(days=13)

    async def test_notification_failure_is_ignored(
        self, processor, make_user, make_activity, strava, recipe_engine, notifications
    ):
        strava.get_activity.return_value = make_activity()
        strava.update_activity.side_effect = StravaAPIError("Server error", status_code=500)
        notifications.create_notification.side_effect = RuntimeError("down")
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        result = await processor.process(make_user(), 1001)

        assert result.error is not None

    async def test_save_failure_returns_unsaved_record(
        self, processor, make_user, make_activity, strava, recipe_engine
    ):
        strava.get_activity.return_value = make_activity()
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        with patch.object(processor, "save_processed_activity", AsyncMock(side_effect=RuntimeError("db down"))):
            result = await processor.process(make_user(), 1001)

        assert result.id == 1001
        assert result.updated_fields == {"name": "Renamed"}

    async def test_processed_event_emitted(
        self, processor, events, make_user, make_activity, strava, recipe_engine
    ):
        received = []

        async def on_processed(user, activity):
            received.append((user.id, activity.id))

        events.subscribe(EVENT_ACTIVITY_PROCESSED, on_processed)
        strava.get_activity.return_value = make_activity()
        recipe_engine.evaluate.side_effect = rename_to("Renamed")

        await processor.process(make_user(), 1001)

        assert received == [("u1", 1001)]

    async def test_multiple_recipe_actions(
        self, processor, make_user, make_recipe, make_activity, strava, recipe_engine
    ):
        recipe = make_recipe("r1", actions=[RecipeAction("name", "A"), RecipeAction("commute", True)])
        strava.get_activity.return_value = make_activity()

        async def evaluate(user, recipe_id, activity):
            activity.commute = True
            activity.updated_fields += ["name", "commute"]
            return True

        recipe_engine.evaluate.side_effect = evaluate

        result = await processor.process(make_user(recipes={"r1": recipe}), 1001)

        assert result.updated_fields["commute"] is True
        assert result.recipes["r1"]["actions"] == ["name: A", "commute: True"]


# =============================================================================
# FTP auto update
# =============================================================================

class TestFtpTrigger:
    """Automatic FTP update after processing."""

    @pytest.fixture
    def ftp_user(self, make_user):
        return make_user(preferences=UserPreferences(ftp_auto_update=True))

    async def test_hard_recent_ride_triggers_update(self, processor, ftp, ftp_user, make_activity, strava):
        strava.get_activity.return_value = make_activity(has_power=True, watts_weighted=260)

        await processor.process(ftp_user, 1001)

        ftp.process.assert_awaited_once_with(ftp_user)

    async def test_timezone_aware_start_triggers_update(self, processor, ftp, ftp_user, make_activity, strava):
        strava.get_activity.return_value = make_activity(
            has_power=True,
            watts_weighted=260,
            date_start=datetime.now(timezone.utc) - timedelta(hours=3),
        )

        await processor.process(ftp_user, 1001)

        ftp.process.assert_awaited_once_with(ftp_user)

    async def test_easy_ride_does_not_trigger(self, processor, ftp, ftp_user, make_activity, strava):
        strava.get_activity.return_value = make_activity(has_power=True, watts_weighted=180)

        await processor.process(ftp_user, 1001)

        ftp.process.assert_not_called()

    async def test_old_ride_does_not_trigger(self, processor, ftp, ftp_user, make_activity, strava):
        strava.get_activity.return_value = make_activity(
            has_power=True,
            watts_weighted=300,
            date_start=datetime.utcnow() - timedelta(days=3),
        )

        await processor.process(ftp_user, 1001)

        ftp.process.assert_not_called()

    async def test_opted_out_user(self, processor, ftp, make_user, make_activity, strava):
        strava.get_activity.return_value = make_activity(has_power=True, watts_weighted=300)

        await processor.process(make_user(), 1001)

        ftp.process.assert_not_called()

    async def test_ftp_failure_does_not_affect_result(
        self, processor, ftp, ftp_user, make_activity, strava, recipe_engine
    ):
        strava.get_activity.return_value = make_activity(has_power=True, watts_weighted=300)
        recipe_engine.evaluate.side_effect = rename_to("Renamed")
        ftp.process.side_effect = RuntimeError("estimate failed")

        result = await processor.process(ftp_user, 1001)

        assert result is not None
