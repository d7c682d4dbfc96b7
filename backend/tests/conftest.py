"""
Shared fixtures.

Collaborators outside this service (Strava, recipe engine, user
registry, notifications) are AsyncMocks; persistence runs on an
in-memory SQLite database.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from automator.config import Settings
from automator.models.base import Base
from automator.features.activities import models  # noqa: F401
from automator.features.recipes import Recipe, RecipeAction, RecipeCondition
from automator.features.strava import Activity, Athlete, Gear
from automator.features.users import User, UserProfile, UserPreferences


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def db_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def config():
    return Settings(
        queue_delay_interval=60,
        queue_batch_size=10,
        queue_max_retry=3,
        ftp_weeks=8,
        ftp_since_last_hours=24,
        ftp_idle_loss_per_week=0.005,
        free_max_recipes=2,
        free_batch_days=30,
        pro_batch_days=365,
    )


# =============================================================================
# Domain objects
# =============================================================================

@pytest.fixture
def make_recipe():
    def _make(recipe_id: str, **kwargs) -> Recipe:
        kwargs.setdefault("title", f"Recipe {recipe_id}")
        kwargs.setdefault("conditions", [RecipeCondition("distance", "gt", 10)])
        kwargs.setdefault("actions", [RecipeAction("name", "Morning ride")])
        return Recipe(id=recipe_id, **kwargs)
    return _make


@pytest.fixture
def make_user(make_recipe):
    def _make(**kwargs) -> User:
        if "recipes" not in kwargs:
            recipe = make_recipe("r1", order=1)
            kwargs["recipes"] = {recipe.id: recipe}
        kwargs.setdefault("id", "u1")
        kwargs.setdefault("display_name", "alice")
        kwargs.setdefault("profile", UserProfile(ftp=250))
        kwargs.setdefault("preferences", UserPreferences())
        return User(**kwargs)
    return _make


@pytest.fixture
def make_activity():
    def _make(activity_id: int = 1001, **kwargs) -> Activity:
        start = kwargs.pop("date_start", datetime.utcnow() - timedelta(hours=3))
        kwargs.setdefault("type", "Ride")
        kwargs.setdefault("sport_type", "Ride")
        kwargs.setdefault("name", "Afternoon Ride")
        kwargs.setdefault("moving_time", 3600)
        kwargs.setdefault("total_time", 3700)
        kwargs.setdefault("gear", Gear(id="b123", name="Road bike"))
        return Activity(id=activity_id, date_start=start, **kwargs)
    return _make


# =============================================================================
# Collaborators
# =============================================================================

@pytest.fixture
def strava():
    provider = AsyncMock()
    provider.get_athlete.return_value = Athlete(id="a1", ftp=250)
    return provider


@pytest.fixture
def recipe_engine():
    engine = MagicMock()
    engine.evaluate = AsyncMock(return_value=False)
    engine.get_condition_summary.side_effect = lambda c: f"{c.property} {c.operator} {c.value}"
    engine.get_action_summary.side_effect = lambda a: f"{a.type}: {a.value}"
    return engine


@pytest.fixture
def users():
    registry = AsyncMock()
    registry.get_by_id.return_value = None
    return registry


@pytest.fixture
def notifications():
    return AsyncMock()


@pytest.fixture
def records():
    return AsyncMock()


# =============================================================================
# Database helpers
# =============================================================================

@pytest.fixture
def get_record(db_factory):
    """Read a ProcessedActivity row by activity id."""
    async def _get(activity_id: int):
        async with db_factory() as db:
            return await db.get(models.ProcessedActivity, activity_id)
    return _get


@pytest.fixture
def age_queued(db_factory):
    """Move the date_queued of a row back in time, making it due."""
    async def _age(activity_id: int, seconds: int = 3600):
        async with db_factory() as db:
            record = await db.get(models.ProcessedActivity, activity_id)
            record.date_queued = record.date_queued - timedelta(seconds=seconds)
            await db.commit()
    return _age
