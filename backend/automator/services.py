"""
Service wiring.

Builds the processing components once, from the external
collaborators, and hands them to the API and the background runner.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from automator.config import Settings, settings
from automator.shared.events import EventBus
from automator.features.activities import ActivityProcessor, ActivityQueue, QueueRunner
from automator.features.ftp import FtpEstimator
from automator.features.recipes import RecipeEngine
from automator.features.strava import StravaProvider, RecordsTracker
from automator.features.users import UserRegistry, NotificationSink


@dataclass
class Services:
    users: UserRegistry
    queue: ActivityQueue
    processor: ActivityProcessor
    ftp: FtpEstimator
    runner: QueueRunner
    events: EventBus


def build_services(
    strava: StravaProvider,
    recipes: RecipeEngine,
    users: UserRegistry,
    notifications: NotificationSink,
    records: RecordsTracker,
    db_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    events: Optional[EventBus] = None,
    config: Settings = settings,
) -> Services:
    """
    Wire queue, processor, FTP estimator and runner together.

    Args:
        db_factory: Session factory, defaults to the application database
    """
    if db_factory is None:
        from automator.db.session import AsyncSessionLocal
        db_factory = AsyncSessionLocal

    events = events or EventBus()
    ftp = FtpEstimator(strava, users, config=config)
    queue = ActivityQueue(db_factory, users, config=config)
    processor = ActivityProcessor(
        db_factory,
        strava,
        recipes,
        users,
        notifications,
        records,
        queue=queue,
        ftp=ftp,
        events=events,
        config=config,
    )
    queue.bind_processor(processor)

    return Services(
        users=users,
        queue=queue,
        processor=processor,
        ftp=ftp,
        runner=QueueRunner(queue, config=config),
        events=events,
    )
