"""
Alembic Environment Configuration

Migrations run through the same async drivers as the service
(aiosqlite / asyncpg), with the URL taken from application settings.
"""

import asyncio
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from automator.db.session import _get_async_url  # noqa: E402
from automator.config import settings  # noqa: E402
from automator.models.base import Base  # noqa: E402
from automator.features.activities.models import ProcessedActivity  # noqa: E402,F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

DATABASE_URL = _get_async_url(settings.database_url)


def run_migrations_offline() -> None:
    """Emit the migration SQL to the script output, no connection needed."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def _run_sync_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations against a live async connection."""
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)

    async with engine.connect() as connection:
        await connection.run_sync(_run_sync_migrations)

    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
