"""
Base repository with common CRUD operations.

Provides generic database operations for all feature repositories.
Uses SQLAlchemy async session for non-blocking database access.

Usage:
    class ProcessedActivityRepository(BaseRepository[ProcessedActivity]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, ProcessedActivity)
"""

from typing import TypeVar, Generic, Type

from sqlalchemy import select, update, delete, inspect
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for database operations.

    All methods are async for use with AsyncSession. Commits are left
    to the caller so several calls can share one transaction.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        """
        Initialize repository.

        Args:
            db: Async database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    async def get_by_id(self, id: str | int) -> T | None:
        """
        Get entity by primary key ID.

        Returns:
            Entity if found, None otherwise
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def add(self, entity: T) -> T:
        """Add a new entity and flush it."""
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def replace(self, entity: T) -> T:
        """
        Insert entity, or overwrite every column of the stored row with
        the same primary key.

        Args:
            entity: Transient entity holding the full new state

        Returns:
            The entity passed in
        """
        existing = await self.get_by_id(entity.id)
        if existing is None:
            return await self.add(entity)

        for column in inspect(self.model).columns:
            setattr(existing, column.key, getattr(entity, column.key))
        await self.db.flush()
        return entity

    async def increment(self, id: str | int, field: str, amount: int = 1) -> None:
        """
        Atomically increment a numeric column.

        Args:
            id: Primary key value
            field: Column name
            amount: Increment, can be negative
        """
        column = getattr(self.model, field)
        await self.db.execute(
            update(self.model)
            .where(self.model.id == id)
            .values({column: column + amount})
        )

    async def delete_by_id(self, id: str | int) -> int:
        """
        Delete entity by primary key.

        Returns:
            Number of deleted rows (0 or 1)
        """
        result = await self.db.execute(
            delete(self.model).where(self.model.id == id)
        )
        return result.rowcount or 0
