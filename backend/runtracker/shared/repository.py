"""
Base repository with common CRUD operations.

Provides generic database operations for all repositories.
Uses SQLAlchemy async session for non-blocking database access.

Usage:
    class RunRepository(BaseRepository[Run]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, Run)
"""

from typing import Any, TypeVar, Generic, Type
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for database operations.

    Provides common CRUD methods that can be inherited by repositories.
    All methods are async for use with AsyncSession.
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

    async def get(self, pk: Any) -> T | None:
        """
        Get entity by primary key.

        Args:
            pk: Primary key value

        Returns:
            Entity if found, None otherwise
        """
        return await self.db.get(self.model, pk)

    async def create(self, **kwargs) -> T:
        """
        Create new entity.

        Args:
            **kwargs: Field values for new entity

        Returns:
            Created entity with generated ID
        """
        entity = self.model(**kwargs)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity: T) -> None:
        """
        Delete entity.

        Args:
            entity: Entity to delete
        """
        await self.db.delete(entity)
        await self.db.flush()

    async def delete_all(self) -> None:
        """Delete every entity of this model."""
        await self.db.execute(delete(self.model))
        await self.db.flush()
