"""
Base Repository

Generic async repository with the CRUD primitives shared by all repositories.
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.orm.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository for a single ORM model.

    Subclasses set ``model`` and add query methods of their own.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get(self, **filters: Any) -> ModelT | None:
        """Get a single entity matching column equality filters."""
        query = select(self.model).filter_by(**filters)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id(self, entity_id: UUID) -> ModelT | None:
        """Get entity by primary key."""
        return await self.session.get(self.model, entity_id)

    async def create(self, entity: ModelT) -> ModelT:
        """Add a new entity and flush it so defaults are populated."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity
