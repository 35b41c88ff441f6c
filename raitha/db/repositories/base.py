"""Generic repository shared by the chat tables."""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from raitha.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Primary key lookup and inserts for one mapped table.

    Writes commit immediately; callers that need to undo a failed write
    roll back the session they handed in.
    """

    def __init__(self, session: AsyncSession, model: type[ModelT]):
        self.session = session
        self.model = model

    async def get(self, id: UUID) -> ModelT | None:
        return await self.session.get(self.model, id)

    async def create(self, **values) -> ModelT:
        """Insert a row and return it with its generated columns loaded."""
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance
