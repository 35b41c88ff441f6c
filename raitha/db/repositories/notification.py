"""Notification repository."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from raitha.db.repositories.base import BaseRepository
from raitha.models import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notification operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Notification)

    async def list_for_user(
        self, user_id: UUID, *, skip: int = 0, limit: int = 50
    ) -> list[Notification]:
        """List notifications for a user, newest first."""
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(self, user_id: UUID) -> int:
        """Count unread notifications for a user."""
        stmt = select(func.count()).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark every unread notification of a user as read."""
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0
