"""Message repository."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from raitha.db.repositories.base import BaseRepository
from raitha.models import Message


class MessageRepository(BaseRepository[Message]):
    """Repository for message operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Message)

    async def list_for_conversation(self, conversation_id: UUID) -> list[Message]:
        """List the full history of a conversation, most recent first."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(
        self, conversation_ids: list[UUID], recipient_id: UUID
    ) -> int:
        """Count unread messages in the given conversations not sent by the recipient."""
        if not conversation_ids:
            return 0

        stmt = select(func.count()).where(
            Message.conversation_id.in_(conversation_ids),
            Message.read_at.is_(None),
            Message.sender_id != recipient_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def count_unread_by_conversation(
        self, conversation_ids: list[UUID], recipient_id: UUID
    ) -> dict[UUID, int]:
        """Unread counts per conversation for a recipient."""
        if not conversation_ids:
            return {}

        stmt = (
            select(Message.conversation_id, func.count())
            .where(
                Message.conversation_id.in_(conversation_ids),
                Message.read_at.is_(None),
                Message.sender_id != recipient_id,
            )
            .group_by(Message.conversation_id)
        )
        result = await self.session.execute(stmt)
        return {conversation_id: count for conversation_id, count in result.all()}

    async def mark_read(
        self,
        conversation_ids: list[UUID],
        recipient_id: UUID,
        read_at: datetime | None = None,
    ) -> int:
        """Mark unread incoming messages as read. Returns the number of rows updated."""
        if not conversation_ids:
            return 0

        stmt = (
            update(Message)
            .where(
                Message.conversation_id.in_(conversation_ids),
                Message.read_at.is_(None),
                Message.sender_id != recipient_id,
            )
            .values(read_at=read_at or datetime.now(timezone.utc))
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0
