"""Conversation repository for negotiation threads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from raitha.db.repositories.base import BaseRepository
from raitha.models import Conversation


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation lookup and summary updates."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Conversation)

    async def find_by_triple(
        self, crop_id: UUID, farmer_id: UUID, retailer_id: UUID
    ) -> Conversation | None:
        """Get the conversation for a (crop, farmer, retailer) triple.

        Duplicate rows can exist for a triple; the oldest one wins so both
        parties keep landing in the same thread.

        Args:
            crop_id: The crop ID
            farmer_id: The farmer profile ID
            retailer_id: The retailer profile ID

        Returns:
            The conversation or None if not found
        """
        stmt = (
            select(Conversation)
            .where(
                Conversation.crop_id == crop_id,
                Conversation.farmer_id == farmer_id,
                Conversation.retailer_id == retailer_id,
            )
            .order_by(Conversation.created_at.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_user(self, user_id: UUID) -> list[Conversation]:
        """List conversations where the user is either party, latest activity first."""
        stmt = (
            select(Conversation)
            .where(
                or_(
                    Conversation.farmer_id == user_id,
                    Conversation.retailer_id == user_id,
                )
            )
            .order_by(Conversation.last_message_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def ids_for_user(self, user_id: UUID) -> list[UUID]:
        """Get the IDs of all conversations the user takes part in."""
        stmt = select(Conversation.id).where(
            or_(
                Conversation.farmer_id == user_id,
                Conversation.retailer_id == user_id,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_summary(
        self,
        conversation_id: UUID,
        *,
        last_message: str,
        last_message_at: datetime,
        last_sender_id: UUID,
    ) -> None:
        """Update the preview fields after a new message."""
        stmt = (
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(
                last_message=last_message,
                last_message_at=last_message_at,
                last_sender_id=last_sender_id,
            )
        )
        await self.session.execute(stmt)
        await self.session.commit()
