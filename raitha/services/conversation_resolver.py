"""Find-or-create resolution of negotiation threads."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from raitha.config import settings
from raitha.core.exceptions import ConversationResolutionError
from raitha.db.repositories import ConversationRepository, MessageRepository
from raitha.schemas import ConversationSummary
from raitha.services.change_feed import INSERT, ChangeEvent, ChangeFeed, publish_safely

logger = logging.getLogger(__name__)

CONVERSATION_EVENT_COLUMNS = ["id", "crop_id", "farmer_id", "retailer_id"]


def _require_id(name: str, value: UUID | str | None) -> UUID:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConversationResolutionError(f"{name} is required")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ConversationResolutionError(f"{name} '{value}' is not a valid id")


class ConversationResolver:
    """Resolves the single conversation for a (crop, farmer, retailer) triple.

    Resolution is a plain lookup followed by an insert. Two first-time
    resolutions of the same triple running at the same moment can both miss
    the lookup and create two rows; lookups then settle on the oldest row.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed | None = None,
    ):
        self.session_factory = session_factory
        self.feed = feed

    async def resolve(
        self,
        crop_id: UUID | str | None,
        farmer_id: UUID | str | None,
        retailer_id: UUID | str | None,
    ) -> UUID:
        """Return the conversation ID for the triple, creating it if needed.

        Raises:
            ConversationResolutionError: If a key is missing or persistence fails
        """
        crop_id = _require_id("crop_id", crop_id)
        farmer_id = _require_id("farmer_id", farmer_id)
        retailer_id = _require_id("retailer_id", retailer_id)

        try:
            async with self.session_factory() as db:
                repo = ConversationRepository(db)

                existing = await repo.find_by_triple(crop_id, farmer_id, retailer_id)
                if existing:
                    return existing.id

                conversation = await repo.create(
                    crop_id=crop_id,
                    farmer_id=farmer_id,
                    retailer_id=retailer_id,
                    last_message=settings.CONVERSATION_STARTED_PREVIEW,
                    last_message_at=datetime.now(timezone.utc),
                )
        except SQLAlchemyError as e:
            logger.error(f"Conversation error: {e}")
            raise ConversationResolutionError(
                "persistence error", status_code=status.HTTP_502_BAD_GATEWAY
            )

        logger.info(
            f"Started conversation {conversation.id} for crop {crop_id} "
            f"(farmer {farmer_id}, retailer {retailer_id})"
        )
        await publish_safely(
            self.feed,
            ChangeEvent.from_row(
                "conversations", INSERT, conversation, CONVERSATION_EVENT_COLUMNS
            ),
        )
        return conversation.id

    async def list_for_user(self, user_id: UUID) -> list[ConversationSummary]:
        """List a user's conversations with their unread counts."""
        async with self.session_factory() as db:
            conversations = await ConversationRepository(db).list_for_user(user_id)
            unread = await MessageRepository(db).count_unread_by_conversation(
                [c.id for c in conversations], user_id
            )

        summaries = []
        for conversation in conversations:
            summary = ConversationSummary.model_validate(conversation)
            summary.unread_count = unread.get(conversation.id, 0)
            summaries.append(summary)
        return summaries
