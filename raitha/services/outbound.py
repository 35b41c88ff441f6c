"""Outbound message pipeline."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from raitha.config import settings
from raitha.core.exceptions import BadRequestError, MessageSendError, NotFoundError
from raitha.db.repositories import ConversationRepository, MessageRepository
from raitha.models import Conversation, Message
from raitha.schemas import Language
from raitha.services.change_feed import INSERT, ChangeEvent, ChangeFeed, publish_safely
from raitha.services.notification_service import NotificationService
from raitha.services.synchronizer import ConversationView
from raitha.services.translation import TranslationGateway

logger = logging.getLogger(__name__)

MESSAGE_EVENT_COLUMNS = ["id", "conversation_id", "sender_id", "created_at"]


def preview_text(text: str, limit: int | None = None) -> str:
    """Truncate text for the conversation preview, marking the cut with '...'."""
    limit = limit or settings.PREVIEW_MAX_LENGTH
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class OutboundMessagePipeline:
    """Translates, stores and echoes a message authored by one party."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        gateway: TranslationGateway,
        feed: ChangeFeed | None = None,
        notifications: NotificationService | None = None,
    ):
        self.session_factory = session_factory
        self.gateway = gateway
        self.feed = feed
        self.notifications = notifications

    async def send(
        self,
        conversation_id: UUID,
        sender_id: UUID,
        authored_text: str,
        display_language: Language | str,
        *,
        view: ConversationView | None = None,
        after_send: Callable[[], Awaitable[None]] | None = None,
    ) -> Message:
        """Send a message.

        Steps run strictly in order: translate to the canonical language,
        store the message, update the conversation preview, echo the authored
        text into the view, then trigger a sync through ``after_send``.
        A failed translation falls back to the authored text. A failed store
        raises and leaves the preview and the view untouched.

        Raises:
            BadRequestError: If the text is empty or the sender is not a party
            NotFoundError: If the conversation does not exist
            MessageSendError: If the message could not be stored
        """
        if not authored_text or not authored_text.strip():
            raise BadRequestError("Message text is required")

        display_language = Language(display_language)
        content = await self.gateway.to_canonical(authored_text, display_language)

        async with self.session_factory() as db:
            conversation_repo = ConversationRepository(db)
            try:
                conversation = await conversation_repo.get(conversation_id)
                if conversation is None:
                    raise NotFoundError("Conversation", str(conversation_id))
                if sender_id not in (conversation.farmer_id, conversation.retailer_id):
                    raise BadRequestError("Sender is not part of this conversation")

                message = await MessageRepository(db).create(
                    conversation_id=conversation_id,
                    sender_id=sender_id,
                    content=content,
                )
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Send message error in conversation {conversation_id}: {e}")
                raise MessageSendError(str(e))

            # Detached rows keep their loaded state if the preview update rolls back
            db.expunge(message)
            db.expunge(conversation)

            try:
                await conversation_repo.update_summary(
                    conversation_id,
                    last_message=preview_text(content),
                    last_message_at=datetime.now(timezone.utc),
                    last_sender_id=sender_id,
                )
            except SQLAlchemyError as e:
                await db.rollback()
                logger.warning(
                    f"Message {message.id} stored but preview update failed: {e}"
                )

        if view is not None:
            view.add_optimistic(authored_text, sender_id, confirmed_id=message.id)

        await publish_safely(
            self.feed,
            ChangeEvent.from_row("messages", INSERT, message, MESSAGE_EVENT_COLUMNS),
        )

        if after_send is not None:
            await after_send()

        await self._notify_recipient(conversation, message)
        return message

    async def _notify_recipient(self, conversation: Conversation, message: Message) -> None:
        if self.notifications is None:
            return

        recipient_id = (
            conversation.retailer_id
            if message.sender_id == conversation.farmer_id
            else conversation.farmer_id
        )
        try:
            await self.notifications.send_notification(
                user_id=recipient_id,
                title="New message",
                body=preview_text(message.content),
                type="message",
                related_id=conversation.id,
            )
        except Exception as e:
            logger.error(f"Error notifying {recipient_id} of message {message.id}: {e}")
