"""Message synchronization and the per-session conversation view."""

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from raitha.core.exceptions import MessageFetchError
from raitha.db.repositories import MessageRepository, ProfileRepository
from raitha.models import Message
from raitha.schemas import DisplayMessage, Language
from raitha.services.translation import TranslationGateway

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "temp_"


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MessageSynchronizer:
    """Loads a conversation's history and renders it in a display language."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        gateway: TranslationGateway,
    ):
        self.session_factory = session_factory
        self.gateway = gateway

    async def sync(
        self, conversation_id: UUID, display_language: Language | str
    ) -> list[DisplayMessage]:
        """Fetch all messages newest first and translate them for display.

        Every call re-translates the full history.

        Raises:
            MessageFetchError: If the history could not be loaded
        """
        display_language = Language(display_language)

        try:
            async with self.session_factory() as db:
                messages = await MessageRepository(db).list_for_conversation(
                    conversation_id
                )
                names = await ProfileRepository(db).get_names(
                    list({m.sender_id for m in messages})
                )
        except SQLAlchemyError as e:
            logger.error(f"Message fetch error for conversation {conversation_id}: {e}")
            raise MessageFetchError(str(e))

        display = []
        for message in messages:
            display.append(
                await self.to_display(message, display_language, names.get(message.sender_id))
            )
        return display

    async def to_display(
        self,
        message: Message,
        display_language: Language,
        sender_name: str | None = None,
    ) -> DisplayMessage:
        """Render one stored message for display."""
        if display_language.is_canonical:
            text = message.content
        else:
            text = await self.gateway.translate(message.content, display_language)

        return DisplayMessage(
            id=str(message.id),
            text=text,
            original_text=message.content,
            sender_id=message.sender_id,
            sender_name=sender_name,
            created_at=_aware(message.created_at),
        )

    async def retranslate(
        self, messages: list[DisplayMessage], display_language: Language | str
    ) -> list[DisplayMessage]:
        """Re-render already loaded messages in another language without refetching."""
        display_language = Language(display_language)

        translated = []
        for message in messages:
            text = await self.gateway.translate(message.original_text, display_language)
            translated.append(message.model_copy(update={"text": text}))
        return translated


class ConversationView:
    """Client-side message state for one open conversation.

    Entries are kept in a map keyed by message id. Optimistic entries use a
    ``temp_`` id and remember the stored message id they stand in for; a sync
    drops an optimistic entry only once that stored message shows up.
    """

    def __init__(self, conversation_id: UUID, language: Language | str):
        self.conversation_id = conversation_id
        self.language = Language(language)
        self.sync_error: str | None = None
        self.loaded = False
        self._entries: dict[str, DisplayMessage] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def messages(self) -> list[DisplayMessage]:
        """Entries ordered newest first."""
        return sorted(self._entries.values(), key=lambda m: m.created_at, reverse=True)

    def pending(self) -> list[DisplayMessage]:
        """Optimistic entries still waiting for their stored message."""
        return [m for m in self._entries.values() if m.optimistic]

    def apply_sync(self, fetched: list[DisplayMessage]) -> None:
        """Reconcile a fetched history with the current entries by id."""
        fetched_ids = {m.id for m in fetched}
        entries = {m.id: m for m in fetched}
        for message in self.pending():
            if message.confirmed_id not in fetched_ids:
                entries[message.id] = message

        self._entries = entries
        self.sync_error = None
        self.loaded = True

    def replace(self, messages: list[DisplayMessage]) -> None:
        """Swap rendered entries in place, e.g. after a language change."""
        for message in messages:
            if message.id in self._entries:
                self._entries[message.id] = message

    def add_optimistic(
        self,
        text: str,
        sender_id: UUID,
        *,
        confirmed_id: UUID | str | None = None,
        sender_name: str | None = None,
    ) -> DisplayMessage:
        """Show a just-sent message before the stored copy is synced."""
        message = DisplayMessage(
            id=f"{TEMP_ID_PREFIX}{uuid4().hex}",
            text=text,
            original_text=text,
            sender_id=sender_id,
            sender_name=sender_name,
            created_at=datetime.now(timezone.utc),
            optimistic=True,
            confirmed_id=str(confirmed_id) if confirmed_id else None,
        )
        self._entries[message.id] = message
        return message

    def mark_sync_failed(self, error: str) -> None:
        """Keep the stale entries and record the failure."""
        self.sync_error = error
