"""Unread message and notification counters."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from raitha.db.repositories import (
    ConversationRepository,
    MessageRepository,
    NotificationRepository,
)
from raitha.services.change_feed import INSERT, ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)


class UnreadCounters:
    """Computes unread counts from storage and applies mark-read actions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def conversation_ids(self, user_id: UUID) -> list[UUID]:
        async with self.session_factory() as db:
            return await ConversationRepository(db).ids_for_user(user_id)

    async def count_unread_messages(self, user_id: UUID) -> int:
        """Count unread messages from the other party across all of a user's conversations."""
        async with self.session_factory() as db:
            conversation_ids = await ConversationRepository(db).ids_for_user(user_id)
            if not conversation_ids:
                return 0
            return await MessageRepository(db).count_unread(conversation_ids, user_id)

    async def count_unread_notifications(self, user_id: UUID) -> int:
        async with self.session_factory() as db:
            return await NotificationRepository(db).count_unread(user_id)

    async def mark_messages_read(
        self, user_id: UUID, conversation_id: UUID | None = None
    ) -> int:
        """Mark incoming messages read, in one conversation or in all of them."""
        async with self.session_factory() as db:
            if conversation_id is None:
                conversation_ids = await ConversationRepository(db).ids_for_user(user_id)
            else:
                conversation_ids = [conversation_id]
            updated = await MessageRepository(db).mark_read(conversation_ids, user_id)

        logger.debug(f"Marked {updated} messages read for {user_id}")
        return updated

    async def mark_notifications_read(self, user_id: UUID) -> int:
        async with self.session_factory() as db:
            return await NotificationRepository(db).mark_all_read(user_id)


class UnreadBadges:
    """Badge state for one user.

    ``refresh`` recomputes both counts and the user's conversation set from
    storage. Between refreshes, realtime inserts bump the counts and new
    conversations involving the user join the set, so a message insert is
    matched in memory without a storage round trip. The mark-read actions
    reset the counts to zero.
    """

    def __init__(self, user_id: UUID, counters: UnreadCounters):
        self.user_id = user_id
        self.counters = counters
        self.messages = 0
        self.notifications = 0
        self._conversation_ids: set[str] = set()

    async def refresh(self) -> None:
        self.messages = await self.counters.count_unread_messages(self.user_id)
        self.notifications = await self.counters.count_unread_notifications(self.user_id)
        self._conversation_ids = {
            str(cid) for cid in await self.counters.conversation_ids(self.user_id)
        }

    async def observe(self, event: ChangeEvent) -> bool:
        """Apply a realtime event. Returns True when a counter changed."""
        if event.type != INSERT:
            return False

        record = event.record
        user_id = str(self.user_id)

        if event.table == "conversations":
            if user_id in (record.get("farmer_id"), record.get("retailer_id")):
                self._conversation_ids.add(record.get("id"))
            return False

        if event.table == "notifications":
            if record.get("user_id") == user_id:
                self.notifications += 1
                return True
            return False

        if event.table == "messages":
            if record.get("sender_id") == user_id:
                return False
            if record.get("conversation_id") in self._conversation_ids:
                self.messages += 1
                return True

        return False

    async def mark_messages_read(self) -> None:
        await self.counters.mark_messages_read(self.user_id)
        self.messages = 0

    async def mark_notifications_read(self) -> None:
        await self.counters.mark_notifications_read(self.user_id)
        self.notifications = 0

    async def watch(
        self,
        feed: ChangeFeed,
        on_change: Callable[["UnreadBadges"], Awaitable[None]] | None = None,
    ) -> None:
        """Follow conversation, message and notification inserts until cancelled."""
        subscriptions = [
            await feed.subscribe("conversations", {"farmer_id": self.user_id}),
            await feed.subscribe("conversations", {"retailer_id": self.user_id}),
            await feed.subscribe("messages"),
            await feed.subscribe("notifications", {"user_id": self.user_id}),
        ]

        async def follow(subscription) -> None:
            async for event in subscription:
                if await self.observe(event) and on_change is not None:
                    await on_change(self)

        try:
            await asyncio.gather(*(follow(s) for s in subscriptions))
        finally:
            for subscription in subscriptions:
                await subscription.unsubscribe()
