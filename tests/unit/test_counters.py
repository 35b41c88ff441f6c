"""Unit tests for unread counters and badges."""

import asyncio
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from raitha.models import Conversation
from raitha.services.change_feed import INSERT, UPDATE, ChangeEvent
from raitha.services.counters import UnreadBadges, UnreadCounters


class TestUnreadCounters:
    """Tests for UnreadCounters."""

    @pytest.mark.asyncio
    async def test_counts_only_incoming_unread(
        self, session_factory, conversation, farmer, retailer, add_message
    ):
        """Test that own messages and read messages are not counted."""
        await add_message(conversation, retailer.id, "Price?", minutes_ago=3)
        await add_message(conversation, retailer.id, "Hello?", minutes_ago=2)
        await add_message(conversation, retailer.id, "Seen", minutes_ago=1, read=True)
        await add_message(conversation, farmer.id, "20 per kg")

        counters = UnreadCounters(session_factory)

        assert await counters.count_unread_messages(farmer.id) == 2
        assert await counters.count_unread_messages(retailer.id) == 1

    @pytest.mark.asyncio
    async def test_sums_across_conversations(
        self, session_factory, db_session, conversation, farmer, retailer, add_message
    ):
        other = Conversation(
            crop_id=uuid4(),
            farmer_id=farmer.id,
            retailer_id=retailer.id,
            last_message="Conversation started",
        )
        db_session.add(other)
        await db_session.commit()
        await add_message(conversation, retailer.id, "Price?")
        await add_message(other, retailer.id, "Still available?")

        counters = UnreadCounters(session_factory)

        assert await counters.count_unread_messages(farmer.id) == 2

    @pytest.mark.asyncio
    async def test_no_conversations(self, session_factory):
        counters = UnreadCounters(session_factory)

        assert await counters.count_unread_messages(uuid4()) == 0

    @pytest.mark.asyncio
    async def test_mark_messages_read(
        self, session_factory, conversation, farmer, retailer, add_message
    ):
        """Test that reading clears the badge and only touches unread rows."""
        await add_message(conversation, retailer.id, "Price?")
        await add_message(conversation, retailer.id, "Hello?")
        await add_message(conversation, farmer.id, "20 per kg")
        counters = UnreadCounters(session_factory)

        assert await counters.mark_messages_read(farmer.id) == 2
        assert await counters.count_unread_messages(farmer.id) == 0
        assert await counters.mark_messages_read(farmer.id) == 0
        # The retailer's incoming message is untouched
        assert await counters.count_unread_messages(retailer.id) == 1

    @pytest.mark.asyncio
    async def test_mark_messages_read_single_conversation(
        self, session_factory, conversation, farmer, retailer, add_message
    ):
        await add_message(conversation, retailer.id, "Price?")
        counters = UnreadCounters(session_factory)

        assert await counters.mark_messages_read(farmer.id, uuid4()) == 0
        assert await counters.mark_messages_read(farmer.id, conversation.id) == 1

    @pytest.mark.asyncio
    async def test_notifications(self, session_factory, farmer, retailer, add_notification):
        await add_notification(farmer.id)
        await add_notification(farmer.id)
        await add_notification(farmer.id, read=True)
        await add_notification(retailer.id)
        counters = UnreadCounters(session_factory)

        assert await counters.count_unread_notifications(farmer.id) == 2

        assert await counters.mark_notifications_read(farmer.id) == 2
        assert await counters.count_unread_notifications(farmer.id) == 0
        assert await counters.count_unread_notifications(retailer.id) == 1


class TestUnreadBadges:
    """Tests for UnreadBadges."""

    @pytest.fixture
    async def badges(self, session_factory, farmer, conversation) -> UnreadBadges:
        badges = UnreadBadges(farmer.id, UnreadCounters(session_factory))
        await badges.refresh()
        return badges

    @pytest.mark.asyncio
    async def test_refresh(
        self, session_factory, conversation, farmer, retailer, add_message, add_notification
    ):
        await add_message(conversation, retailer.id, "Price?")
        await add_notification(farmer.id)
        badges = UnreadBadges(farmer.id, UnreadCounters(session_factory))

        await badges.refresh()

        assert badges.messages == 1
        assert badges.notifications == 1

    @pytest.mark.asyncio
    async def test_incoming_message_increments(self, badges, conversation, retailer):
        event = ChangeEvent(
            "messages",
            INSERT,
            {"conversation_id": str(conversation.id), "sender_id": str(retailer.id)},
        )

        assert await badges.observe(event) is True
        assert badges.messages == 1

    @pytest.mark.asyncio
    async def test_own_message_ignored(self, badges, conversation, farmer):
        event = ChangeEvent(
            "messages",
            INSERT,
            {"conversation_id": str(conversation.id), "sender_id": str(farmer.id)},
        )

        assert await badges.observe(event) is False
        assert badges.messages == 0

    @pytest.mark.asyncio
    async def test_foreign_conversation_ignored(self, badges, retailer):
        event = ChangeEvent(
            "messages",
            INSERT,
            {"conversation_id": str(uuid4()), "sender_id": str(retailer.id)},
        )

        assert await badges.observe(event) is False
        assert badges.messages == 0

    @pytest.mark.asyncio
    async def test_new_conversation_picked_up(self, badges, farmer, retailer):
        """Test that a conversation started after refresh counts once its insert is seen."""
        started_id = str(uuid4())
        message = ChangeEvent(
            "messages",
            INSERT,
            {"conversation_id": started_id, "sender_id": str(retailer.id)},
        )
        assert await badges.observe(message) is False

        started = ChangeEvent(
            "conversations",
            INSERT,
            {"id": started_id, "farmer_id": str(farmer.id), "retailer_id": str(retailer.id)},
        )
        assert await badges.observe(started) is False

        assert await badges.observe(message) is True
        assert badges.messages == 1

    @pytest.mark.asyncio
    async def test_other_users_conversation_not_tracked(self, badges, retailer):
        started = ChangeEvent(
            "conversations",
            INSERT,
            {"id": str(uuid4()), "farmer_id": str(uuid4()), "retailer_id": str(retailer.id)},
        )
        await badges.observe(started)

        message = ChangeEvent(
            "messages",
            INSERT,
            {"conversation_id": started.record["id"], "sender_id": str(retailer.id)},
        )
        assert await badges.observe(message) is False

    @pytest.mark.asyncio
    async def test_foreign_message_does_not_query_storage(self, farmer, conversation):
        """Test that messages from unknown conversations are matched in memory."""
        counters = AsyncMock(spec=UnreadCounters)
        counters.count_unread_messages.return_value = 0
        counters.count_unread_notifications.return_value = 0
        counters.conversation_ids.return_value = [conversation.id]
        badges = UnreadBadges(farmer.id, counters)
        await badges.refresh()
        counters.reset_mock()

        for _ in range(3):
            await badges.observe(
                ChangeEvent(
                    "messages",
                    INSERT,
                    {"conversation_id": str(uuid4()), "sender_id": str(uuid4())},
                )
            )

        assert badges.messages == 0
        counters.conversation_ids.assert_not_awaited()
        counters.count_unread_messages.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_watch_follows_resolver_inserts(
        self, session_factory, change_feed, farmer, retailer
    ):
        """Test the badge stream end to end: a new conversation, then its first message."""
        from raitha.services.conversation_resolver import ConversationResolver

        badges = UnreadBadges(farmer.id, UnreadCounters(session_factory))
        await badges.refresh()
        changes = []

        async def on_change(current):
            changes.append(current.messages)

        watcher = asyncio.create_task(badges.watch(change_feed, on_change=on_change))
        await asyncio.sleep(0)

        resolver = ConversationResolver(session_factory, feed=change_feed)
        conversation_id = await resolver.resolve(uuid4(), farmer.id, retailer.id)
        for _ in range(5):
            await asyncio.sleep(0)
        await change_feed.publish(
            ChangeEvent(
                "messages",
                INSERT,
                {"conversation_id": str(conversation_id), "sender_id": str(retailer.id)},
            )
        )
        for _ in range(5):
            await asyncio.sleep(0)

        watcher.cancel()
        with pytest.raises(asyncio.CancelledError):
            await watcher

        assert changes == [1]
        assert change_feed.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_notification_for_user(self, badges, farmer, retailer):
        assert await badges.observe(
            ChangeEvent("notifications", INSERT, {"user_id": str(farmer.id)})
        )
        assert not await badges.observe(
            ChangeEvent("notifications", INSERT, {"user_id": str(retailer.id)})
        )
        assert not await badges.observe(
            ChangeEvent("notifications", UPDATE, {"user_id": str(farmer.id)})
        )
        assert badges.notifications == 1

    @pytest.mark.asyncio
    async def test_mark_read_resets(self, badges, farmer):
        badges.messages = 4
        badges.notifications = 2

        await badges.mark_messages_read()
        await badges.mark_notifications_read()

        assert badges.messages == 0
        assert badges.notifications == 0

    @pytest.mark.asyncio
    async def test_mark_read_calls_counters(self, farmer):
        counters = AsyncMock(spec=UnreadCounters)
        badges = UnreadBadges(farmer.id, counters)

        await badges.mark_messages_read()
        await badges.mark_notifications_read()

        counters.mark_messages_read.assert_awaited_once_with(farmer.id)
        counters.mark_notifications_read.assert_awaited_once_with(farmer.id)
