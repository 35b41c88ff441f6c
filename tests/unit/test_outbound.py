"""Unit tests for the outbound message pipeline."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from raitha.core.exceptions import BadRequestError, MessageSendError, NotFoundError
from raitha.db.repositories import ConversationRepository, MessageRepository
from raitha.models import Message, Notification
from raitha.schemas import Language
from raitha.services.change_feed import INSERT
from raitha.services.notification_service import NotificationService
from raitha.services.outbound import OutboundMessagePipeline, preview_text
from raitha.services.synchronizer import ConversationView


class TestPreviewText:
    """Tests for conversation preview truncation."""

    def test_long_text_truncated(self):
        text = "x" * 80

        assert preview_text(text) == "x" * 50 + "..."

    def test_short_text_untouched(self):
        text = "y" * 30

        assert preview_text(text) == text

    def test_exact_limit_untouched(self):
        assert preview_text("z" * 50) == "z" * 50


class TestOutboundMessagePipeline:
    """Tests for OutboundMessagePipeline.send."""

    @pytest.mark.asyncio
    async def test_send_canonical(
        self, session_factory, db_session, gateway, working_provider, conversation, farmer
    ):
        """Test sending in English: stored as is, preview updated, echo shown."""
        pipeline = OutboundMessagePipeline(session_factory, gateway)
        view = ConversationView(conversation.id, Language.ENGLISH)

        message = await pipeline.send(conversation.id, farmer.id, "Hello", "en", view=view)

        assert message.content == "Hello"
        assert working_provider.calls == []

        await db_session.refresh(conversation)
        assert conversation.last_message == "Hello"
        assert conversation.last_sender_id == farmer.id

        echo = view.messages()[0]
        assert echo.optimistic is True
        assert echo.text == "Hello"
        assert echo.confirmed_id == str(message.id)

    @pytest.mark.asyncio
    async def test_send_translates_to_canonical(
        self, session_factory, gateway, conversation, retailer
    ):
        """Test that the stored copy is canonical and the echo keeps the authored text."""
        pipeline = OutboundMessagePipeline(session_factory, gateway)
        view = ConversationView(conversation.id, Language.KANNADA)

        message = await pipeline.send(
            conversation.id, retailer.id, "ಬೆಲೆ ಎಷ್ಟು?", Language.KANNADA, view=view
        )

        assert message.content == "[en] ಬೆಲೆ ಎಷ್ಟು?"
        assert view.messages()[0].text == "ಬೆಲೆ ಎಷ್ಟು?"

    @pytest.mark.asyncio
    async def test_send_with_translation_down(
        self, session_factory, failing_gateway, conversation, farmer
    ):
        """Test that a translation outage stores the untranslated text without error."""
        pipeline = OutboundMessagePipeline(session_factory, failing_gateway)

        message = await pipeline.send(conversation.id, farmer.id, "ನಮಸ್ಕಾರ", "kn")

        assert message.content == "ನಮಸ್ಕಾರ"

    @pytest.mark.asyncio
    async def test_send_long_message_preview(
        self, session_factory, db_session, gateway, conversation, farmer
    ):
        text = "Fresh tomatoes from Mandya, grade A, available for pickup tomorrow morning"
        pipeline = OutboundMessagePipeline(session_factory, gateway)

        message = await pipeline.send(conversation.id, farmer.id, text, "en")

        await db_session.refresh(conversation)
        assert message.content == text
        assert conversation.last_message == text[:50] + "..."

    @pytest.mark.asyncio
    async def test_store_failure(
        self, session_factory, db_session, gateway, conversation, farmer, change_feed
    ):
        """Test that a failed insert raises and leaves preview and view alone."""
        pipeline = OutboundMessagePipeline(session_factory, gateway, feed=change_feed)
        view = ConversationView(conversation.id, Language.ENGLISH)
        subscription = await change_feed.subscribe("messages")
        after_send = AsyncMock()

        with patch.object(
            MessageRepository,
            "create",
            side_effect=OperationalError("INSERT", {}, Exception("db down")),
        ):
            with pytest.raises(MessageSendError):
                await pipeline.send(
                    conversation.id, farmer.id, "Hello", "en", view=view, after_send=after_send
                )

        await db_session.refresh(conversation)
        assert conversation.last_message == "Conversation started"
        assert len(view) == 0
        assert subscription.queue.empty()
        after_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_preview_failure_does_not_fail_send(
        self, session_factory, db_session, gateway, conversation, farmer, retailer, change_feed
    ):
        """Test that every step after the store still runs when only the preview fails."""
        push_client = AsyncMock()
        notifications = NotificationService(session_factory, push_client=push_client)
        pipeline = OutboundMessagePipeline(
            session_factory, gateway, feed=change_feed, notifications=notifications
        )
        view = ConversationView(conversation.id, Language.ENGLISH)
        subscription = await change_feed.subscribe("messages")
        after_send = AsyncMock()

        with patch.object(
            ConversationRepository,
            "update_summary",
            side_effect=OperationalError("UPDATE", {}, Exception("db down")),
        ):
            message = await pipeline.send(
                conversation.id, retailer.id, "Hello", "en", view=view, after_send=after_send
            )

        assert message.content == "Hello"
        assert message.created_at is not None
        stored = (await db_session.execute(select(Message))).scalars().all()
        assert [m.id for m in stored] == [message.id]

        await db_session.refresh(conversation)
        assert conversation.last_message == "Conversation started"
        assert view.pending()[0].confirmed_id == str(message.id)
        assert subscription.queue.get_nowait().record["id"] == str(message.id)
        after_send.assert_awaited_once()
        push_client.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publishes_insert_and_runs_after_send(
        self, session_factory, gateway, conversation, farmer, change_feed
    ):
        pipeline = OutboundMessagePipeline(session_factory, gateway, feed=change_feed)
        subscription = await change_feed.subscribe(
            "messages", {"conversation_id": conversation.id}
        )
        after_send = AsyncMock()

        message = await pipeline.send(
            conversation.id, farmer.id, "Hello", "en", after_send=after_send
        )

        event = subscription.queue.get_nowait()
        assert event.type == INSERT
        assert event.record["id"] == str(message.id)
        assert event.record["sender_id"] == str(farmer.id)
        after_send.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   "])
    async def test_empty_text(self, session_factory, gateway, conversation, farmer, text):
        pipeline = OutboundMessagePipeline(session_factory, gateway)

        with pytest.raises(BadRequestError):
            await pipeline.send(conversation.id, farmer.id, text, "en")

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, session_factory, gateway, farmer):
        pipeline = OutboundMessagePipeline(session_factory, gateway)

        with pytest.raises(NotFoundError):
            await pipeline.send(uuid4(), farmer.id, "Hello", "en")

    @pytest.mark.asyncio
    async def test_sender_outside_conversation(self, session_factory, gateway, conversation):
        pipeline = OutboundMessagePipeline(session_factory, gateway)

        with pytest.raises(BadRequestError):
            await pipeline.send(conversation.id, uuid4(), "Hello", "en")

    @pytest.mark.asyncio
    async def test_notifies_recipient(
        self, session_factory, db_session, gateway, conversation, farmer, retailer
    ):
        """Test that the other party gets a notification and a push."""
        push_client = AsyncMock()
        notifications = NotificationService(session_factory, push_client=push_client)
        pipeline = OutboundMessagePipeline(session_factory, gateway, notifications=notifications)

        await pipeline.send(conversation.id, retailer.id, "Can you do 18?", "en")

        stored = (await db_session.execute(select(Notification))).scalars().one()
        assert stored.user_id == farmer.id
        assert stored.type == "message"
        assert stored.related_id == conversation.id
        push_client.send.assert_awaited_once()
        assert push_client.send.await_args.args[0] == "ExponentPushToken[farmer]"

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_send(
        self, session_factory, gateway, conversation, farmer
    ):
        notifications = AsyncMock()
        notifications.send_notification.side_effect = RuntimeError("boom")
        pipeline = OutboundMessagePipeline(session_factory, gateway, notifications=notifications)

        message = await pipeline.send(conversation.id, farmer.id, "Hello", "en")

        assert message.content == "Hello"
        notifications.send_notification.assert_awaited_once()
