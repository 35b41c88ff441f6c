"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from raitha.core.exceptions import MessageFetchError, TranslationProviderError
from raitha.db import Base, create_engine, create_session_factory, init_db
from raitha.models import Conversation, Message, Notification, Profile, ProfileRole
from raitha.schemas import DisplayMessage
from raitha.services.change_feed import LocalChangeFeed
from raitha.services.translation import TranslationGateway, TranslationProvider


# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeProvider(TranslationProvider):
    """Translation provider that tags text with the target language."""

    def __init__(self, name: str = "fake", fail: bool = False):
        super().__init__("http://translate.invalid")
        self.name = name
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def translate(self, text: str, target: str, source: str = "auto") -> str:
        self.calls.append((text, target))
        if self.fail:
            raise TranslationProviderError(f"{self.name} is down")
        return f"[{target}] {text}"


class FakeSynchronizer:
    """Synchronizer double with scriptable results."""

    def __init__(self, messages: list[DisplayMessage] | None = None):
        self.messages = messages or []
        self.error: str | None = None
        self.gate: asyncio.Event | None = None
        self.sync_calls = 0
        self.retranslate_calls = 0

    async def sync(self, conversation_id, language):
        self.sync_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise MessageFetchError(self.error)
        return list(self.messages)

    async def retranslate(self, messages, language):
        self.retranslate_calls += 1
        return [
            m.model_copy(update={"text": f"[{language.value}] {m.original_text}"})
            for m in messages
        ]


@pytest.fixture
async def async_engine():
    """Create async engine for testing."""
    engine = create_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine, create_tables=True)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory handed to services under test."""
    return create_session_factory(async_engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_provider():
    """Factory for fake translation providers."""
    return FakeProvider


@pytest.fixture
def working_provider() -> FakeProvider:
    return FakeProvider("working")


@pytest.fixture
def gateway(working_provider) -> TranslationGateway:
    """Gateway whose only provider always succeeds."""
    return TranslationGateway([working_provider])


@pytest.fixture
def failing_gateway(make_provider) -> TranslationGateway:
    """Gateway whose providers all fail."""
    return TranslationGateway([make_provider("first", fail=True), make_provider("second", fail=True)])


@pytest.fixture
def change_feed() -> LocalChangeFeed:
    return LocalChangeFeed()


@pytest.fixture
async def farmer(db_session) -> Profile:
    profile = Profile(name="Ramesh", role=ProfileRole.FARMER, push_token="ExponentPushToken[farmer]")
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


@pytest.fixture
async def retailer(db_session) -> Profile:
    profile = Profile(name="Fresh Mart", role=ProfileRole.RETAILER)
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


@pytest.fixture
def crop_id() -> UUID:
    return uuid4()


@pytest.fixture
async def conversation(db_session, farmer, retailer, crop_id) -> Conversation:
    """A conversation between the sample farmer and retailer."""
    conversation = Conversation(
        crop_id=crop_id,
        farmer_id=farmer.id,
        retailer_id=retailer.id,
        last_message="Conversation started",
        last_message_at=datetime.now(timezone.utc),
    )
    db_session.add(conversation)
    await db_session.commit()
    await db_session.refresh(conversation)
    return conversation


@pytest.fixture
def add_message(db_session):
    """Insert a stored message with an explicit creation time."""

    async def _add(
        conversation: Conversation,
        sender_id: UUID,
        content: str,
        minutes_ago: int = 0,
        read: bool = False,
    ) -> Message:
        now = datetime.now(timezone.utc)
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            content=content,
            created_at=now - timedelta(minutes=minutes_ago),
            read_at=now if read else None,
        )
        db_session.add(message)
        await db_session.commit()
        await db_session.refresh(message)
        return message

    return _add


@pytest.fixture
def add_notification(db_session):
    async def _add(user_id: UUID, read: bool = False, title: str = "New message") -> Notification:
        notification = Notification(
            user_id=user_id, title=title, body="Check your chat", type="message", read=read
        )
        db_session.add(notification)
        await db_session.commit()
        await db_session.refresh(notification)
        return notification

    return _add


@pytest.fixture
def sample_push_response() -> dict[str, Any]:
    """Expo push API success body."""
    return {"data": {"status": "ok", "id": "XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX"}}


@pytest.fixture
def fake_synchronizer():
    """Factory for synchronizer doubles."""
    return FakeSynchronizer


@pytest.fixture
def make_display():
    """Build a confirmed display message."""

    def _make(id: str, text: str) -> DisplayMessage:
        return DisplayMessage(
            id=id,
            text=text,
            original_text=text,
            sender_id=uuid4(),
            created_at=datetime.now(timezone.utc),
        )

    return _make
