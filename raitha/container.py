"""Process-wide service wiring.

Everything that talks to the database, the change feed or a provider is
built once here and handed to the components that need it.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from raitha.schemas import Language
from raitha.services.change_feed import ChangeFeed, build_change_feed
from raitha.services.conversation_resolver import ConversationResolver
from raitha.services.counters import UnreadCounters
from raitha.services.notification_service import NotificationService
from raitha.services.outbound import OutboundMessagePipeline
from raitha.services.push_client import PushClient
from raitha.services.synchronizer import MessageSynchronizer
from raitha.services.translation import TranslationGateway, build_providers
from raitha.workers.sync_driver import (
    ConversationSyncDriver,
    SyncDriverRegistry,
    UpdateCallback,
)

logger = logging.getLogger(__name__)


@dataclass
class ChatServices:
    """The negotiation chat components sharing one set of handles."""

    session_factory: async_sessionmaker[AsyncSession]
    feed: ChangeFeed
    gateway: TranslationGateway
    resolver: ConversationResolver
    synchronizer: MessageSynchronizer
    pipeline: OutboundMessagePipeline
    counters: UnreadCounters
    notifications: NotificationService
    registry: SyncDriverRegistry = field(default_factory=SyncDriverRegistry)
    http_client: httpx.AsyncClient | None = None

    @classmethod
    def build(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed | None = None,
        http_client: httpx.AsyncClient | None = None,
        provider_specs: list[str] | None = None,
    ) -> "ChatServices":
        feed = feed if feed is not None else build_change_feed()
        gateway = TranslationGateway(build_providers(provider_specs, client=http_client))
        notifications = NotificationService(
            session_factory, PushClient(client=http_client), feed
        )
        return cls(
            session_factory=session_factory,
            feed=feed,
            gateway=gateway,
            resolver=ConversationResolver(session_factory, feed),
            synchronizer=MessageSynchronizer(session_factory, gateway),
            pipeline=OutboundMessagePipeline(session_factory, gateway, feed, notifications),
            counters=UnreadCounters(session_factory),
            notifications=notifications,
            http_client=http_client,
        )

    def driver(
        self,
        conversation_id: UUID,
        language: Language | str,
        on_update: UpdateCallback | None = None,
        interval: float | None = None,
    ) -> ConversationSyncDriver:
        return ConversationSyncDriver(
            conversation_id,
            language,
            self.synchronizer,
            feed=self.feed,
            on_update=on_update,
            interval=interval,
        )

    async def close(self) -> None:
        await self.registry.close()
        await self.feed.close()
        if self.http_client is not None:
            await self.http_client.aclose()
        logger.info("Chat services closed")
