"""Polling and realtime driver keeping an open conversation view in sync."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

from raitha.config import settings
from raitha.core.exceptions import MessageFetchError
from raitha.models import Message
from raitha.schemas import Language
from raitha.services.change_feed import INSERT, ChangeFeed, Subscription
from raitha.services.outbound import OutboundMessagePipeline
from raitha.services.synchronizer import ConversationView, MessageSynchronizer

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[ConversationView], Awaitable[None]]


class ConversationSyncDriver:
    """Keeps one conversation view fresh while it is open.

    A timer syncs every ``interval`` seconds and a realtime subscription
    syncs on each message insert, whichever comes first. Sync passes are
    serialized. Once stopped, results of in-flight passes are dropped and
    ``on_update`` is never called again.
    """

    def __init__(
        self,
        conversation_id: UUID,
        language: Language | str,
        synchronizer: MessageSynchronizer,
        feed: ChangeFeed | None = None,
        on_update: UpdateCallback | None = None,
        interval: float | None = None,
    ):
        self.conversation_id = conversation_id
        self.synchronizer = synchronizer
        self.feed = feed
        self.on_update = on_update
        self.interval = interval or settings.SYNC_INTERVAL_SECONDS
        self.view = ConversationView(conversation_id, language)
        self.running = False
        self.sync_count = 0
        self._lock = asyncio.Lock()
        self._subscription: Subscription | None = None
        self._timer_task: asyncio.Task | None = None
        self._realtime_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the timer and the realtime subscription."""
        if self.running:
            return
        self.running = True

        if self.feed is not None:
            try:
                self._subscription = await self.feed.subscribe(
                    "messages", {"conversation_id": self.conversation_id}
                )
                self._realtime_task = asyncio.create_task(self._listen())
            except Exception as e:
                # The timer still keeps the view fresh
                logger.error(
                    f"Realtime subscription failed for conversation {self.conversation_id}: {e}"
                )

        self._timer_task = asyncio.create_task(self._poll())
        logger.info(f"Started sync driver for conversation {self.conversation_id}")

    async def _sync_guarded(self) -> None:
        """Run a pass, recording an unexpected failure on the view instead of raising."""
        try:
            await self.sync_once()
        except Exception as e:
            logger.error(f"Unexpected sync error for conversation {self.conversation_id}: {e}")
            if self.running:
                self.view.mark_sync_failed(f"Failed to load messages: {e}")
                await self._notify()

    async def _poll(self) -> None:
        while self.running:
            await self._sync_guarded()
            await asyncio.sleep(self.interval)

    async def _listen(self) -> None:
        try:
            async for event in self._subscription:
                if not self.running:
                    break
                if event.type == INSERT:
                    await self._sync_guarded()
        except Exception as e:
            # Feed failures end realtime updates; the timer keeps running
            logger.error(f"Realtime listener error for conversation {self.conversation_id}: {e}")

    async def sync_once(self) -> bool:
        """Run one sync pass. Returns True when the view was updated."""
        async with self._lock:
            if not self.running:
                return False

            language = self.view.language
            try:
                fetched = await self.synchronizer.sync(self.conversation_id, language)
            except MessageFetchError as e:
                if not self.running:
                    return False
                self.view.mark_sync_failed(e.detail)
                await self._notify()
                return False

            if not self.running or language != self.view.language:
                return False

            self.view.apply_sync(fetched)
            self.sync_count += 1
            await self._notify()
            return True

    async def request_sync(self) -> bool:
        """One-shot sync outside the timer cadence."""
        return await self.sync_once()

    async def change_language(self, language: Language | str) -> None:
        """Switch display language and re-translate the loaded messages once."""
        language = Language(language)
        async with self._lock:
            if language == self.view.language:
                return
            self.view.language = language

            loaded = self.view.messages()
            if not loaded:
                return

            translated = await self.synchronizer.retranslate(loaded, language)
            if not self.running or self.view.language != language:
                return

            self.view.replace(translated)
            await self._notify()

    async def send(
        self,
        pipeline: OutboundMessagePipeline,
        sender_id: UUID,
        text: str,
    ) -> Message:
        """Send through the pipeline with an optimistic echo into this view."""

        async def after_send() -> None:
            await self._notify()
            await self.sync_once()

        return await pipeline.send(
            self.conversation_id,
            sender_id,
            text,
            self.view.language,
            view=self.view,
            after_send=after_send,
        )

    async def _notify(self) -> None:
        if not self.running or self.on_update is None:
            return
        try:
            await self.on_update(self.view)
        except Exception as e:
            logger.warning(f"Update callback failed for conversation {self.conversation_id}: {e}")

    async def stop(self) -> None:
        """Stop the timer, detach the subscription and drop late results."""
        if not self.running:
            return
        self.running = False

        for task in (self._timer_task, self._realtime_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._timer_task = None
        self._realtime_task = None

        if self._subscription is not None:
            try:
                await self._subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to unsubscribe conversation {self.conversation_id}: {e}")
            self._subscription = None

        logger.info(f"Stopped sync driver for conversation {self.conversation_id}")


class SyncDriverRegistry:
    """Tracks running drivers, one per session key."""

    def __init__(self):
        self.drivers: dict[str, ConversationSyncDriver] = {}

    async def start(self, key: str, driver: ConversationSyncDriver) -> ConversationSyncDriver:
        """Start a driver, stopping whichever driver held the key before."""
        await self.stop(key)
        self.drivers[key] = driver
        await driver.start()
        return driver

    async def stop(self, key: str) -> None:
        driver = self.drivers.pop(key, None)
        if driver is not None:
            await driver.stop()

    async def close(self) -> None:
        for key in list(self.drivers.keys()):
            await self.stop(key)
