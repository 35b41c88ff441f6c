"""Realtime change feed for table insert/update events.

Publishers emit a ``ChangeEvent`` after a row is written; subscribers get an
async iterator filtered by table and column values, and release it with
``unsubscribe()``. Redis pub/sub carries events between processes; the local
feed fans out inside one event loop.
"""

import asyncio
import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from redis.asyncio import Redis

from raitha.config import settings

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"


@dataclass
class ChangeEvent:
    """A row-level change on a table."""

    table: str
    type: str
    record: dict[str, Any] = field(default_factory=dict)

    def matches(self, filters: dict[str, Any] | None) -> bool:
        """Check whether the record satisfies equality filters."""
        if not filters:
            return True
        return all(
            str(self.record.get(column)) == str(value) for column, value in filters.items()
        )

    def to_json(self) -> str:
        return json.dumps(
            {"table": self.table, "type": self.type, "record": self.record}, default=str
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "ChangeEvent":
        data = json.loads(raw)
        return cls(table=data["table"], type=data["type"], record=data.get("record", {}))

    @classmethod
    def from_row(cls, table: str, type: str, row: Any, columns: list[str]) -> "ChangeEvent":
        """Build an event from an ORM instance, stringifying values."""
        record = {}
        for column in columns:
            value = getattr(row, column, None)
            record[column] = None if value is None else str(value)
        return cls(table=table, type=type, record=record)


class Subscription(ABC):
    """Handle for a live change subscription."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        pass

    @abstractmethod
    async def unsubscribe(self) -> None:
        """Stop delivery and end iteration. Safe to call twice."""
        pass


class ChangeFeed(ABC):
    """Publish/subscribe interface over table changes."""

    @abstractmethod
    async def publish(self, event: ChangeEvent) -> None:
        pass

    @abstractmethod
    async def subscribe(
        self, table: str, filters: dict[str, Any] | None = None
    ) -> Subscription:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


_CLOSED = object()


class LocalSubscription(Subscription):
    """Subscription backed by an asyncio queue."""

    def __init__(self, feed: "LocalChangeFeed", table: str, filters: dict[str, Any] | None):
        self.feed = feed
        self.table = table
        self.filters = filters
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def __aiter__(self) -> "LocalSubscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        item = await self.queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.feed._remove(self)
        self.queue.put_nowait(_CLOSED)


class LocalChangeFeed(ChangeFeed):
    """In-process change feed for single-node deployments."""

    def __init__(self):
        self._subscriptions: dict[str, set[LocalSubscription]] = defaultdict(set)

    async def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscriptions.get(event.table, ())):
            if event.matches(subscription.filters):
                subscription.queue.put_nowait(event)

    async def subscribe(
        self, table: str, filters: dict[str, Any] | None = None
    ) -> LocalSubscription:
        subscription = LocalSubscription(self, table, filters)
        self._subscriptions[table].add(subscription)
        return subscription

    def _remove(self, subscription: LocalSubscription) -> None:
        self._subscriptions.get(subscription.table, set()).discard(subscription)

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._subscriptions.values())

    async def close(self) -> None:
        for subscriptions in list(self._subscriptions.values()):
            for subscription in list(subscriptions):
                await subscription.unsubscribe()


class RedisSubscription(Subscription):
    """Subscription backed by a Redis pub/sub channel."""

    def __init__(self, pubsub, channel: str, filters: dict[str, Any] | None):
        self.pubsub = pubsub
        self.channel = channel
        self.filters = filters
        self.closed = False

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ChangeEvent]:
        async for message in self.pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                event = ChangeEvent.from_json(message["data"])
            except (ValueError, KeyError) as e:
                logger.warning(f"Invalid change event on {self.channel}: {e}")
                continue
            if event.matches(self.filters):
                yield event

    async def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self.pubsub.unsubscribe(self.channel)
        await self.pubsub.aclose()


class RedisChangeFeed(ChangeFeed):
    """Change feed published over Redis channels, one channel per table."""

    def __init__(self, redis: Redis, prefix: str | None = None):
        self.redis = redis
        self.prefix = prefix or settings.CHANGE_FEED_CHANNEL_PREFIX

    def channel(self, table: str) -> str:
        return f"{self.prefix}:{table}"

    async def publish(self, event: ChangeEvent) -> None:
        await self.redis.publish(self.channel(event.table), event.to_json())

    async def subscribe(
        self, table: str, filters: dict[str, Any] | None = None
    ) -> RedisSubscription:
        pubsub = self.redis.pubsub()
        channel = self.channel(table)
        await pubsub.subscribe(channel)
        logger.debug(f"Subscribed to {channel} with filters {filters}")
        return RedisSubscription(pubsub, channel, filters)

    async def close(self) -> None:
        await self.redis.aclose()


def build_change_feed(redis_url: str | None = None) -> ChangeFeed:
    """Create the change feed configured by REDIS_URL."""
    url = settings.REDIS_URL if redis_url is None else redis_url
    if not url:
        logger.info("REDIS_URL not configured, using in-process change feed")
        return LocalChangeFeed()
    return RedisChangeFeed(Redis.from_url(url, decode_responses=True))


async def publish_safely(feed: ChangeFeed | None, event: ChangeEvent) -> None:
    """Publish an event, logging delivery problems instead of raising."""
    if feed is None:
        return
    try:
        await feed.publish(event)
    except Exception as e:
        logger.error(f"Failed to publish {event.type} on {event.table}: {e}")
