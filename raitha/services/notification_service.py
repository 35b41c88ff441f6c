"""In-app notifications with push delivery."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from raitha.db.repositories import NotificationRepository, ProfileRepository
from raitha.models import Notification
from raitha.services.change_feed import INSERT, ChangeEvent, ChangeFeed, publish_safely
from raitha.services.push_client import PushClient

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT_COLUMNS = ["id", "user_id", "type", "related_id", "read"]


class NotificationService:
    """Stores notifications and relays them as push messages."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        push_client: PushClient | None = None,
        feed: ChangeFeed | None = None,
    ):
        self.session_factory = session_factory
        self.push_client = push_client or PushClient()
        self.feed = feed

    async def send_notification(
        self,
        user_id: UUID,
        title: str,
        body: str,
        type: str,
        related_id: UUID | None = None,
    ) -> Notification:
        """Store a notification and push it when the user has a push token.

        Push failures are logged and not retried.
        """
        async with self.session_factory() as db:
            notification = await NotificationRepository(db).create(
                user_id=user_id,
                title=title,
                body=body,
                type=type,
                related_id=related_id,
                read=False,
            )
            token = await ProfileRepository(db).get_push_token(user_id)

        await publish_safely(
            self.feed,
            ChangeEvent.from_row(
                "notifications", INSERT, notification, NOTIFICATION_EVENT_COLUMNS
            ),
        )

        if token:
            try:
                await self.push_client.send(
                    token,
                    title,
                    body,
                    data={
                        "notificationId": str(notification.id),
                        "type": type,
                        "relatedId": str(related_id) if related_id else None,
                    },
                )
            except Exception as e:
                logger.error(f"Error sending push notification to {user_id}: {e}")

        return notification

    async def list_notifications(
        self, user_id: UUID, *, skip: int = 0, limit: int = 50
    ) -> list[Notification]:
        """List a user's notifications, newest first."""
        async with self.session_factory() as db:
            return await NotificationRepository(db).list_for_user(
                user_id, skip=skip, limit=limit
            )
