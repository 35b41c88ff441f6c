"""Per-user counters and notifications."""

import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from raitha.api.deps import Services, receive_frame
from raitha.schemas import MarkedRead, NotificationDetail, UnreadCounts
from raitha.services.counters import UnreadBadges

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _badge_payload(badges: UnreadBadges) -> dict:
    return {
        "type": "unread",
        "messages": badges.messages,
        "notifications": badges.notifications,
    }


@router.get("/{user_id}/unread", response_model=UnreadCounts)
async def get_unread_counts(user_id: UUID, services: Services):
    """Get unread message and notification badge counts."""
    return UnreadCounts(
        messages=await services.counters.count_unread_messages(user_id),
        notifications=await services.counters.count_unread_notifications(user_id),
    )


@router.post("/{user_id}/messages/read", response_model=MarkedRead)
async def mark_messages_read(
    user_id: UUID,
    services: Services,
    conversation_id: UUID | None = Query(None, description="Limit to one conversation"),
):
    """Mark incoming messages as read."""
    updated = await services.counters.mark_messages_read(user_id, conversation_id)
    return MarkedRead(updated=updated)


@router.post("/{user_id}/notifications/read", response_model=MarkedRead)
async def mark_notifications_read(user_id: UUID, services: Services):
    """Mark all notifications as read."""
    updated = await services.counters.mark_notifications_read(user_id)
    return MarkedRead(updated=updated)


@router.get("/{user_id}/notifications", response_model=list[NotificationDetail])
async def list_notifications(
    user_id: UUID,
    services: Services,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
):
    """List notifications, newest first."""
    return await services.notifications.list_notifications(user_id, skip=skip, limit=limit)


@router.websocket("/{user_id}/badges")
async def live_badges(websocket: WebSocket, user_id: UUID):
    """Live unread badges.

    Client frames:
    - {"type": "read", "target": "messages" | "notifications"}
    - {"type": "refresh"}

    Server frames: {"type": "unread", "messages": n, "notifications": n}
    """
    services = websocket.app.state.services
    await websocket.accept()

    badges = UnreadBadges(user_id, services.counters)

    async def push_counts(current: UnreadBadges) -> None:
        await websocket.send_json(_badge_payload(current))

    await badges.refresh()
    await push_counts(badges)
    watcher = asyncio.create_task(badges.watch(services.feed, on_change=push_counts))

    try:
        while True:
            frame = await receive_frame(websocket)
            if frame is None:
                continue
            frame_type = frame.get("type")

            if frame_type == "read":
                target = frame.get("target")
                if target == "messages":
                    await badges.mark_messages_read()
                elif target == "notifications":
                    await badges.mark_notifications_read()
                else:
                    await websocket.send_json(
                        {"type": "error", "detail": f"Unknown read target '{target}'"}
                    )
                    continue
                await push_counts(badges)

            elif frame_type == "refresh":
                await badges.refresh()
                await push_counts(badges)

    except WebSocketDisconnect:
        logger.info(f"Badge stream closed for user {user_id}")
    finally:
        watcher.cancel()
        try:
            await watcher
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(f"Badge watcher for user {user_id} ended with error: {e}")
