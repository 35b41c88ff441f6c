"""Conversation and message endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from raitha.api.deps import Services, receive_frame
from raitha.schemas import (
    ConversationResolve,
    ConversationResolved,
    ConversationSummary,
    DisplayMessageList,
    Language,
    MessageCreate,
    MessageDetail,
)
from raitha.services.synchronizer import ConversationView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _view_payload(view: ConversationView) -> dict:
    return {
        "type": "messages",
        "conversation_id": str(view.conversation_id),
        "lang": view.language.value,
        "items": [m.model_dump(mode="json") for m in view.messages()],
        "error": view.sync_error,
    }


@router.post("/resolve", response_model=ConversationResolved)
async def resolve_conversation(data: ConversationResolve, services: Services):
    """Find or start the conversation for a crop between a farmer and a retailer."""
    conversation_id = await services.resolver.resolve(
        data.crop_id, data.farmer_id, data.retailer_id
    )
    return ConversationResolved(conversation_id=conversation_id)


@router.get("", response_model=list[ConversationSummary])
async def list_conversations(
    services: Services,
    user_id: UUID = Query(..., description="Farmer or retailer profile ID"),
):
    """List a user's conversations, latest activity first."""
    return await services.resolver.list_for_user(user_id)


@router.get("/{conversation_id}/messages", response_model=DisplayMessageList)
async def list_messages(
    conversation_id: UUID,
    services: Services,
    lang: Language = Query(Language.ENGLISH, description="Display language"),
):
    """Get the conversation history, newest first, in the display language."""
    items = await services.synchronizer.sync(conversation_id, lang)
    return DisplayMessageList(conversation_id=conversation_id, lang=lang, items=items)


@router.post("/{conversation_id}/messages", response_model=MessageDetail, status_code=201)
async def send_message(conversation_id: UUID, data: MessageCreate, services: Services):
    """Send a message authored in the given language."""
    return await services.pipeline.send(conversation_id, data.sender_id, data.text, data.lang)


@router.websocket("/{conversation_id}/live")
async def live_conversation(
    websocket: WebSocket,
    conversation_id: UUID,
    lang: Language = Language.ENGLISH,
    user_id: UUID | None = None,
):
    """Live conversation view.

    Client frames:
    - {"type": "language", "lang": "kn"}
    - {"type": "sync"}
    - {"type": "send", "sender_id": "...", "text": "..."}

    Server frames carry the full newest-first message list.
    """
    services = websocket.app.state.services
    await websocket.accept()

    async def push_view(view: ConversationView) -> None:
        await websocket.send_json(_view_payload(view))

    driver = services.driver(conversation_id, lang, on_update=push_view)
    session_key = f"{conversation_id}:{id(websocket)}"
    await services.registry.start(session_key, driver)

    if user_id is not None:
        await services.counters.mark_messages_read(user_id, conversation_id)

    try:
        while True:
            frame = await receive_frame(websocket)
            if frame is None:
                continue
            frame_type = frame.get("type")

            if frame_type == "language":
                try:
                    await driver.change_language(Language(frame.get("lang")))
                except ValueError:
                    await websocket.send_json(
                        {"type": "error", "detail": f"Unsupported language '{frame.get('lang')}'"}
                    )

            elif frame_type == "sync":
                await driver.request_sync()

            elif frame_type == "send":
                try:
                    data = MessageCreate(
                        sender_id=frame.get("sender_id"),
                        text=frame.get("text") or "",
                        lang=driver.view.language,
                    )
                    await driver.send(services.pipeline, data.sender_id, data.text)
                except ValidationError as e:
                    await websocket.send_json({"type": "error", "detail": str(e)})
                except HTTPException as e:
                    # The client keeps the authored text for a manual retry
                    await websocket.send_json({"type": "error", "detail": e.detail})

            else:
                logger.debug(f"Unhandled frame type '{frame_type}' on conversation {conversation_id}")

    except WebSocketDisconnect:
        logger.info(f"Live view closed for conversation {conversation_id}")
    finally:
        await services.registry.stop(session_key)
