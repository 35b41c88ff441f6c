"""Common API dependencies."""

from typing import Annotated, Any

from fastapi import Depends, Request, WebSocket

from raitha.container import ChatServices


def get_services(request: Request) -> ChatServices:
    """Dependency for the process-wide chat services."""
    return request.app.state.services


# Type aliases for cleaner annotations
Services = Annotated[ChatServices, Depends(get_services)]


async def receive_frame(websocket: WebSocket) -> dict[str, Any] | None:
    """Read one client frame.

    A frame that is not a JSON object is answered with an error frame and
    skipped (returns None); the socket stays open.
    """
    try:
        frame = await websocket.receive_json()
    except (ValueError, KeyError):
        # Invalid JSON, or a binary frame on a text socket
        frame = None

    if not isinstance(frame, dict):
        await websocket.send_json({"type": "error", "detail": "Frames must be JSON objects"})
        return None
    return frame
