"""Message schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from raitha.schemas.language import Language


class MessageCreate(BaseModel):
    """Schema for sending a new message."""

    sender_id: UUID
    text: str = Field(..., min_length=1, description="Text as authored by the sender")
    lang: Language = Field(
        default=Language.ENGLISH, description="Language the sender is typing in"
    )


class MessageDetail(BaseModel):
    """Schema for a stored message."""

    id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    read_at: datetime | None
    created_at: datetime

    class Config:
        from_attributes = True


class DisplayMessage(BaseModel):
    """A message as rendered for one viewer in one display language.

    Optimistic entries carry a temporary ``temp_`` id and the id of the
    stored message they stand in for (``confirmed_id``).
    """

    id: str
    text: str
    original_text: str
    sender_id: UUID
    sender_name: str | None = None
    created_at: datetime
    optimistic: bool = False
    confirmed_id: str | None = None


class DisplayMessageList(BaseModel):
    """Schema for a synchronized message list."""

    conversation_id: UUID
    lang: Language
    items: list[DisplayMessage]
    error: str | None = None
