"""Conversation schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class ConversationResolve(BaseModel):
    """Schema for finding or starting a negotiation thread."""

    # Plain strings so blank or malformed ids get the resolver's 400
    crop_id: str | None = None
    farmer_id: str | None = None
    retailer_id: str | None = None


class ConversationResolved(BaseModel):
    """Schema for the resolved conversation ID."""

    conversation_id: UUID


class ConversationSummary(BaseModel):
    """Schema for a conversation list entry."""

    id: UUID
    crop_id: UUID
    farmer_id: UUID
    retailer_id: UUID
    last_message: str | None
    last_message_at: datetime | None
    last_sender_id: UUID | None
    created_at: datetime
    unread_count: int = 0

    class Config:
        from_attributes = True
