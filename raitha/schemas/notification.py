"""Notification and counter schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class NotificationDetail(BaseModel):
    """Schema for a notification."""

    id: UUID
    user_id: UUID
    title: str
    body: str
    type: str
    related_id: UUID | None
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCounts(BaseModel):
    """Schema for badge counters."""

    messages: int
    notifications: int


class MarkedRead(BaseModel):
    """Schema for a mark-read action result."""

    updated: int
