"""Notification model for in-app notifications."""

from uuid import UUID, uuid4

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from raitha.db.base import Base
from raitha.models.base import TimestampMixin


class Notification(Base, TimestampMixin):
    """A notification addressed to a single user."""

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(50), default="message"
    )  # message, new_conversation, order, test
    related_id: Mapped[UUID | None] = mapped_column()
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (Index("ix_notifications_user_read", "user_id", "read"),)
