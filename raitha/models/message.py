"""Message model for negotiation chat messages."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from raitha.db.base import Base
from raitha.models.base import TimestampMixin


class Message(Base, TimestampMixin):
    """A chat message, stored in the canonical language."""

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("conversations.id"), nullable=False
    )
    sender_id: Mapped[UUID] = mapped_column(nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # NULL until the recipient reads it
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    conversation: Mapped["Conversation"] = relationship(  # noqa: F821
        back_populates="messages"
    )

    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
        Index("ix_messages_unread", "conversation_id", "read_at"),
    )
