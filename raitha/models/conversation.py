"""Conversation model for a (crop, farmer, retailer) negotiation thread."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from raitha.db.base import Base
from raitha.models.base import TimestampMixin


class Conversation(Base, TimestampMixin):
    """Represents the chat thread between a farmer and a retailer over a crop."""

    __tablename__ = "conversations"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    crop_id: Mapped[UUID] = mapped_column(nullable=False)
    farmer_id: Mapped[UUID] = mapped_column(nullable=False)
    retailer_id: Mapped[UUID] = mapped_column(nullable=False)

    # Summary shown in conversation lists
    last_message: Mapped[str | None] = mapped_column(String(100))
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_sender_id: Mapped[UUID | None] = mapped_column()

    messages: Mapped[list["Message"]] = relationship(  # noqa: F821
        back_populates="conversation", cascade="all, delete-orphan"
    )

    # Not unique: find-or-create is check-then-insert
    __table_args__ = (
        Index("ix_conversations_triple", "crop_id", "farmer_id", "retailer_id"),
        Index("ix_conversations_farmer", "farmer_id"),
        Index("ix_conversations_retailer", "retailer_id"),
    )
