"""Profile model for farmers and retailers."""

from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from raitha.db.base import Base
from raitha.models.base import TimestampMixin


class ProfileRole(str, Enum):
    """Marketplace role enum."""

    FARMER = "farmer"
    RETAILER = "retailer"


class Profile(Base, TimestampMixin):
    """A marketplace participant."""

    __tablename__ = "profiles"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[ProfileRole] = mapped_column(SQLEnum(ProfileRole), nullable=False)

    # Expo push token, set by the mobile client after login
    push_token: Mapped[str | None] = mapped_column(String(255))
