"""Repository classes for database operations."""

from raitha.db.repositories.base import BaseRepository
from raitha.db.repositories.conversation import ConversationRepository
from raitha.db.repositories.message import MessageRepository
from raitha.db.repositories.notification import NotificationRepository
from raitha.db.repositories.profile import ProfileRepository

__all__ = [
    "BaseRepository",
    "ConversationRepository",
    "MessageRepository",
    "NotificationRepository",
    "ProfileRepository",
]
