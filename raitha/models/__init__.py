"""SQLAlchemy models."""

from raitha.models.conversation import Conversation
from raitha.models.message import Message
from raitha.models.notification import Notification
from raitha.models.profile import Profile, ProfileRole

__all__ = [
    "Conversation",
    "Message",
    "Notification",
    "Profile",
    "ProfileRole",
]
