"""Pydantic schemas for request/response models."""

from raitha.schemas.conversation import (
    ConversationResolve,
    ConversationResolved,
    ConversationSummary,
)
from raitha.schemas.language import Language, LanguageOption
from raitha.schemas.message import (
    DisplayMessage,
    DisplayMessageList,
    MessageCreate,
    MessageDetail,
)
from raitha.schemas.notification import MarkedRead, NotificationDetail, UnreadCounts

__all__ = [
    "ConversationResolve",
    "ConversationResolved",
    "ConversationSummary",
    "DisplayMessage",
    "DisplayMessageList",
    "Language",
    "LanguageOption",
    "MarkedRead",
    "MessageCreate",
    "MessageDetail",
    "NotificationDetail",
    "UnreadCounts",
]
