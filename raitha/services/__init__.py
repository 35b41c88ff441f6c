"""Business logic services."""

from raitha.services.change_feed import ChangeEvent, LocalChangeFeed, RedisChangeFeed
from raitha.services.conversation_resolver import ConversationResolver
from raitha.services.counters import UnreadBadges, UnreadCounters
from raitha.services.notification_service import NotificationService
from raitha.services.outbound import OutboundMessagePipeline, preview_text
from raitha.services.push_client import PushClient
from raitha.services.speech import Speaker, VoiceInput
from raitha.services.synchronizer import ConversationView, MessageSynchronizer
from raitha.services.translation import (
    GoogleTranslateProvider,
    LibreTranslateProvider,
    TranslationGateway,
)

__all__ = [
    "ChangeEvent",
    "ConversationResolver",
    "ConversationView",
    "GoogleTranslateProvider",
    "LibreTranslateProvider",
    "LocalChangeFeed",
    "MessageSynchronizer",
    "NotificationService",
    "OutboundMessagePipeline",
    "PushClient",
    "RedisChangeFeed",
    "Speaker",
    "TranslationGateway",
    "UnreadBadges",
    "UnreadCounters",
    "VoiceInput",
    "preview_text",
]
