"""Core module for exceptions and telemetry."""

from raitha.core.exceptions import (
    BadRequestError,
    ConversationResolutionError,
    MessageFetchError,
    MessageSendError,
    NotFoundError,
    PushDeliveryError,
    SpeechUnavailableError,
    TranslationProviderError,
)
from raitha.core.telemetry import get_tracer, setup_all_instrumentation, setup_telemetry

__all__ = [
    "BadRequestError",
    "ConversationResolutionError",
    "MessageFetchError",
    "MessageSendError",
    "NotFoundError",
    "PushDeliveryError",
    "SpeechUnavailableError",
    "TranslationProviderError",
    "get_tracer",
    "setup_telemetry",
    "setup_all_instrumentation",
]
