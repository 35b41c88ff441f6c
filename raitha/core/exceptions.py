"""Custom HTTP exceptions and provider-level errors."""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Exception raised when a resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id '{identifier}' not found",
        )


class BadRequestError(HTTPException):
    """Exception raised for bad requests."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class ConversationResolutionError(HTTPException):
    """Exception raised when a conversation cannot be found or created."""

    def __init__(self, detail: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(
            status_code=status_code,
            detail=f"Failed to start conversation: {detail}",
        )


class MessageSendError(HTTPException):
    """Exception raised when a message could not be persisted."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to send message: {detail}",
        )


class MessageFetchError(HTTPException):
    """Exception raised when the message history could not be loaded."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to load messages: {detail}",
        )


class TranslationProviderError(Exception):
    """A single translation provider failed to return a translation."""


class PushDeliveryError(Exception):
    """The push relay rejected a notification."""


class SpeechUnavailableError(Exception):
    """Speech recognition is not available on this host."""
