"""Text-to-speech and speech-to-text control over host speech engines."""

import logging
from abc import ABC, abstractmethod

from raitha.core.exceptions import SpeechUnavailableError
from raitha.schemas import Language

logger = logging.getLogger(__name__)


class SpeechSynthesizer(ABC):
    """Host text-to-speech engine."""

    @abstractmethod
    def speak(self, text: str, language_tag: str, rate: float, pitch: float) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass


class SpeechRecognizer(ABC):
    """Host speech-to-text engine; results arrive through VoiceInput callbacks."""

    @abstractmethod
    async def is_available(self) -> bool:
        pass

    @abstractmethod
    async def start(self, language_tag: str) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass


class Speaker:
    """Reads messages aloud, one utterance at a time."""

    def __init__(self, engine: SpeechSynthesizer, rate: float = 0.9, pitch: float = 1.0):
        self.engine = engine
        self.rate = rate
        self.pitch = pitch

    def speak(self, text: str, language: Language | str, mute: bool = False) -> bool:
        """Speak text, cutting off any utterance in progress. Returns False when skipped."""
        if not text or mute:
            return False

        self.engine.stop()
        self.engine.speak(text, Language(language).speech_tag, self.rate, self.pitch)
        return True

    def stop(self) -> None:
        self.engine.stop()


class VoiceInput:
    """Dictation control: availability check, recording state and final transcript."""

    def __init__(self, engine: SpeechRecognizer):
        self.engine = engine
        self.available = False
        self.recording = False
        self.transcript: str | None = None
        self.error: str | None = None

    async def check_availability(self) -> bool:
        """Check whether the engine can be used; errors count as unavailable."""
        try:
            self.available = bool(await self.engine.is_available())
        except Exception as e:
            logger.error(f"Failed to initialize speech recognition: {e}")
            self.available = False
        return self.available

    async def start(self, language: Language | str) -> None:
        """Start recording in the given language.

        Raises:
            SpeechUnavailableError: If the engine was not found available
        """
        if not self.available:
            raise SpeechUnavailableError("Voice recognition not available on this device")

        self.transcript = None
        self.error = None
        self.recording = True
        try:
            await self.engine.start(Language(language).speech_tag)
        except Exception:
            self.recording = False
            raise

    async def stop(self) -> None:
        if not self.available:
            return
        try:
            await self.engine.stop()
        finally:
            self.recording = False

    def on_result(self, transcript: str) -> None:
        """Record the final transcript reported by the engine."""
        self.transcript = transcript
        self.recording = False

    def on_error(self, error: str) -> None:
        logger.warning(f"Speech recognition error: {error}")
        self.error = error
        self.recording = False
