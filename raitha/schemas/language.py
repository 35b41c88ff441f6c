"""Display language schemas."""

from enum import Enum

from pydantic import BaseModel

from raitha.config import settings


class Language(str, Enum):
    """Languages a conversation can be displayed in."""

    ENGLISH = "en"
    KANNADA = "kn"
    HINDI = "hi"
    TELUGU = "te"
    TAMIL = "ta"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def speech_tag(self) -> str:
        """BCP-47 tag used by speech engines."""
        return _SPEECH_TAGS[self]

    @property
    def is_canonical(self) -> bool:
        return self.value == settings.CANONICAL_LANGUAGE

    @classmethod
    def canonical(cls) -> "Language":
        """The language message content is stored in."""
        return cls(settings.CANONICAL_LANGUAGE)


_LABELS = {
    Language.ENGLISH: "English",
    Language.KANNADA: "Kannada",
    Language.HINDI: "Hindi",
    Language.TELUGU: "Telugu",
    Language.TAMIL: "Tamil",
}

_SPEECH_TAGS = {
    Language.ENGLISH: "en-US",
    Language.KANNADA: "kn-IN",
    Language.HINDI: "hi-IN",
    Language.TELUGU: "te-IN",
    Language.TAMIL: "ta-IN",
}


class LanguageOption(BaseModel):
    """Schema for a display language choice."""

    code: Language
    label: str
    speech_tag: str
    canonical: bool

    @classmethod
    def from_language(cls, language: Language) -> "LanguageOption":
        return cls(
            code=language,
            label=language.label,
            speech_tag=language.speech_tag,
            canonical=language.is_canonical,
        )
