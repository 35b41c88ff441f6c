"""Translation gateway with ordered provider fallback."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from raitha.config import settings
from raitha.core.exceptions import TranslationProviderError
from raitha.core.telemetry import get_tracer
from raitha.schemas.language import Language

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class TranslationProvider(ABC):
    """Base HTTP client for a single translation service."""

    name = "provider"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.TRANSLATION_TIMEOUT_SECONDS
        self.client = client

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make an HTTP request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        logger.debug(f"{self.name} request: {method} {url}")

        try:
            if self.client is not None:
                response = await self.client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout, follow_redirects=True
                ) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise TranslationProviderError(f"{self.name} connection error: {e}") from e

        if response.status_code >= 400:
            raise TranslationProviderError(
                f"{self.name} failed with status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise TranslationProviderError(f"{self.name} returned invalid JSON") from e

    @abstractmethod
    async def translate(self, text: str, target: str, source: str = "auto") -> str:
        """Translate text into the target language code.

        Raises:
            TranslationProviderError: If the service fails or returns no translation
        """
        pass


class LibreTranslateProvider(TranslationProvider):
    """LibreTranslate-compatible ``POST /translate`` endpoint."""

    name = "libretranslate"

    async def translate(self, text: str, target: str, source: str = "auto") -> str:
        data = await self._request(
            "POST",
            "/translate",
            json={"q": text, "source": source, "target": target, "format": "text"},
        )
        if not isinstance(data, dict):
            raise TranslationProviderError(f"{self.name} returned an unexpected body")
        if data.get("error"):
            raise TranslationProviderError(f"{self.name} error: {data['error']}")

        translated = data.get("translatedText")
        if not translated:
            raise TranslationProviderError(f"{self.name} returned no translation")
        return translated


class GoogleTranslateProvider(TranslationProvider):
    """Public ``translate_a/single`` endpoint."""

    name = "google"

    async def translate(self, text: str, target: str, source: str = "auto") -> str:
        data = await self._request(
            "GET",
            "/translate_a/single",
            params={"client": "gtx", "sl": source, "tl": target, "dt": "t", "q": text},
        )
        # [[["translated", "original", ...], ...], ...]
        try:
            segments = data[0]
            translated = "".join(segment[0] for segment in segments if segment[0])
        except (IndexError, KeyError, TypeError) as e:
            raise TranslationProviderError(f"{self.name} returned an unexpected body") from e

        if not translated:
            raise TranslationProviderError(f"{self.name} returned no translation")
        return translated


PROVIDER_TYPES: dict[str, type[TranslationProvider]] = {
    "libre": LibreTranslateProvider,
    "google": GoogleTranslateProvider,
}


def build_providers(
    specs: list[str] | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[TranslationProvider]:
    """Build providers from ``kind:base_url`` entries, keeping their order."""
    providers: list[TranslationProvider] = []
    for spec in specs if specs is not None else settings.TRANSLATION_PROVIDERS:
        kind, _, base_url = spec.partition(":")
        provider_type = PROVIDER_TYPES.get(kind)
        if provider_type is None or not base_url:
            raise ValueError(f"Invalid translation provider spec: '{spec}'")
        providers.append(provider_type(base_url, client=client))
    return providers


class TranslationGateway:
    """Translate text through an ordered list of providers.

    Providers are tried one after another; the first one that returns a
    translation wins. When every provider fails the original text is
    returned, so a translation problem never blocks sending or rendering.
    """

    def __init__(
        self,
        providers: list[TranslationProvider],
        canonical: Language | None = None,
    ):
        self.providers = providers
        self.canonical = canonical or Language.canonical()

    async def translate(self, text: str, target: Language | str) -> str:
        """Translate text into the target language, falling back to the input."""
        if not text:
            return ""

        target = Language(target)
        if target == self.canonical:
            return text

        return await self._translate(text, target)

    async def to_canonical(self, text: str, source: Language | str) -> str:
        """Translate authored text into the storage language."""
        if not text:
            return ""

        if Language(source) == self.canonical:
            return text

        return await self._translate(text, self.canonical)

    async def _translate(self, text: str, target: Language) -> str:
        for provider in self.providers:
            with tracer.start_as_current_span("translation.provider") as span:
                span.set_attribute("translation.provider", provider.name)
                span.set_attribute("translation.target", target.value)
                try:
                    return await provider.translate(text, target.value)
                except TranslationProviderError as e:
                    span.set_attribute("translation.failed", True)
                    logger.warning(f"Translation service failed: {e}")
                except Exception as e:
                    span.set_attribute("translation.failed", True)
                    logger.warning(f"Translation service {provider.name} raised: {e!r}")

        logger.error(
            f"All translation services failed for target '{target.value}', "
            "using original text"
        )
        return text
