"""Obtains translated values for the keys of a change set."""

import json
from typing import Any, Protocol

import httpx
import structlog

from vocoder_sync.synchronize.diff import ChangeSet
from vocoder_sync.synchronize.exceptions import TranslationError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

TranslationResult = dict[str, dict[str, str]]
"""Mapping of locale to mapping of flattened key to translated value."""

NO_TRANSLATION_SERVICE_ERROR = "No translation service configured"


class TranslationProvider(Protocol):
    """Protocol for services that translate a batch of strings into several locales."""

    async def translate_batch(
        self,
        strings: dict[str, str],
        source_locale: str,
        target_locales: list[str],
        api_key: str,
    ) -> TranslationResult:
        """Translate every string into every target locale in one call.

        Args:
            strings: Flattened key to source string
            source_locale: Locale of the source strings
            target_locales: Locales to translate into
            api_key: Project API key for the translation service

        Returns:
            Translations keyed by locale, then by key

        Raises:
            TranslationError: If the batch could not be translated
        """
        ...


def source_text(value: Any) -> str:
    """Text sent for translation: strings as-is, other JSON values as their JSON text, e.g. true or ["a", "b"]."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def mock_translation(value: str, locale: str) -> str:
    """Stub translation: the value prefixed with the bracketed upper-case locale."""
    return f"[{locale.upper()}] {value}"


class MockTranslationProvider:
    """Translation provider stub producing placeholder translations, enabled with TRANSLATION_MOCK.

    A missing API key is tolerated here; only the HTTP provider treats it as a
    hard failure.
    """

    async def translate_batch(
        self,
        strings: dict[str, str],
        source_locale: str,
        target_locales: list[str],
        api_key: str,
    ) -> TranslationResult:
        """Return mock translations for every key and locale."""
        if not api_key:
            logger.warning("No project API key provided, using mock translations")
        logger.info("Mocking translation API call", source_locale=source_locale, target_locales=target_locales, string_count=len(strings))
        return {locale: {key: mock_translation(value, locale) for key, value in strings.items()} for locale in target_locales}


class UnconfiguredTranslationProvider:
    """Provider used when neither a translation service nor mock translations are configured."""

    async def translate_batch(
        self,
        strings: dict[str, str],
        source_locale: str,
        target_locales: list[str],
        api_key: str,
    ) -> TranslationResult:
        """Always raises TranslationError."""
        raise TranslationError(NO_TRANSLATION_SERVICE_ERROR, target_locales)


class HttpTranslationProvider:
    """Translation provider backed by the hosted translation API."""

    def __init__(self, base_url: str, timeout: float = 30.0, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the provider.

        Args:
            base_url: Root URL of the translation service
            timeout: Request timeout in seconds
            client: Optional pre-built httpx client, mainly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    def _parse_response(self, data: Any, target_locales: list[str]) -> TranslationResult:
        translations = data.get("translations") if isinstance(data, dict) else None
        if not isinstance(translations, dict):
            raise TranslationError("Translation service response has no 'translations' object", target_locales)

        missing_locales = [locale for locale in target_locales if not isinstance(translations.get(locale), dict)]
        if missing_locales:
            raise TranslationError(f"Translation service returned no translations for {', '.join(missing_locales)}", missing_locales)

        result: TranslationResult = {}
        for locale in target_locales:
            result[locale] = {str(key): str(value) for key, value in translations[locale].items()}
        return result

    async def translate_batch(
        self,
        strings: dict[str, str],
        source_locale: str,
        target_locales: list[str],
        api_key: str,
    ) -> TranslationResult:
        """POST the batch to the translation service and return its translations."""
        if not api_key:
            raise TranslationError("No project API key configured for the translation service", target_locales)

        payload = {"sourceLocale": source_locale, "targetLocales": target_locales, "strings": strings}
        headers = {"Authorization": f"Bearer {api_key}", "Accept": "application/json"}
        url = f"{self.base_url}/translate"
        logger.info("Sending batch to translation service", url=url, string_count=len(strings), target_locales=target_locales)

        try:
            if self.client is not None:
                response = await self.client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise TranslationError(f"Translation service returned HTTP {exc.response.status_code}", target_locales) from exc
        except httpx.HTTPError as exc:
            raise TranslationError(f"Translation service request failed: {exc}", target_locales) from exc
        except ValueError as exc:
            raise TranslationError("Translation service returned invalid JSON", target_locales) from exc

        return self._parse_response(data, target_locales)


class TranslationGateway:
    """Sends the translatable part of a change set to a translation provider."""

    def __init__(self, provider: TranslationProvider) -> None:
        """Initialize the gateway with the provider that does the actual translating."""
        self.provider = provider

    async def translate(
        self,
        change_set: ChangeSet,
        api_key: str,
        target_locales: list[str] | tuple[str, ...],
        source_locale: str = "en",
    ) -> TranslationResult:
        """Translate added and updated keys into every target locale.

        Deleted keys never appear in the result. All keys and locales go to
        the provider as a single batch.

        Raises:
            TranslationError: If the provider fails or returns something unusable.
        """
        locales = list(target_locales)
        strings = {key: source_text(value) for key, value in change_set.translatable().items()}
        logger.info(
            "Sending changes to translation API",
            project_api_key="***" if api_key else "missing",
            target_locales=locales,
            **change_set.counts(),
        )
        if not strings:
            return {locale: {} for locale in locales}

        try:
            translations = await self.provider.translate_batch(strings, source_locale, locales, api_key)
        except TranslationError:
            raise
        except Exception as exc:
            raise TranslationError(f"Translation provider raised {type(exc).__name__}: {exc}", locales) from exc

        result: TranslationResult = {}
        for locale in locales:
            locale_translations = translations.get(locale, {})
            # Only keys we asked for, in source order
            result[locale] = {key: locale_translations[key] for key in strings if key in locale_translations}
            missing = len(strings) - len(result[locale])
            if missing:
                raise TranslationError(f"Translation provider omitted {missing} strings for locale {locale}", [locale])

        logger.info("Translation completed", locale_count=len(result), string_count=len(strings))
        return result
