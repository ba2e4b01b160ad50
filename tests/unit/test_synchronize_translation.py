"""Unit tests for the translation gateway and providers."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from vocoder_sync.synchronize.diff import ChangeSet, ValueChange
from vocoder_sync.synchronize.exceptions import TranslationError
from vocoder_sync.synchronize.translation import (
    HttpTranslationProvider,
    MockTranslationProvider,
    TranslationGateway,
    mock_translation,
    source_text,
)


def test_mock_translation_prefixes_upper_case_locale() -> None:
    """Mock translations are the source value behind the bracketed locale."""
    assert mock_translation("Hi", "pt-br") == "[PT-BR] Hi"


@pytest.mark.asyncio
async def test_gateway_with_mock_provider_translates_added_keys() -> None:
    """One added key is translated into every target locale."""
    gateway = TranslationGateway(MockTranslationProvider())
    change_set = ChangeSet(added={"greeting": "Hi"})

    result = await gateway.translate(change_set, api_key="key", target_locales=["es", "fr"])

    assert result == {"es": {"greeting": "[ES] Hi"}, "fr": {"greeting": "[FR] Hi"}}


@pytest.mark.asyncio
async def test_gateway_translates_new_values_and_skips_deleted_keys() -> None:
    """Updated keys use their new value and deleted keys never appear."""
    gateway = TranslationGateway(MockTranslationProvider())
    change_set = ChangeSet(added={"a": "A"}, updated={"b": ValueChange(old="old", new="new")}, deleted={"c": "C"})

    result = await gateway.translate(change_set, api_key="", target_locales=("de",))

    assert result == {"de": {"a": "[DE] A", "b": "[DE] new"}}


@pytest.mark.parametrize(
    "value,expected",
    [
        pytest.param("Hello", "Hello", id="string"),
        pytest.param(True, "true", id="boolean"),
        pytest.param(None, "null", id="null"),
        pytest.param(3, "3", id="number"),
        pytest.param(["a", "b"], '["a", "b"]', id="list"),
        pytest.param({}, "{}", id="empty-object"),
        pytest.param(["caf\u00e9"], '["caf\u00e9"]', id="non-ascii"),
    ],
)
def test_source_text_uses_json_for_non_string_values(value: object, expected: str) -> None:
    """Non-string leaves are sent as their JSON text, not as Python reprs."""
    assert source_text(value) == expected


@pytest.mark.asyncio
async def test_gateway_translates_non_string_values_as_json() -> None:
    """Booleans, lists and nulls reach the provider in JSON spelling."""
    gateway = TranslationGateway(MockTranslationProvider())
    change_set = ChangeSet(added={"flag": True, "items": ["a", "b"], "none": None})

    result = await gateway.translate(change_set, api_key="", target_locales=["fr"])

    assert result == {"fr": {"flag": "[FR] true", "items": '[FR] ["a", "b"]', "none": "[FR] null"}}


@pytest.mark.asyncio
async def test_gateway_sends_one_batch_for_all_keys_and_locales() -> None:
    """All keys and locales go to the provider in a single call."""
    provider = AsyncMock()
    provider.translate_batch.return_value = {"es": {"a": "a-es", "b": "b-es"}, "fr": {"a": "a-fr", "b": "b-fr"}}
    gateway = TranslationGateway(provider)

    result = await gateway.translate(ChangeSet(added={"b": "B", "a": "A"}), api_key="key", target_locales=["es", "fr"], source_locale="en")

    provider.translate_batch.assert_awaited_once_with({"a": "A", "b": "B"}, "en", ["es", "fr"], "key")
    assert result["fr"] == {"a": "a-fr", "b": "b-fr"}


@pytest.mark.asyncio
async def test_gateway_skips_provider_when_nothing_is_translatable() -> None:
    """A deletion-only change set returns empty translations without calling the provider."""
    provider = AsyncMock()
    gateway = TranslationGateway(provider)

    result = await gateway.translate(ChangeSet(deleted={"gone": "x"}), api_key="key", target_locales=["es"])

    assert result == {"es": {}}
    provider.translate_batch.assert_not_awaited()


@pytest.mark.asyncio
async def test_gateway_wraps_unexpected_provider_errors() -> None:
    """Any provider exception surfaces as a TranslationError."""
    provider = AsyncMock()
    provider.translate_batch.side_effect = RuntimeError("boom")
    gateway = TranslationGateway(provider)

    with pytest.raises(TranslationError, match="RuntimeError: boom"):
        await gateway.translate(ChangeSet(added={"a": "A"}), api_key="key", target_locales=["es"])


@pytest.mark.asyncio
async def test_gateway_rejects_incomplete_translations() -> None:
    """A provider that leaves keys untranslated is an error."""
    provider = AsyncMock()
    provider.translate_batch.return_value = {"es": {"a": "a-es"}}
    gateway = TranslationGateway(provider)

    with pytest.raises(TranslationError) as exc_info:
        await gateway.translate(ChangeSet(added={"a": "A", "b": "B"}), api_key="key", target_locales=["es"])
    assert exc_info.value.locales == ["es"]


@pytest.mark.asyncio
async def test_http_provider_posts_batch_and_parses_translations() -> None:
    """The HTTP provider sends a bearer-authenticated batch and returns the translations."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"translations": {"es": {"greeting": "Hola"}}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = HttpTranslationProvider("https://translate.example.com/", client=client)
        result = await provider.translate_batch({"greeting": "Hi"}, "en", ["es"], "secret")

    assert result == {"es": {"greeting": "Hola"}}
    assert len(requests) == 1
    assert str(requests[0].url) == "https://translate.example.com/translate"
    assert requests[0].headers["Authorization"] == "Bearer secret"
    assert json.loads(requests[0].content) == {"sourceLocale": "en", "targetLocales": ["es"], "strings": {"greeting": "Hi"}}


@pytest.mark.asyncio
async def test_http_provider_requires_api_key() -> None:
    """An empty API key fails before any request is made."""
    provider = HttpTranslationProvider("https://translate.example.com")
    with pytest.raises(TranslationError, match="No project API key"):
        await provider.translate_batch({"a": "A"}, "en", ["es"], "")


@pytest.mark.asyncio
async def test_http_provider_maps_http_errors() -> None:
    """A non-success HTTP status becomes a TranslationError."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "down"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = HttpTranslationProvider("https://translate.example.com", client=client)
        with pytest.raises(TranslationError, match="HTTP 503"):
            await provider.translate_batch({"a": "A"}, "en", ["es"], "secret")


@pytest.mark.asyncio
async def test_http_provider_rejects_missing_locales() -> None:
    """A response without every requested locale is an error naming the missing ones."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"translations": {"es": {"a": "A-es"}}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = HttpTranslationProvider("https://translate.example.com", client=client)
        with pytest.raises(TranslationError) as exc_info:
            await provider.translate_batch({"a": "A"}, "en", ["es", "fr"], "secret")

    assert exc_info.value.locales == ["fr"]


@pytest.mark.asyncio
async def test_http_provider_rejects_invalid_json() -> None:
    """A response body that is not JSON is an error."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = HttpTranslationProvider("https://translate.example.com", client=client)
        with pytest.raises(TranslationError, match="invalid JSON"):
            await provider.translate_batch({"a": "A"}, "en", ["es"], "secret")
