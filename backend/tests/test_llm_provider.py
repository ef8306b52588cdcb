"""Tests for the Anthropic provider wrapper and JSON extraction."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from anthropic import APIConnectionError, APIStatusError

from app.errors import MalformedGenerativeOutput, ProviderTransportError
from app.services.llm_provider import AnthropicProvider, create_generative_provider, parse_json_object


def _message(*texts: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=t) for t in texts])


def _status_error(code: int) -> APIStatusError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(code, request=request, json={"error": {"message": "boom"}})
    return APIStatusError("boom", response=response, body=None)


def _provider(create: AsyncMock, max_attempts: int = 3) -> AnthropicProvider:
    client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return AnthropicProvider("key", "model", 100, max_attempts=max_attempts, client=client)


def test_parse_json_object_tolerates_fences_and_prose():
    assert parse_json_object('Sure!\n```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_object('prefix {"a": {"b": 2}} suffix') == {"a": {"b": 2}}


@pytest.mark.parametrize("raw", [None, "", "no braces", "{broken", "} backwards {"])
def test_parse_json_object_rejects_garbage(raw):
    with pytest.raises(MalformedGenerativeOutput):
        parse_json_object(raw)


def test_no_api_key_means_no_provider():
    settings = SimpleNamespace(anthropic_api_key=None)
    assert create_generative_provider(settings) is None


async def test_complete_joins_text_blocks():
    create = AsyncMock(return_value=_message("Hello ", "world"))
    provider = _provider(create)

    assert await provider.complete("system", [{"role": "user", "content": "hi"}]) == "Hello world"
    assert create.await_args.kwargs["system"] == "system"


@patch("app.services.llm_provider.asyncio.sleep", new_callable=AsyncMock)
async def test_transient_errors_are_retried(sleep):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    create = AsyncMock(side_effect=[APIConnectionError(request=request), _message("ok")])

    assert await _provider(create).complete("s", []) == "ok"
    assert create.await_count == 2
    sleep.assert_awaited_once()


@patch("app.services.llm_provider.asyncio.sleep", new_callable=AsyncMock)
async def test_retries_are_bounded(sleep):
    create = AsyncMock(side_effect=_status_error(529))

    with pytest.raises(ProviderTransportError) as exc_info:
        await _provider(create, max_attempts=2).complete("s", [])

    assert create.await_count == 2
    assert exc_info.value.provider_status == 529


async def test_client_errors_are_not_retried():
    create = AsyncMock(side_effect=_status_error(400))

    with pytest.raises(ProviderTransportError):
        await _provider(create).complete("s", [])
    assert create.await_count == 1
