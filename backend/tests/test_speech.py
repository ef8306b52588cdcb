"""Tests for the Hugging Face speech adapter."""

import json

import httpx
import pytest

from app.errors import ClientInputError, ProviderTransportError, ProviderUnavailable
from app.services.speech import HuggingFaceSpeechClient


def _client(handler, api_key: str | None = "hf-key") -> HuggingFaceSpeechClient:
    return HuggingFaceSpeechClient(
        api_key=api_key,
        stt_model="stt-model",
        tts_model="tts-model",
        base_url="https://hf.test/models/",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize(
    "body",
    [{"text": " hello there "}, [{"text": "hello there"}], "hello there"],
)
async def test_transcribe_accepts_every_response_shape(body):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["type"] = request.headers["content-type"]
        return httpx.Response(200, json=body)

    text = await _client(handler).transcribe(b"RIFF....", "audio/wav")

    assert text == "hello there"
    assert seen == {
        "url": "https://hf.test/models/stt-model",
        "auth": "Bearer hf-key",
        "type": "audio/wav",
    }


async def test_transcribe_error_status():
    client = _client(lambda request: httpx.Response(500, text="model loading"))

    with pytest.raises(ProviderTransportError, match="Failed to transcribe audio"):
        await client.transcribe(b"audio")


async def test_empty_audio_is_client_error():
    with pytest.raises(ClientInputError):
        await _client(lambda request: httpx.Response(200)).transcribe(b"")


async def test_missing_key_is_unavailable():
    with pytest.raises(ProviderUnavailable, match="Hugging Face API key not configured"):
        await _client(lambda request: httpx.Response(200), api_key=None).synthesize("hi")


async def test_synthesize_returns_audio_bytes():
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"inputs": "Read this aloud."}
        return httpx.Response(200, content=b"WAVDATA")

    assert await _client(handler).synthesize("Read this aloud.") == b"WAVDATA"


async def test_synthesize_error_carries_provider_detail():
    client = _client(lambda request: httpx.Response(503, text="busy"))

    with pytest.raises(ProviderTransportError) as exc_info:
        await client.synthesize("hi")

    assert exc_info.value.extra == {"providerStatus": 503, "providerMessage": "busy"}


async def test_network_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(ProviderTransportError):
        await _client(handler).synthesize("hi")
