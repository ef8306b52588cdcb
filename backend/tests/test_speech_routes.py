"""Tests for the speech routes."""

import httpx
import pytest

from app.api.deps import get_speech_client
from app.main import app
from app.services.speech import HuggingFaceSpeechClient


def _install(handler, api_key: str | None = "hf-key") -> None:
    client = HuggingFaceSpeechClient(
        api_key=api_key,
        stt_model="stt",
        tts_model="tts",
        transport=httpx.MockTransport(handler),
    )
    app.dependency_overrides[get_speech_client] = lambda: client


async def test_speech_to_text(client):
    _install(lambda request: httpx.Response(200, json={"text": "hello"}))

    response = await client.post(
        "/speech/speech-to-text",
        files={"audio": ("clip.webm", b"\x1a\x45\xdf\xa3", "audio/webm")},
    )

    assert response.status_code == 200
    assert response.json() == {"text": "hello"}


async def test_text_to_speech_streams_audio(client):
    _install(lambda request: httpx.Response(200, content=b"RIFFWAVE"))

    response = await client.post("/speech/text-to-speech", json={"text": "Hello"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.content == b"RIFFWAVE"


@pytest.mark.parametrize(
    ("path", "kwargs"),
    [
        ("/speech/text-to-speech", {"json": {"text": "Hello"}}),
        ("/speech/speech-to-text", {"files": {"audio": ("a.wav", b"x", "audio/wav")}}),
    ],
)
async def test_unconfigured_speech_is_503(client, path, kwargs):
    _install(lambda request: httpx.Response(200), api_key=None)

    response = await client.post(path, **kwargs)

    assert response.status_code == 503
    assert response.json() == {"error": "Hugging Face API key not configured"}


async def test_tts_provider_failure_is_502(client):
    _install(lambda request: httpx.Response(500, text="boom"))

    response = await client.post("/speech/text-to-speech", json={"text": "Hello"})

    assert response.status_code == 502
    assert response.json()["providerStatus"] == 500
