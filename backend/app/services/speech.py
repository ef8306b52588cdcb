"""Speech-to-text and text-to-speech through the Hugging Face inference API."""

import logging

import httpx

from app.config import Settings
from app.errors import ClientInputError, ProviderTransportError, ProviderUnavailable

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Hugging Face API key not configured"


class HuggingFaceSpeechClient:
    """Thin pass-through to hosted STT/TTS models."""

    def __init__(
        self,
        api_key: str | None,
        stt_model: str,
        tts_model: str,
        base_url: str = "https://api-inference.huggingface.co/models",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.stt_model = stt_model
        self.tts_model = tts_model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "HuggingFaceSpeechClient":
        return cls(
            api_key=settings.hf_api_key,
            stt_model=settings.hf_stt_model,
            tts_model=settings.hf_tts_model,
            base_url=settings.hf_inference_base_url,
            timeout=settings.hf_timeout_seconds,
        )

    def _require_key(self) -> str:
        if not self.api_key:
            raise ProviderUnavailable(NOT_CONFIGURED)
        return self.api_key

    async def _post(self, model: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                return await client.post(f"{self.base_url}/{model}", **kwargs)
            except httpx.HTTPError as e:
                logger.error("Hugging Face request to %s failed: %s", model, str(e))
                raise ProviderTransportError("Speech provider request failed") from e

    async def transcribe(self, audio: bytes, content_type: str | None = None) -> str:
        """Return the transcript for raw audio bytes."""
        api_key = self._require_key()
        if not audio:
            raise ClientInputError("Audio file is required")

        response = await self._post(
            self.stt_model,
            content=audio,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": content_type or "audio/webm",
            },
        )
        if response.is_error:
            logger.error("HF STT error: %d %s", response.status_code, response.text)
            raise ProviderTransportError("Failed to transcribe audio")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderTransportError("Failed to transcribe audio") from e
        return _transcript_text(data).strip()

    async def synthesize(self, text: str) -> bytes:
        """Return synthesized audio bytes for `text`."""
        api_key = self._require_key()
        if not text or not text.strip():
            raise ClientInputError("Text is required for TTS")

        response = await self._post(
            self.tts_model,
            json={"inputs": text},
            headers={"Authorization": f"Bearer {api_key}"},
        )
        if response.is_error:
            logger.error("HF TTS error: %d %s", response.status_code, response.text)
            raise ProviderTransportError(
                "Failed to generate speech audio from Hugging Face.",
                providerStatus=response.status_code,
                providerMessage=response.text,
            )
        return response.content


def _transcript_text(data: object) -> str:
    """Models answer with a string, ``{"text"}`` or ``[{"text"}]``."""
    if isinstance(data, str):
        return data
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return str(data[0].get("text") or "")
    if isinstance(data, dict):
        return str(data.get("text") or "")
    return ""
