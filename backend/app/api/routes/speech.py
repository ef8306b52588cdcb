"""Speech-to-text and text-to-speech routes."""

from typing import Annotated

from fastapi import APIRouter, File, Response, UploadFile

from app.api.deps import CurrentUser, SpeechClient
from app.schemas.speech import TextToSpeechRequest, TranscriptResponse

router = APIRouter(prefix="/speech", tags=["speech"])


@router.post("/speech-to-text", response_model=TranscriptResponse)
async def speech_to_text(
    audio: Annotated[UploadFile, File()],
    current_user: CurrentUser,
    client: SpeechClient,
) -> TranscriptResponse:
    """Transcribe an uploaded recording."""
    content = await audio.read()
    text = await client.transcribe(content, audio.content_type)
    return TranscriptResponse(text=text)


@router.post("/text-to-speech")
async def text_to_speech(
    data: TextToSpeechRequest,
    current_user: CurrentUser,
    client: SpeechClient,
) -> Response:
    """Synthesize `text` and return the audio bytes."""
    audio = await client.synthesize(data.text)
    return Response(content=audio, media_type="audio/wav")
