"""Speech adapter schemas."""

from pydantic import Field

from app.schemas.base import BaseSchema


class TextToSpeechRequest(BaseSchema):
    text: str = Field(..., min_length=1, max_length=5000)


class TranscriptResponse(BaseSchema):
    text: str
