"""Pydantic schemas for the notes tutor chat."""

from typing import Literal
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, RequestSchema
from app.services.scoring import ConfidenceLabel


class ConversationTurn(BaseSchema):
    """One prior message. The frontend labels tutor messages 'model'."""

    role: Literal["user", "model", "assistant"]
    content: str = ""

    @property
    def is_model(self) -> bool:
        return self.role in ("model", "assistant")


class ChatRequest(RequestSchema):
    """Question about the notes of one folder."""

    message: str = Field(..., min_length=1, max_length=10000)
    folder_id: UUID = Field(..., alias="folderId")
    folder_name: str | None = Field(None, alias="folderName")
    context_notes: list[ConversationTurn] = Field(default_factory=list, alias="contextNotes")


class ChatResponse(BaseSchema):
    """Tutor reply, ready to display or read aloud."""

    reply: str
    confidence: ConfidenceLabel | None = None
