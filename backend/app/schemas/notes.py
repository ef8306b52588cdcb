"""Note schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema


class NoteBase(BaseSchema):
    """Base note schema."""

    title: str | None = Field(default=None, max_length=255)
    content: str | None = None


class NoteCreate(NoteBase):
    """Schema for creating a note inside a folder."""

    folder_id: UUID


class NoteRead(NoteBase):
    """Schema for reading note data."""

    id: UUID
    user_id: UUID
    folder_id: UUID
    created_at: datetime
    updated_at: datetime


class NoteUpdate(BaseSchema):
    """Schema for updating a note. All fields optional."""

    title: str | None = Field(None, max_length=255)
    content: str | None = None
