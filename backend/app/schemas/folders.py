"""Folder (subject) schemas."""

from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class FolderCreate(BaseSchema):
    """Schema for creating a folder."""

    name: str = Field(..., min_length=1, max_length=255)


class FolderUpdate(BaseSchema):
    """Schema for renaming a folder."""

    name: str | None = Field(None, min_length=1, max_length=255)


class FolderRead(BaseSchema, IDMixin, TimestampMixin):
    """Schema for reading folder data."""

    user_id: UUID
    name: str
