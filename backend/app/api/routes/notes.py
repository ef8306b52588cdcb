"""Notes CRUD and upload routes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Form, UploadFile, status
from sqlalchemy import or_, select

from app.api.deps import AppSettings, CurrentUser, DbSession, get_user_resource_or_404
from app.db.models import Folder, Note
from app.errors import ClientInputError
from app.schemas.notes import NoteCreate, NoteRead, NoteUpdate
from app.services.document_parser import document_parser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("/", response_model=list[NoteRead])
async def list_notes(
    current_user: CurrentUser,
    db: DbSession,
    folder_id: UUID | None = None,
    q: str | None = None,
) -> list[NoteRead]:
    """
    List notes for the current user, most recently updated first.

    Filters:
    - folder_id: Only notes in this folder
    - q: Case-insensitive search in title and content
    """
    query = select(Note).where(Note.user_id == current_user.id)

    if folder_id:
        query = query.where(Note.folder_id == folder_id)
    if q:
        search_pattern = f"%{q}%"
        query = query.where(
            or_(
                Note.title.ilike(search_pattern),
                Note.content.ilike(search_pattern),
            )
        )

    query = query.order_by(Note.updated_at.desc())

    result = await db.execute(query)
    return [NoteRead.model_validate(n) for n in result.scalars()]


@router.post("/", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(
    data: NoteCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> NoteRead:
    """Create a note in one of the user's folders."""
    await get_user_resource_or_404(db, Folder, data.folder_id, current_user.id)

    new_note = Note(
        user_id=current_user.id,
        **data.model_dump(),
    )
    db.add(new_note)
    await db.commit()
    await db.refresh(new_note)
    return NoteRead.model_validate(new_note)


@router.post("/upload", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def upload_note(
    current_user: CurrentUser,
    db: DbSession,
    app_settings: AppSettings,
    file: Annotated[UploadFile, File()],
    folder_id: Annotated[UUID, Form()],
) -> NoteRead:
    """
    Create a note from an uploaded PDF or TXT file.

    The filename becomes the note title.
    """
    await get_user_resource_or_404(db, Folder, folder_id, current_user.id)

    data = await file.read()
    if not data:
        raise ClientInputError("File and folder_id are required")
    if len(data) > app_settings.max_upload_size_bytes:
        raise ClientInputError("File is too large")

    filename = file.filename or "Untitled"
    content = document_parser.extract_text(data, filename, file.content_type)

    note = Note(
        user_id=current_user.id,
        folder_id=folder_id,
        title=filename[:255],
        content=content,
    )
    db.add(note)
    await db.commit()
    await db.refresh(note)

    logger.info("Created note %s from upload %s", note.id, filename)
    return NoteRead.model_validate(note)


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(
    note_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> NoteRead:
    """Get a specific note by ID."""
    note = await get_user_resource_or_404(db, Note, note_id, current_user.id)
    return NoteRead.model_validate(note)


@router.patch("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: UUID,
    data: NoteUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> NoteRead:
    """Update a note's title or content."""
    note = await get_user_resource_or_404(db, Note, note_id, current_user.id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(note, key, value)
    await db.commit()
    await db.refresh(note)
    return NoteRead.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Delete a note."""
    note = await get_user_resource_or_404(db, Note, note_id, current_user.id)
    await db.delete(note)
    await db.commit()
