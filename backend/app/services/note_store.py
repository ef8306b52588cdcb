"""Read access to a user's folders and notes for the retrieval pipeline."""

from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Folder, Note
from app.services.retriever import NoteSource


class NoteStore(Protocol):
    """Narrow interface the tutor, study and chat code depends on."""

    async def get_folder(self, user_id: UUID, folder_id: UUID) -> Folder | None: ...

    async def fetch_notes_by_folder(self, user_id: UUID, folder_id: UUID) -> list[NoteSource]: ...


class SqlNoteStore:
    """NoteStore backed by the async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_folder(self, user_id: UUID, folder_id: UUID) -> Folder | None:
        result = await self.db.execute(
            select(Folder).where(Folder.id == folder_id, Folder.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def fetch_notes_by_folder(self, user_id: UUID, folder_id: UUID) -> list[NoteSource]:
        # Creation order keeps chunk ordering (and so tie-breaking) stable
        result = await self.db.execute(
            select(Note.title, Note.content)
            .where(Note.user_id == user_id, Note.folder_id == folder_id)
            .order_by(Note.created_at.asc(), Note.id.asc())
        )
        return [NoteSource(title=row.title, content=row.content) for row in result]
