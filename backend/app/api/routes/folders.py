"""Folder (subject) CRUD routes."""

from uuid import UUID

from fastapi import APIRouter, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AppSettings, CurrentUser, DbSession, get_user_resource_or_404
from app.db.models import Folder, User
from app.errors import FolderLimitReached
from app.schemas.folders import FolderCreate, FolderRead, FolderUpdate

router = APIRouter(prefix="/folders", tags=["folders"])


async def ensure_folder_capacity(db: AsyncSession, user_id: UUID, limit: int) -> None:
    """
    Reject creation once the user owns `limit` folders.

    The user row is locked first so concurrent creates for the same user
    count one at a time; the lock is held until the caller commits.
    """
    await db.execute(select(User.id).where(User.id == user_id).with_for_update())
    result = await db.execute(
        select(func.count()).select_from(Folder).where(Folder.user_id == user_id)
    )
    if (result.scalar() or 0) >= limit:
        raise FolderLimitReached(f"Maximum folder limit ({limit}) reached")


@router.get("/", response_model=list[FolderRead])
async def list_folders(
    current_user: CurrentUser,
    db: DbSession,
) -> list[FolderRead]:
    """List the current user's folders, oldest first."""
    result = await db.execute(
        select(Folder).where(Folder.user_id == current_user.id).order_by(Folder.created_at.asc())
    )
    return [FolderRead.model_validate(f) for f in result.scalars()]


@router.post("/", response_model=FolderRead, status_code=status.HTTP_201_CREATED)
async def create_folder(
    data: FolderCreate,
    current_user: CurrentUser,
    db: DbSession,
    app_settings: AppSettings,
) -> FolderRead:
    """Create a folder, subject to the per-user folder limit."""
    await ensure_folder_capacity(db, current_user.id, app_settings.max_folders_per_user)
    folder = Folder(user_id=current_user.id, name=data.name)
    db.add(folder)
    await db.commit()
    await db.refresh(folder)
    return FolderRead.model_validate(folder)


@router.get("/{folder_id}", response_model=FolderRead)
async def get_folder(
    folder_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> FolderRead:
    """Get a specific folder by ID."""
    folder = await get_user_resource_or_404(db, Folder, folder_id, current_user.id)
    return FolderRead.model_validate(folder)


@router.patch("/{folder_id}", response_model=FolderRead)
async def update_folder(
    folder_id: UUID,
    data: FolderUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> FolderRead:
    """Rename a folder."""
    folder = await get_user_resource_or_404(db, Folder, folder_id, current_user.id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(folder, key, value)
    await db.commit()
    await db.refresh(folder)
    return FolderRead.model_validate(folder)


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(
    folder_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Delete a folder and every note in it."""
    folder = await get_user_resource_or_404(db, Folder, folder_id, current_user.id)
    await db.delete(folder)
    await db.commit()
