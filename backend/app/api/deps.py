"""
FastAPI Dependencies for authentication and service wiring.

Key patterns:
1. get_current_user: Extracts and validates JWT, returns User object
2. User-scoped queries: every lookup filters by user_id at the SQL level
3. Providers and the note store are injected here, never imported as
   module globals, so tests can override them through
   `app.dependency_overrides`
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Header, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.db.models import User
from app.db.session import get_db
from app.services.llm_provider import GenerativeProvider, create_generative_provider
from app.services.grounding import DEFAULT_SUBJECT
from app.services.note_store import NoteStore, SqlNoteStore
from app.services.retriever import NoteSource
from app.services.speech import HuggingFaceSpeechClient

settings = get_settings()


# =============================================================================
# JWT UTILITIES
# =============================================================================


def create_access_token(user_id: UUID) -> str:
    """
    Create a JWT access token for a user.

    Payload holds only `sub` (user id) and `exp`; no profile data.
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "sub": str(user_id),
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID | None:
    """Return the user id of a valid token, None if invalid or expired."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        user_id_str = payload.get("sub")
        if user_id_str is None:
            return None
        return UUID(user_id_str)
    except (JWTError, ValueError):
        return None


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """
    Extract JWT token from request.

    The HttpOnly `access_token` cookie wins; otherwise an
    `Authorization: Bearer <token>` header is accepted.
    """
    if access_token:
        return access_token

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Validate JWT and return the current authenticated user.

    Raises 401 if the token is missing, invalid or expired, or the user no
    longer exists.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(token)
    if user_id is None:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def _shared_generative_provider() -> GenerativeProvider | None:
    return create_generative_provider(get_settings())


def get_generative_provider() -> GenerativeProvider | None:
    """The configured provider, or None when no API key is set."""
    return _shared_generative_provider()


def get_speech_client(
    app_settings: Annotated[Settings, Depends(get_app_settings)],
) -> HuggingFaceSpeechClient:
    return HuggingFaceSpeechClient.from_settings(app_settings)


def get_note_store(db: Annotated[AsyncSession, Depends(get_db)]) -> NoteStore:
    return SqlNoteStore(db)


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Provider = Annotated[GenerativeProvider | None, Depends(get_generative_provider)]
SpeechClient = Annotated[HuggingFaceSpeechClient, Depends(get_speech_client)]
Notes = Annotated[NoteStore, Depends(get_note_store)]


# =============================================================================
# QUERY HELPERS (enforce user scoping at query level)
# =============================================================================


async def get_user_resource_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    user_id: UUID,
):
    """
    Fetch a user-owned resource by ID, 404 if missing or owned by someone else.

        note = await get_user_resource_or_404(db, Note, note_id, current_user.id)
    """
    result = await db.execute(
        select(model).where(model.id == resource_id, model.user_id == user_id)
    )
    resource = result.scalar_one_or_none()

    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")

    return resource


async def load_subject_notes(
    store: NoteStore,
    user_id: UUID,
    folder_id: UUID,
    folder_name: str | None = None,
) -> tuple[str, list[NoteSource]]:
    """
    Resolve the subject name and notes of a user's folder.

    The client-supplied name wins, then the stored folder name.
    Raises 404 if the folder does not exist or belongs to someone else.
    """
    folder = await store.get_folder(user_id, folder_id)
    if folder is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder not found")
    notes = await store.fetch_notes_by_folder(user_id, folder_id)
    return folder_name or folder.name or DEFAULT_SUBJECT, notes
