"""Pydantic schemas for API request/response validation."""

from app.schemas.auth import GoogleAuthRequest, TokenResponse
from app.schemas.chat import ChatRequest, ChatResponse, ConversationTurn
from app.schemas.folders import FolderCreate, FolderRead, FolderUpdate
from app.schemas.grade import GradeRequest, GradeResult
from app.schemas.notes import NoteCreate, NoteRead, NoteUpdate
from app.schemas.speech import TextToSpeechRequest, TranscriptResponse
from app.schemas.study import StudyRequest, StudySet
from app.schemas.user import UserRead

__all__ = [
    # Auth
    "GoogleAuthRequest",
    "TokenResponse",
    "UserRead",
    # Folders & notes
    "FolderCreate",
    "FolderRead",
    "FolderUpdate",
    "NoteCreate",
    "NoteRead",
    "NoteUpdate",
    # Tutor
    "ChatRequest",
    "ChatResponse",
    "ConversationTurn",
    "StudyRequest",
    "StudySet",
    "GradeRequest",
    "GradeResult",
    # Speech
    "TextToSpeechRequest",
    "TranscriptResponse",
]
