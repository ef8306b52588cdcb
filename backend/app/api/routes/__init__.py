"""API routes package."""

from app.api.routes import (
    auth,
    chat,
    folders,
    grade,
    notes,
    speech,
    study,
)

__all__ = [
    "auth",
    "chat",
    "folders",
    "grade",
    "notes",
    "speech",
    "study",
]
