"""Notes tutor chat route."""

import logging

from fastapi import APIRouter

from app.api.deps import AppSettings, CurrentUser, Notes, Provider, load_subject_notes
from app.schemas.chat import ChatRequest, ChatResponse
from app.services.tutor_service import TutorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    data: ChatRequest,
    current_user: CurrentUser,
    store: Notes,
    provider: Provider,
    app_settings: AppSettings,
) -> ChatResponse:
    """
    Answer a question using only the notes in one folder.

    The reply carries a confidence label unless it is a refusal or the
    canned reply shown when no model is configured.
    """
    subject, notes = await load_subject_notes(
        store, current_user.id, data.folder_id, data.folder_name
    )
    logger.info("Chat for user %s on %r with %d notes", current_user.id, subject, len(notes))

    tutor = TutorService(provider, app_settings)
    return await tutor.reply(data.message, notes, subject, data.context_notes)
