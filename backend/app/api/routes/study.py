"""Study mode route: practice exams built from a folder's notes."""

from fastapi import APIRouter

from app.api.deps import AppSettings, CurrentUser, Notes, Provider, load_subject_notes
from app.schemas.study import StudyRequest, StudySet
from app.services.study_generator import build_study_set, select_study_generator

router = APIRouter(prefix="/study", tags=["study"])


@router.post("", response_model=StudySet, response_model_exclude_none=True)
async def generate_study_set(
    data: StudyRequest,
    current_user: CurrentUser,
    store: Notes,
    provider: Provider,
    app_settings: AppSettings,
) -> StudySet:
    """
    Generate 5 MCQs and 3 short-answer questions for a folder.

    An empty folder returns an empty set with a message. Without a
    configured model the questions are templated from the notes.
    """
    subject, notes = await load_subject_notes(
        store, current_user.id, data.folder_id, data.folder_name
    )
    generator = select_study_generator(
        provider,
        template_max_chunks=app_settings.study_template_max_chunks,
        max_chars=app_settings.chunk_max_chars,
        max_context_chars=app_settings.study_context_max_chars,
    )
    return await build_study_set(subject, notes, generator)
