"""Short-answer grading route."""

from fastapi import APIRouter

from app.api.deps import CurrentUser, Provider
from app.errors import ProviderUnavailable
from app.schemas.grade import GradeRequest, GradeResult
from app.services.grader import grade_answer

router = APIRouter(prefix="/grade", tags=["grade"])


@router.post("", response_model=GradeResult)
async def grade(
    data: GradeRequest,
    current_user: CurrentUser,
    provider: Provider,
) -> GradeResult:
    """Score a student's answer out of 10 against the model answer."""
    if provider is None:
        raise ProviderUnavailable("Anthropic API key not configured")
    return await grade_answer(provider, data.question, data.model_answer, data.user_answer)
