"""Short-answer grading against a model answer."""

import logging

from app.errors import MalformedGenerativeOutput
from app.schemas.grade import GradeResult
from app.services.llm_provider import GenerativeProvider, parse_json_object

logger = logging.getLogger(__name__)

GRADER_SYSTEM_PROMPT = """You are a strict but fair grader.
You will be given a Question, a Student's Answer, and a Model Answer.
Evaluate the Student's Answer out of 10 based on how well it covers the core concepts of the Model Answer.
Judge conceptual coverage, not exact wording.
Provide brief feedback (1-3 sentences) explaining the score and any missing details.

Return your response strictly as a JSON object matching this schema exactly:
{
  "score": number,
  "feedback": "string"
}
OUTPUT ONLY VALID JSON."""


def parse_grade(raw: str | None) -> GradeResult:
    """
    Read score and feedback from the grader output.

    Fractional scores are rounded and anything outside 0-10 is clamped.

    Raises:
        MalformedGenerativeOutput: missing or non-numeric score, or no feedback.
    """
    data = parse_json_object(raw)
    score = data.get("score")
    feedback = data.get("feedback")
    if isinstance(score, bool) or not isinstance(feedback, str):
        raise MalformedGenerativeOutput()
    try:
        value = round(float(score))
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedGenerativeOutput() from e
    return GradeResult(score=max(0, min(10, value)), feedback=feedback)


async def grade_answer(
    provider: GenerativeProvider,
    question: str,
    model_answer: str,
    user_answer: str,
) -> GradeResult:
    """
    Grade `user_answer` with a single model call.

    Raises:
        MalformedGenerativeOutput: the grader's reply could not be read.
        ProviderTransportError: the provider call failed.
    """
    user_prompt = (
        f"Question: {question}\n"
        f"Model Answer: {model_answer}\n"
        f"Student's Answer: {user_answer}"
    )
    raw = await provider.complete(GRADER_SYSTEM_PROMPT, [{"role": "user", "content": user_prompt}])
    try:
        return parse_grade(raw)
    except MalformedGenerativeOutput:
        logger.error("Failed to parse grader output: %.200r", raw)
        raise
