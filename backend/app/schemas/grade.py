"""Short-answer grading schemas."""

from pydantic import Field

from app.schemas.base import BaseSchema, RequestSchema


class GradeRequest(RequestSchema):
    """All three fields are required."""

    question: str = Field(..., min_length=1)
    user_answer: str = Field(..., min_length=1, alias="userAnswer")
    model_answer: str = Field(..., min_length=1, alias="modelAnswer")


class GradeResult(BaseSchema):
    score: int = Field(..., ge=0, le=10)
    feedback: str
