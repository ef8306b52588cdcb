"""Study mode schemas: generated practice exams."""

from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema, RequestSchema

MCQ_COUNT = 5
SAQ_COUNT = 3

OptionLabel = Literal["A", "B", "C", "D"]


def _citation_id(value: object) -> object:
    # Models sometimes emit bare numbers for "[n]" ids
    if isinstance(value, int) and not isinstance(value, bool):
        return f"[{value}]"
    return value


def _citation_ids(value: object) -> object:
    if isinstance(value, list):
        return [_citation_id(item) for item in value]
    return value


class MCQOptions(BaseSchema):
    A: str
    B: str
    C: str
    D: str


class MultipleChoiceQuestion(BaseSchema):
    question: str = Field(..., min_length=1)
    options: MCQOptions
    correct_answer: OptionLabel
    explanation: str
    citations: list[str] = Field(..., min_length=1)

    @field_validator("citations", mode="before")
    @classmethod
    def coerce_citation_ids(cls, value: object) -> object:
        return _citation_ids(value)


class ShortAnswerQuestion(BaseSchema):
    question: str = Field(..., min_length=1)
    model_answer: str = Field(..., min_length=1)
    citations: list[str] = Field(..., min_length=1)

    @field_validator("citations", mode="before")
    @classmethod
    def coerce_citation_ids(cls, value: object) -> object:
        return _citation_ids(value)


class Reference(BaseSchema):
    id: str
    citation: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> object:
        return _citation_id(value)


class StudySet(BaseSchema):
    """A practice exam for one subject."""

    subject: str
    mcqs: list[MultipleChoiceQuestion] = Field(default_factory=list)
    short_answer_questions: list[ShortAnswerQuestion] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)
    message: str | None = None
    mode: Literal["generative", "templated"] | None = None


class StudyRequest(RequestSchema):
    """Request a study set for a folder."""

    folder_id: UUID = Field(..., alias="folderId")
    folder_name: str | None = Field(None, alias="folderName")
