"""
Study set (practice exam) generation.

Two strategies share one interface:

- GenerativeStudySetGenerator asks the model for 5 MCQs and 3 short-answer
  questions grounded in the whole folder.
- TemplatedStudySetGenerator builds questions straight from note chunks with
  no model call. It is used when no provider is configured and as the
  fallback when the model's output is unusable.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import ValidationError

from app.errors import MalformedGenerativeOutput
from app.schemas.study import (
    MCQ_COUNT,
    SAQ_COUNT,
    MCQOptions,
    MultipleChoiceQuestion,
    Reference,
    ShortAnswerQuestion,
    StudySet,
)
from app.services.chunker import DEFAULT_MAX_CHARS
from app.services.llm_provider import GenerativeProvider, parse_json_object
from app.services.retriever import Chunk, NoteSource, chunk_notes

logger = logging.getLogger(__name__)

NO_NOTES_MESSAGE = "No notes found to generate study materials."
DEGRADED_MESSAGE = (
    "The AI study set could not be generated, so these questions were built "
    "directly from your notes."
)
DEFAULT_TEMPLATE_CHUNKS = 20
DEFAULT_CONTEXT_CHARS = 60000


class StudySetGenerator(ABC):
    """Produces a study set for a non-empty collection of notes."""

    mode: str

    @abstractmethod
    async def generate(self, subject: str, notes: Sequence[NoteSource]) -> StudySet:
        ...


async def build_study_set(
    subject: str,
    notes: Sequence[NoteSource],
    generator: StudySetGenerator,
) -> StudySet:
    """Empty folders short-circuit to an explanatory empty set."""
    if not notes:
        return StudySet(subject=subject, message=NO_NOTES_MESSAGE)
    return await generator.generate(subject, notes)


# =============================================================================
# TEMPLATED
# =============================================================================


def _excerpt(text: str, limit: int) -> str:
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3].rstrip() + "..."


def _apa_reference(title: str) -> str:
    return f"{title}. (n.d.). [Personal study notes]."


class TemplatedStudySetGenerator(StudySetGenerator):
    """Offline study set built from the first note chunks."""

    mode = "templated"

    def __init__(self, max_chunks: int = DEFAULT_TEMPLATE_CHUNKS, max_chars: int = DEFAULT_MAX_CHARS):
        self.max_chunks = max_chunks
        self.max_chars = max_chars

    async def generate(self, subject: str, notes: Sequence[NoteSource]) -> StudySet:
        chunks = chunk_notes(notes, self.max_chars)[: self.max_chunks]
        mcq_chunks = chunks[:MCQ_COUNT]
        saq_chunks = chunks[MCQ_COUNT:MCQ_COUNT + SAQ_COUNT]

        reference_ids: dict[str, str] = {}
        for chunk in mcq_chunks + saq_chunks:
            reference_ids.setdefault(chunk.note_title, f"[{len(reference_ids) + 1}]")

        study_set = StudySet(
            subject=subject,
            mcqs=[self._mcq(chunk, reference_ids[chunk.note_title]) for chunk in mcq_chunks],
            short_answer_questions=[
                self._saq(chunk, reference_ids[chunk.note_title]) for chunk in saq_chunks
            ],
            references=[
                Reference(id=ref_id, citation=_apa_reference(title))
                for title, ref_id in reference_ids.items()
            ],
            mode=self.mode,
        )
        if len(mcq_chunks) < MCQ_COUNT or len(saq_chunks) < SAQ_COUNT:
            study_set.message = (
                f"Your notes only have {len(chunks)} section(s), so fewer questions were generated."
            )
        return study_set

    @staticmethod
    def _mcq(chunk: Chunk, ref_id: str) -> MultipleChoiceQuestion:
        # Option A is the verbatim excerpt, so it is always the correct answer
        return MultipleChoiceQuestion(
            question=f'Which statement appears in your notes on "{chunk.note_title}" (chunk {chunk.index})?',
            options=MCQOptions(
                A=_excerpt(chunk.text, 200),
                B="None of these statements appear in the notes.",
                C=f'A claim that contradicts "{chunk.note_title}".',
                D="The notes do not cover this topic.",
            ),
            correct_answer="A",
            explanation=(
                f'Option A is quoted directly from "{chunk.note_title}", chunk {chunk.index}. '
                "The other options are not statements from your notes."
            ),
            citations=[ref_id],
        )

    @staticmethod
    def _saq(chunk: Chunk, ref_id: str) -> ShortAnswerQuestion:
        return ShortAnswerQuestion(
            question=f'Explain the main idea of "{chunk.note_title}" (chunk {chunk.index}) in your own words.',
            model_answer=_excerpt(chunk.text, 600),
            citations=[ref_id],
        )


# =============================================================================
# GENERATIVE
# =============================================================================


def build_study_context(notes: Sequence[NoteSource], max_chars: int = DEFAULT_CONTEXT_CHARS) -> str:
    """All notes as titled blocks, cut at `max_chars` with a marker."""
    context = "\n\n---\n\n".join(
        f"Note Title: {note.display_title}\nContent:\n{note.content or ''}" for note in notes
    )
    if len(context) > max_chars:
        context = context[:max_chars] + "\n\n[... content truncated ...]"
    return context


def build_study_prompt(subject: str, context_text: str) -> str:
    return f"""You are a strict study material generator.
For the subject provided below, generate structured study material based ONLY on the provided notes.
Do not fabricate facts. If the notes do not contain enough information, do your best with what is provided.

Subject:
{subject}

Requirements:
1) Generate exactly {MCQ_COUNT} Multiple Choice Questions (MCQs).
   - Each MCQ must include:
     - Question
     - Four options labeled A, B, C, D
     - Correct option clearly indicated
     - A brief explanation (2-4 sentences)
     - At least one citation supporting the explanation

2) Generate exactly {SAQ_COUNT} Short-Answer Questions.
   - Each must include:
     - Question
     - Model answer (3-6 sentences)
     - At least one citation supporting the answer

3) Citations:
   - Use numbered citations like [1], [2], etc.
   - Include a "references" list giving every source in APA format.
   - Sources must be the titles of the provided notes.

4) Difficulty Level: Moderate (suitable for undergraduate level).
5) Output Format: Return the response strictly as a JSON object matching this schema exactly:

{{
  "subject": "{subject}",
  "mcqs": [
    {{
      "question": "string",
      "options": {{"A": "string", "B": "string", "C": "string", "D": "string"}},
      "correct_answer": "A",
      "explanation": "string",
      "citations": ["[1]"]
    }}
  ],
  "short_answer_questions": [
    {{
      "question": "string",
      "model_answer": "string",
      "citations": ["[1]"]
    }}
  ],
  "references": [
    {{"id": "[1]", "citation": "First Note Title"}}
  ]
}}

OUTPUT ONLY VALID JSON.

--- USER'S NOTES FOR CURRENT SUBJECT ---
{context_text}
"""


def _reference_key(ref_id: str) -> str:
    return ref_id.strip().strip("[]").strip()


def _tie_citations(
    items: Sequence[MultipleChoiceQuestion | ShortAnswerQuestion],
    references: list[Reference],
) -> None:
    """Point every citation at a listed reference, in that reference's id form."""
    known = {_reference_key(ref.id): ref.id for ref in references}
    for item in items:
        tied = [known[_reference_key(c)] for c in item.citations if _reference_key(c) in known]
        if not tied:
            raise MalformedGenerativeOutput()
        item.citations = tied


def parse_study_set(
    raw: str | None,
    subject: str,
    note_titles: Sequence[str] | None = None,
) -> StudySet:
    """
    Validate the model's study set. Extra questions are trimmed.

    With `note_titles`, references that name none of the notes are dropped.
    Citations are kept only when they point at a remaining reference.

    Raises:
        MalformedGenerativeOutput: wrong shape, too few questions, or a
            question left without a valid citation.
    """
    data = parse_json_object(raw)
    try:
        mcqs = [MultipleChoiceQuestion.model_validate(item) for item in data["mcqs"][:MCQ_COUNT]]
        saqs = [
            ShortAnswerQuestion.model_validate(item)
            for item in data["short_answer_questions"][:SAQ_COUNT]
        ]
        references = [Reference.model_validate(item) for item in data.get("references") or []]
    except (KeyError, TypeError, ValidationError) as e:
        raise MalformedGenerativeOutput() from e

    if len(mcqs) < MCQ_COUNT or len(saqs) < SAQ_COUNT:
        raise MalformedGenerativeOutput()

    if note_titles is not None:
        titles = [title.casefold() for title in note_titles if title]
        references = [
            ref for ref in references if any(title in ref.citation.casefold() for title in titles)
        ]
    _tie_citations([*mcqs, *saqs], references)

    return StudySet(
        subject=subject,
        mcqs=mcqs,
        short_answer_questions=saqs,
        references=references,
        mode="generative",
    )


class GenerativeStudySetGenerator(StudySetGenerator):
    """Model-written study set with a templated fallback for bad output."""

    mode = "generative"

    def __init__(
        self,
        provider: GenerativeProvider,
        fallback: StudySetGenerator | None = None,
        max_context_chars: int = DEFAULT_CONTEXT_CHARS,
    ):
        self.provider = provider
        self.fallback = fallback or TemplatedStudySetGenerator()
        self.max_context_chars = max_context_chars

    async def generate(self, subject: str, notes: Sequence[NoteSource]) -> StudySet:
        prompt = build_study_prompt(subject, build_study_context(notes, self.max_context_chars))
        raw = await self.provider.complete(
            prompt, [{"role": "user", "content": f"Generate the study set for {subject}."}]
        )
        try:
            return parse_study_set(raw, subject, [note.display_title for note in notes])
        except MalformedGenerativeOutput:
            logger.warning("Study set output was malformed for %r; using templated questions", subject)
            study_set = await self.fallback.generate(subject, notes)
            study_set.message = DEGRADED_MESSAGE
            return study_set


def select_study_generator(
    provider: GenerativeProvider | None,
    *,
    template_max_chunks: int = DEFAULT_TEMPLATE_CHUNKS,
    max_chars: int = DEFAULT_MAX_CHARS,
    max_context_chars: int = DEFAULT_CONTEXT_CHARS,
) -> StudySetGenerator:
    """Generative when a provider is configured, templated otherwise."""
    templated = TemplatedStudySetGenerator(max_chunks=template_max_chunks, max_chars=max_chars)
    if provider is None:
        return templated
    return GenerativeStudySetGenerator(provider, fallback=templated, max_context_chars=max_context_chars)
