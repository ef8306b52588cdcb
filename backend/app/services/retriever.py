"""Top-k lexical retrieval over the notes of one folder."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from app.services.chunker import DEFAULT_MAX_CHARS, iter_chunks
from app.services.scoring import (
    STRICT_CONFIDENCE,
    ConfidenceLabel,
    ConfidencePolicy,
    LexicalOverlapScorer,
    Scorer,
    compute_confidence,
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
UNTITLED_NOTE = "Untitled Note"


@dataclass(frozen=True)
class NoteSource:
    """The parts of a note the retrieval pipeline reads."""

    title: str | None
    content: str | None

    @property
    def display_title(self) -> str:
        return self.title or UNTITLED_NOTE


@dataclass(frozen=True)
class Chunk:
    """A slice of a note. `index` is 1-based within its note."""

    note_title: str
    index: int
    text: str


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk with its relevance score for one query."""

    chunk: Chunk
    score: int


def chunk_notes(
    notes: Iterable[NoteSource],
    max_chars: int = DEFAULT_MAX_CHARS,
) -> list[Chunk]:
    """
    Chunk every note as ``title + blank line + content``.

    Chunks come back in note order, then chunk order.
    """
    chunks: list[Chunk] = []
    for note in notes:
        title = note.display_title
        base_text = f"{title}\n\n{note.content or ''}"
        for index, text in enumerate(iter_chunks(base_text, max_chars), start=1):
            chunks.append(Chunk(note_title=title, index=index, text=text))
    return chunks


def retrieve(
    query: str,
    notes: Sequence[NoteSource],
    *,
    top_k: int = DEFAULT_TOP_K,
    scorer: Scorer | None = None,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> list[ScoredChunk]:
    """
    Return the `top_k` best-scoring chunks across `notes`, best first.

    The sort is stable, so equal scores keep note order then chunk order.
    No notes (or no chunks) yields an empty list.
    """
    if top_k < 1:
        raise ValueError("top_k must be at least 1")
    chunks = chunk_notes(notes, max_chars)
    if not chunks:
        return []

    scorer = scorer or LexicalOverlapScorer()
    scored = [ScoredChunk(chunk=chunk, score=scorer.score(query, chunk.text)) for chunk in chunks]
    scored.sort(key=lambda sc: sc.score, reverse=True)
    top = scored[:top_k]

    logger.info(
        "Retrieved %d of %d chunks from %d notes (top score %d)",
        len(top), len(chunks), len(notes), top[0].score,
    )
    return top


def retrieval_confidence(
    scored: Sequence[ScoredChunk],
    policy: ConfidencePolicy = STRICT_CONFIDENCE,
) -> ConfidenceLabel:
    """Confidence label for a retrieval result, from its top-ranked chunk."""
    top_score = scored[0].score if scored else 0
    return compute_confidence(top_score, policy)
