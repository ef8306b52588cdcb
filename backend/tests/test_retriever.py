"""Tests for chunk retrieval and confidence."""

import pytest

from app.services.retriever import NoteSource, chunk_notes, retrieval_confidence, retrieve
from app.services.scoring import LENIENT_CONFIDENCE, STRICT_CONFIDENCE


def test_no_notes_returns_empty():
    assert retrieve("anything", []) == []
    assert retrieval_confidence([]) == "Low"


def test_chunks_are_titled_and_indexed_from_one():
    notes = [NoteSource(title=None, content="alpha\n\nbeta")]
    chunks = chunk_notes(notes, max_chars=20)

    assert [c.index for c in chunks] == [1, 2]
    assert chunks[0].note_title == "Untitled Note"
    assert chunks[0].text == "Untitled Note\n\nalpha"
    assert chunks[1].text == "beta"


def test_mitochondria_question_finds_cells_chunk_one():
    notes = [
        NoteSource(title="Photosynthesis", content="Plants turn light into sugar in chloroplasts."),
        NoteSource(title="Cells", content="The mitochondria is the powerhouse of the cell."),
    ]
    top = retrieve("What is the powerhouse of the cell?", notes)

    assert top[0].chunk.note_title == "Cells"
    assert top[0].chunk.index == 1
    assert retrieval_confidence(top, STRICT_CONFIDENCE) == "High"
    assert retrieval_confidence(top, LENIENT_CONFIDENCE) == "Low"


def test_at_most_five_results_sorted_non_increasing():
    notes = [NoteSource(title=f"Note {i}", content="cell " * i) for i in range(1, 9)]
    top = retrieve("cell", notes)

    assert len(top) == 5
    scores = [sc.score for sc in top]
    assert scores == sorted(scores, reverse=True)


def test_ties_keep_note_then_chunk_order():
    notes = [
        NoteSource(title="A", content="nothing relevant"),
        NoteSource(title="B", content="nothing relevant either"),
    ]
    top = retrieve("zebra", notes, top_k=2)

    assert [(sc.chunk.note_title, sc.score) for sc in top] == [("A", 0), ("B", 0)]


def test_custom_scorer_is_used():
    class LengthScorer:
        def score(self, query, text):
            return len(text)

    notes = [NoteSource(title="Short", content="x"), NoteSource(title="Longer", content="x" * 30)]
    assert retrieve("q", notes, scorer=LengthScorer())[0].chunk.note_title == "Longer"


def test_top_k_must_be_positive():
    with pytest.raises(ValueError):
        retrieve("cell", [NoteSource(title="Cells", content="cell")], top_k=0)
