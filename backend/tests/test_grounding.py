"""Tests for the grounded-answer contract enforcer."""

import json

import pytest

from app.errors import MalformedGenerativeOutput
from app.services.grounding import (
    EVIDENCE_HEADER,
    FALLBACK_REPLY,
    Citation,
    GroundedAnswer,
    build_system_prompt,
    enforce_contract,
    parse_grounded_answer,
    refusal_for,
    render_reply,
    snippet_in_context,
    verify_citations,
)

CONTEXT = "[Citation: Cells, Chunk 1]\nCells\n\nThe mitochondria is the powerhouse of the cell."


def _answer(**fields) -> str:
    return json.dumps(fields)


def test_refusal_is_returned_verbatim_without_evidence():
    raw = _answer(
        spoken_answer="Not found in your notes for Biology",
        citations=[{"id": "1", "evidence_snippet": "mitochondria"}],
        confidence="High",
    )
    result = enforce_contract(raw, CONTEXT)

    assert result.reply == "Not found in your notes for Biology"
    assert EVIDENCE_HEADER not in result.reply
    assert result.confidence is None


@pytest.mark.parametrize("raw", [None, "", "I think the answer is ATP", "{not json}", "[1, 2]"])
def test_malformed_output_becomes_fallback_reply(raw):
    assert enforce_contract(raw, CONTEXT).reply == FALLBACK_REPLY


def test_missing_spoken_answer_is_malformed():
    with pytest.raises(MalformedGenerativeOutput):
        parse_grounded_answer(_answer(citations=[], confidence="High"))


def test_answer_is_rendered_with_evidence_block():
    raw = "```json\n" + _answer(
        spoken_answer="The mitochondria makes energy for the cell.   ",
        citations=[{"id": "1", "evidence_snippet": "The mitochondria is the powerhouse of the cell."}],
        confidence="high",
    ) + "\n```"
    result = enforce_contract(raw, CONTEXT)

    assert result.reply == (
        "The mitochondria makes energy for the cell.   \n\n"
        f"{EVIDENCE_HEADER}\n"
        '- [1] "The mitochondria is the powerhouse of the cell."'
    )
    assert result.confidence == "High"


def test_fabricated_citations_are_dropped():
    raw = _answer(
        spoken_answer="Energy comes from the mitochondria.",
        citations=[
            {"id": "1", "evidence_snippet": "the POWERHOUSE of the cell"},
            {"id": "2", "evidence_snippet": "Ribosomes build proteins."},
        ],
        confidence="Medium",
    )
    result = enforce_contract(raw, CONTEXT)

    assert '[1] "the POWERHOUSE of the cell"' in result.reply
    assert "Ribosomes" not in result.reply


def test_citation_check_can_be_disabled():
    raw = _answer(
        spoken_answer="Answer.",
        citations=[{"id": "9", "evidence_snippet": "Not in the notes."}],
        confidence="Low",
    )
    assert "Not in the notes." in enforce_contract(raw, CONTEXT, check_citations=False).reply


def test_repair_fills_ids_and_confidence():
    answer = parse_grounded_answer(
        _answer(
            spoken_answer="Yes.",
            citations=[{"evidence_snippet": "powerhouse"}, "junk", {"id": "3", "evidence_snippet": " "}],
            confidence="very sure",
        ),
        fallback_confidence="Medium",
    )

    assert answer.citations == [Citation(id="1", evidence_snippet="powerhouse")]
    assert answer.confidence == "Medium"


def test_render_without_citations_has_no_header():
    assert render_reply(GroundedAnswer(spoken_answer="Plain answer.\n")) == "Plain answer."


def test_verify_citations_matches_normalized_text():
    kept = verify_citations([Citation(id="1", evidence_snippet="Mitochondria is the powerhouse!")], CONTEXT)
    assert len(kept) == 1


def test_system_prompt_names_subject_and_refusal():
    prompt = build_system_prompt(
        subject="Biology",
        context_text="",
        history_text="user: hi",
        question="What is ATP?",
        retrieval_confidence="Low",
    )

    assert f'"{refusal_for("Biology")}"' in prompt
    assert '"notes_context": "No notes available."' in prompt
    assert '"current_question": "What is ATP?"' in prompt


def test_word_fragments_are_not_evidence():
    raw = _answer(
        spoken_answer="x",
        citations=[{"id": "1", "evidence_snippet": "ell"}, {"id": "2", "evidence_snippet": "mitochondria is"}],
        confidence="Low",
    )
    result = enforce_contract(raw, CONTEXT)

    assert '[1] "ell"' not in result.reply
    assert '[2] "mitochondria is"' in result.reply


def test_non_latin_snippets_are_verified_against_raw_text():
    context = "[Citation: 生物, Chunk 1]\n生物\n\n线粒体是细胞的动力工厂。"
    raw = _answer(
        spoken_answer="线粒体是细胞的动力工厂。",
        citations=[{"id": "1", "evidence_snippet": "线粒体是细胞的动力工厂"}],
        confidence="High",
    )
    result = enforce_contract(raw, context)

    assert result.reply.endswith('- [1] "线粒体是细胞的动力工厂"')
    assert not snippet_in_context("叶绿体", context)


@pytest.mark.parametrize(
    ("snippet", "expected"),
    [
        ("POWERHOUSE   of the\ncell", True),
        ("powerhouse cell", False),
        ("werhouse of", False),
        ("...", False),
        ("Élan vital", False),
    ],
)
def test_snippet_matching(snippet, expected):
    assert snippet_in_context(snippet, CONTEXT) is expected
