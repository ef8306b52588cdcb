"""Tests for tokenization, lexical scoring and confidence labels."""

import pytest

from app.services.scoring import (
    LENIENT_CONFIDENCE,
    STRICT_CONFIDENCE,
    LexicalOverlapScorer,
    compute_confidence,
    normalize_confidence,
    score_chunk,
    tokenize,
)


def test_tokenize_strips_punctuation_and_case():
    assert tokenize("Hello, World!") == ["hello", "world"]
    assert tokenize("") == []
    assert tokenize("ATP-synthase  (v2)") == ["atp", "synthase", "v2"]


def test_tokenize_is_idempotent():
    once = tokenize("It's the Krebs-cycle, isn't it?")
    assert tokenize(" ".join(once)) == once


def test_score_counts_repetition_in_chunk():
    assert score_chunk("cat", "cat cat cat") == 3
    assert score_chunk("cat cat dog", "cat dog") == 2


def test_empty_query_scores_zero():
    assert score_chunk("", "anything at all") == 0
    assert score_chunk("?!", "anything") == 0


def test_lexical_scorer_delegates_to_score_chunk():
    assert LexicalOverlapScorer().score("the cell", "The cell. The nucleus.") == 3


@pytest.mark.parametrize(
    ("score", "expected"),
    [(0, "Low"), (1, "Low"), (2, "Medium"), (4, "Medium"), (5, "High"), (50, "High")],
)
def test_strict_policy(score, expected):
    assert compute_confidence(score, STRICT_CONFIDENCE) == expected


@pytest.mark.parametrize(("score", "expected"), [(3, "Low"), (8, "Medium"), (19, "Medium"), (20, "High")])
def test_lenient_policy(score, expected):
    assert compute_confidence(score, LENIENT_CONFIDENCE) == expected


def test_strict_is_the_default_policy():
    assert compute_confidence(5) == "High"


def test_normalize_confidence():
    assert normalize_confidence(" high ") == "High"
    assert normalize_confidence("MEDIUM") == "Medium"
    assert normalize_confidence("certain") is None
    assert normalize_confidence(3) is None
