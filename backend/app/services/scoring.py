"""
Lexical tokenization, chunk scoring and confidence labels.

Scoring counts every chunk token that also appears in the query, so a chunk
repeating one matching word outranks a chunk matching several words once.
Keep that behavior unless the scorer is swapped out wholesale.
"""

import re
from dataclasses import dataclass
from typing import Literal, Protocol

ConfidenceLabel = Literal["Low", "Medium", "High"]
CONFIDENCE_LABELS: tuple[ConfidenceLabel, ...] = ("Low", "Medium", "High")

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def tokenize(text: str | None) -> list[str]:
    """Lowercase `text`, blank out non-alphanumerics and split on whitespace."""
    if not text:
        return []
    return _NON_ALNUM.sub(" ", text.lower()).split()


def score_chunk(query: str | None, chunk_text: str | None) -> int:
    """Count chunk tokens (with repetition) that belong to the query token set."""
    query_tokens = set(tokenize(query))
    if not query_tokens:
        return 0
    return sum(1 for token in tokenize(chunk_text) if token in query_tokens)


class Scorer(Protocol):
    """Relevance scoring strategy used by the retriever."""

    def score(self, query: str, text: str) -> int: ...


class LexicalOverlapScorer:
    """Default scorer: repetition-counting lexical overlap."""

    def score(self, query: str, text: str) -> int:
        return score_chunk(query, text)


# =============================================================================
# CONFIDENCE
# =============================================================================


@dataclass(frozen=True)
class ConfidencePolicy:
    """Thresholds on the top chunk score. Anything below `medium` is Low."""

    high: int
    medium: int

    def label(self, top_score: int) -> ConfidenceLabel:
        if top_score >= self.high:
            return "High"
        if top_score >= self.medium:
            return "Medium"
        return "Low"


STRICT_CONFIDENCE = ConfidencePolicy(high=5, medium=2)
LENIENT_CONFIDENCE = ConfidencePolicy(high=20, medium=8)

CONFIDENCE_POLICIES: dict[str, ConfidencePolicy] = {
    "strict": STRICT_CONFIDENCE,
    "lenient": LENIENT_CONFIDENCE,
}


def compute_confidence(top_score: int, policy: ConfidencePolicy = STRICT_CONFIDENCE) -> ConfidenceLabel:
    """Map the best retrieval score to a Low/Medium/High label."""
    return policy.label(top_score)


def normalize_confidence(value: object) -> ConfidenceLabel | None:
    """Return the canonical label for `value` ("high" -> "High"), or None."""
    if not isinstance(value, str):
        return None
    cleaned = value.strip().capitalize()
    for label in CONFIDENCE_LABELS:
        if cleaned == label:
            return label
    return None
