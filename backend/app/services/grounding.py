"""
Grounded-answer contract for the notes tutor.

The model is told to answer only from the supplied note excerpts, to reply
with an exact refusal string when the notes do not cover the question, and
to return a JSON object::

    {"spoken_answer": "...",
     "citations": [{"id": "1", "evidence_snippet": "..."}],
     "confidence": "Low" | "Medium" | "High"}

Everything after the model call is deterministic: parse, detect refusal,
repair fields, verify citations against the context, render the reply.
A response that cannot be parsed becomes FALLBACK_REPLY, never an exception.
"""

import json
import logging
from dataclasses import dataclass, field

from app.errors import MalformedGenerativeOutput
from app.services.llm_provider import parse_json_object
from app.services.scoring import ConfidenceLabel, normalize_confidence, tokenize

logger = logging.getLogger(__name__)

REFUSAL_PREFIX = "Not found in your notes for"
FALLBACK_REPLY = "Failed to generate response correctly."
NO_NOTES_CONTEXT = "No notes available."
DEFAULT_SUBJECT = "Subject"
EVIDENCE_HEADER = "**Supporting Evidence:**"


def refusal_for(subject: str) -> str:
    return f"{REFUSAL_PREFIX} {subject}"


@dataclass
class Citation:
    id: str
    evidence_snippet: str


@dataclass
class GroundedAnswer:
    spoken_answer: str
    citations: list[Citation] = field(default_factory=list)
    confidence: ConfidenceLabel | None = None

    @property
    def is_refusal(self) -> bool:
        return REFUSAL_PREFIX in self.spoken_answer


# =============================================================================
# INSTRUCTION CONTRACT
# =============================================================================


def build_system_prompt(
    subject: str,
    context_text: str,
    history_text: str,
    question: str,
    retrieval_confidence: ConfidenceLabel,
) -> str:
    """Assemble the tutor instruction with the per-turn input block."""
    refusal = refusal_for(subject)
    turn_input = json.dumps(
        {
            "subject": subject,
            "notes_context": context_text or NO_NOTES_CONTEXT,
            "conversation_history": history_text,
            "current_question": question,
            "retrieval_confidence": retrieval_confidence,
        },
        indent=2,
        ensure_ascii=False,
    )

    return f"""You are "AskMyNotes Teacher Mode", an AI tutor that answers strictly using the user's uploaded notes for a selected subject.

SYSTEM RULES (MANDATORY):

1) SUBJECT SCOPING
You must ONLY answer using content from:
Subject: {subject}

If the answer is not supported by the notes, respond EXACTLY with:
"{refusal}"
No additional explanation is allowed in refusal cases.

2) EVIDENCE REQUIREMENT
Every answer MUST include:
- A clear explanation (teacher-like, conversational tone)
- Numbered citations [1], [2], etc.
- Direct supporting evidence snippets quoted word for word from the notes
- A confidence score (Low / Medium / High)

3) RESPONSE FORMAT (STRICT STRUCTURE)
Return your response in this JSON format:
{{
  "spoken_answer": "",
  "citations": [
    {{
      "id": "",
      "evidence_snippet": ""
    }}
  ],
  "confidence": ""
}}

Rules:
- spoken_answer must be natural, conversational, and suitable for text-to-speech.
- Do NOT mention "according to your notes" repeatedly.
- Do NOT include information not found in the notes.
- Citations must correspond to actual supporting snippets.
- Confidence must reflect how directly the notes support the answer. The
  retrieval_confidence field tells you how strongly the excerpts matched the question.

4) MULTI-TURN CONTEXT HANDLING
You will receive recent conversation history and the current question.
Maintain conversational context and interpret follow-ups (e.g., "give an example", "simplify it"). Resolve pronouns. Never drift outside the selected subject.

5) VOICE-READY OUTPUT
- Avoid markdown.
- Avoid bullet points unless necessary for clarity.
- Keep sentences clear and naturally spoken.

6) NO HALLUCINATIONS
If the notes partially support the answer, only answer the supported portion. If critical details are missing, refuse.

7) FOLLOW-UP BEHAVIOR
If asked to simplify, give an example, or compare, and it's in the notes, do it. Otherwise, refuse.

INPUT PROVIDED TO YOU THIS TURN:
{turn_input}

OUTPUT ONLY VALID JSON.
DO NOT include extra commentary."""


# =============================================================================
# POST-PROCESSING
# =============================================================================


def _repair_citations(raw_citations: object) -> list[Citation]:
    if not isinstance(raw_citations, list):
        return []
    citations = []
    for position, item in enumerate(raw_citations, start=1):
        if not isinstance(item, dict):
            continue
        snippet = item.get("evidence_snippet")
        if not isinstance(snippet, str) or not snippet.strip():
            continue
        cid = item.get("id")
        cid = str(cid).strip() if cid not in (None, "") else str(position)
        citations.append(Citation(id=cid, evidence_snippet=snippet.strip()))
    return citations


def parse_grounded_answer(
    raw: str | None,
    fallback_confidence: ConfidenceLabel | None = None,
) -> GroundedAnswer:
    """
    Parse and repair the model's JSON.

    Invalid citation entries are dropped and an unknown confidence is
    replaced by `fallback_confidence`.

    Raises:
        MalformedGenerativeOutput: not a JSON object, or no usable spoken_answer.
    """
    data = parse_json_object(raw)
    spoken = data.get("spoken_answer")
    if not isinstance(spoken, str) or not spoken.strip():
        raise MalformedGenerativeOutput()

    return GroundedAnswer(
        spoken_answer=spoken,
        citations=_repair_citations(data.get("citations")),
        confidence=normalize_confidence(data.get("confidence")) or fallback_confidence,
    )


def _token_run(text: str) -> str:
    # Padded so membership only matches whole tokens
    return f" {' '.join(tokenize(text))} "


def _collapsed(text: str) -> str:
    return " ".join(text.casefold().split())


def snippet_in_context(snippet: str, context_text: str) -> bool:
    """
    True if `snippet` occurs in `context_text`.

    ASCII snippets are compared as a contiguous run of whole tokens. Snippets
    containing letters `tokenize` drops (CJK, accented text) fall back to a
    casefolded, whitespace-collapsed substring test on the raw text.
    """
    if any(ch.isalnum() and not ch.isascii() for ch in snippet):
        return _collapsed(snippet) in _collapsed(context_text)
    if not tokenize(snippet):
        return False
    return _token_run(snippet) in _token_run(context_text)


def verify_citations(citations: list[Citation], context_text: str) -> list[Citation]:
    """Keep citations whose snippet actually occurs in the assembled context."""
    verified = [c for c in citations if snippet_in_context(c.evidence_snippet, context_text)]
    dropped = len(citations) - len(verified)
    if dropped:
        logger.info("Dropped %d citation(s) not found in the notes context", dropped)
    return verified


def render_reply(answer: GroundedAnswer) -> str:
    """Answer text followed by a Supporting Evidence block, if any citations."""
    reply = answer.spoken_answer
    if answer.citations:
        lines = [f'- [{c.id}] "{c.evidence_snippet}"' for c in answer.citations]
        reply += f"\n\n{EVIDENCE_HEADER}\n" + "\n".join(lines)
    return reply.rstrip()


@dataclass
class EnforcedReply:
    reply: str
    confidence: ConfidenceLabel | None = None


def enforce_contract(
    raw: str | None,
    context_text: str,
    *,
    fallback_confidence: ConfidenceLabel | None = None,
    check_citations: bool = True,
) -> EnforcedReply:
    """Turn raw model output into the caller-facing reply. Never raises."""
    try:
        answer = parse_grounded_answer(raw, fallback_confidence)
    except MalformedGenerativeOutput:
        logger.error("Failed to parse tutor output: %.200r", raw)
        return EnforcedReply(reply=FALLBACK_REPLY)

    if answer.is_refusal:
        return EnforcedReply(reply=answer.spoken_answer)

    if check_citations:
        answer.citations = verify_citations(answer.citations, context_text)

    return EnforcedReply(reply=render_reply(answer), confidence=answer.confidence)
