"""Build the grounding payload: cited note excerpts plus bounded chat history."""

from collections.abc import Sequence

from app.schemas.chat import ConversationTurn
from app.services.retriever import ScoredChunk

# Turns kept from the client-supplied history
HISTORY_WINDOW = 10
# Turns rendered into the system instruction text
PROMPT_HISTORY_WINDOW = 3

CHUNK_SEPARATOR = "\n\n---\n\n"


def render_chunk(scored: ScoredChunk) -> str:
    chunk = scored.chunk
    return f"[Citation: {chunk.note_title}, Chunk {chunk.index}]\n{chunk.text}"


def format_context(chunks: Sequence[ScoredChunk], max_chars: int | None = None) -> str:
    """
    Render chunks as cited blocks separated by a rule.

    With `max_chars`, whole trailing chunks are dropped once the budget is
    exceeded; a chunk is never cut in half.
    """
    parts: list[str] = []
    total = 0
    for scored in chunks:
        block = render_chunk(scored)
        added = len(block) + (len(CHUNK_SEPARATOR) if parts else 0)
        if max_chars is not None and total + added > max_chars:
            break
        parts.append(block)
        total += added
    return CHUNK_SEPARATOR.join(parts)


def prepare_history(turns: Sequence[ConversationTurn]) -> list[dict]:
    """Keep the last HISTORY_WINDOW turns as role/content dicts."""
    return [
        {"role": "assistant" if turn.is_model else "user", "content": turn.content}
        for turn in turns[-HISTORY_WINDOW:]
    ]


def render_history(history: Sequence[dict]) -> str:
    """Render the last PROMPT_HISTORY_WINDOW turns as ``role: content`` lines."""
    return "\n".join(
        f"{message['role']}: {message['content']}"
        for message in history[-PROMPT_HISTORY_WINDOW:]
    )
