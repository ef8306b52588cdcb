"""Paragraph-aware text chunker for note retrieval."""

import re
from collections.abc import Iterator

DEFAULT_MAX_CHARS = 800

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def iter_chunks(text: str | None, max_chars: int = DEFAULT_MAX_CHARS) -> Iterator[str]:
    """
    Yield chunks of at most `max_chars` characters from `text`.

    Paragraphs (separated by blank lines) are packed greedily into a buffer
    joined by a blank line. The buffer is emitted whenever the next paragraph
    would push it over the limit. A paragraph longer than the limit is cut
    into fixed-width slices, each emitted on its own.
    """
    if max_chars < 1:
        raise ValueError("max_chars must be at least 1")
    if not text:
        return

    current = ""
    for raw in _PARAGRAPH_BREAK.split(text):
        paragraph = raw.strip()
        if not paragraph:
            continue

        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) <= max_chars:
            current = candidate
            continue

        if current:
            yield current

        if len(paragraph) <= max_chars:
            current = paragraph
        else:
            for start in range(0, len(paragraph), max_chars):
                yield paragraph[start:start + max_chars]
            current = ""

    if current:
        yield current


def chunk_text(text: str | None, max_chars: int = DEFAULT_MAX_CHARS) -> list[str]:
    """Split `text` into an ordered list of chunks. See `iter_chunks`."""
    return list(iter_chunks(text, max_chars))
