"""Text chunking: greedy fixed-size windows that prefer natural boundaries."""

from __future__ import annotations

from doc_rag.errors import InvalidInput
from doc_rag.retrieval.models import Chunk

#: How far back from the proposed cut the boundary search may look.
BOUNDARY_WINDOW = 200

SENTENCE_BREAKS = (".", "\n")
WORD_BREAKS = (",", " ")


def _last_break(text: str, breaks: tuple[str, ...], end: int) -> int:
    """Index of the last character in *breaks* at or before *end* (``-1`` if none)."""
    return max(text.rfind(b, 0, end + 1) for b in breaks)


def chunk_text(text: str, max_len: int = 1000) -> list[Chunk]:
    """Split *text* into trimmed chunks of roughly *max_len* characters.

    Each window ends at the last sentence break (``.`` or newline) within
    the final :data:`BOUNDARY_WINDOW` characters, else at the last comma or
    space there, else exactly at *max_len*.  A break found at the window
    edge is kept with its chunk, so a chunk may run one character past
    *max_len*.

    Parameters
    ----------
    text:
        Plain document text.  Empty text yields no chunks.
    max_len:
        Target maximum number of characters per chunk.

    Returns
    -------
    list[Chunk]
        Non-empty chunks in document order, ordinals starting at 0.
    """
    if max_len < 1:
        raise InvalidInput(f"max_len must be a positive integer, got {max_len}")
    if not text:
        return []

    chunks: list[Chunk] = []
    length = len(text)
    start = 0
    while start < length:
        end = min(start + max_len, length)

        if end < length:
            window_start = max(start, end - BOUNDARY_WINDOW)
            cut = _last_break(text, SENTENCE_BREAKS, end)
            if cut <= window_start:
                cut = _last_break(text, WORD_BREAKS, end)
            if cut > window_start:
                end = cut + 1

        piece = text[start:end].strip()
        if piece:
            chunks.append(Chunk(text=piece, ordinal=len(chunks)))
        start = end

    return chunks
