"""
Text chunker for memory ingestion.

Splits content into slices of at most ``max_chunk_size`` characters. When the text
continues past the limit, the break is moved back to the nearest sentence end or
whitespace inside a trailing boundary window so words are not cut in half; when
the window holds no whitespace the slice is hard-cut at the limit.

Chunks are exact slices of the input: joining their texts gives back the input.
"""

from typing import List, Optional

from .errors import ChunkingError
from .models import Chunk

DEFAULT_BOUNDARY_WINDOW_RATIO = 0.2
SENTENCE_TERMINATORS = ".!?"


def _find_break(text: str, window_start: int, end: int) -> Optional[int]:
    """Return the offset just after the preferred break whitespace, or None"""
    last_whitespace = None
    for i in range(end - 1, window_start - 1, -1):
        char = text[i]
        if not char.isspace():
            continue
        if char == "\n" or (i > 0 and text[i - 1] in SENTENCE_TERMINATORS):
            return i + 1
        if last_whitespace is None:
            last_whitespace = i + 1
    return last_whitespace


def chunk(
    text: str,
    max_chunk_size: int,
    boundary_window_ratio: float = DEFAULT_BOUNDARY_WINDOW_RATIO
) -> List[Chunk]:
    """Split text into ordered chunks no longer than max_chunk_size"""
    if isinstance(max_chunk_size, bool) or not isinstance(max_chunk_size, int) or max_chunk_size <= 0:
        raise ChunkingError(
            "max_chunk_size must be a positive integer",
            details={"max_chunk_size": max_chunk_size}
        )
    if not 0 < boundary_window_ratio <= 1:
        raise ChunkingError(
            "boundary_window_ratio must be in (0, 1]",
            details={"boundary_window_ratio": boundary_window_ratio}
        )
    if text is None:
        raise ChunkingError("text must be a string, got None")

    window = max(1, int(max_chunk_size * boundary_window_ratio))
    chunks: List[Chunk] = []
    pos = 0
    length = len(text)

    while pos < length:
        end = min(pos + max_chunk_size, length)
        if end < length:
            # Break whitespace stays with the current chunk
            end = _find_break(text, max(pos, end - window), end) or end
        chunks.append(Chunk(text=text[pos:end], index=len(chunks)))
        pos = end

    return chunks
