"""Text helpers including simple character-window chunking."""

from __future__ import annotations

import re
from typing import Iterable, Iterator

_WHITESPACE_RE = re.compile(r"\s+")


def chunk_text(text: str, *, max_chars: int = 1000, overlap: int = 200) -> Iterator[str]:
    """Split text into overlapping character windows.

    Every window after the first starts ``max_chars - overlap`` characters after
    the previous one, and iteration stops as soon as a window reaches the end of
    the text. Text no longer than ``max_chars`` (the empty string included)
    comes back as a single chunk.

    ``overlap`` is clamped to ``max_chars - 1`` so the window always advances.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    overlap = min(max(overlap, 0), max_chars - 1)
    step = max_chars - overlap
    length = len(text)

    start = 0
    while True:
        end = min(start + max_chars, length)
        yield text[start:end]
        if end >= length:
            return
        start += step


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Strip lines and join the non-empty ones with newlines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, limit: int) -> str:
    """Return at most ``limit`` characters of ``text``."""
    return text if len(text) <= limit else text[:limit]
