"""
Word-window chunking for embedding.
"""

from __future__ import annotations

from typing import List

DEFAULT_MAX_WORDS = 700


def chunk_text(text: str, max_words: int = DEFAULT_MAX_WORDS) -> List[str]:
    """
    Split text into consecutive windows of at most ``max_words`` words.

    Words are whitespace-delimited and re-joined with single spaces. Windows
    never overlap; the last one may be shorter. Empty or whitespace-only text
    yields no chunks.

    Raises
    ------
    ValueError
        If ``max_words`` is smaller than 1.
    """
    if max_words < 1:
        raise ValueError("max_words must be >= 1")

    words = (text or "").split()
    return [
        " ".join(words[start : start + max_words])
        for start in range(0, len(words), max_words)
    ]
