"""Word and token counting utilities.

Chunk sizes are measured in whitespace-separated words. Token counts from
tiktoken (cl100k_base, the encoding used by OpenAI's embedding models) are
reported alongside so downstream embedders can check their input limits.
"""

from __future__ import annotations

import re

import tiktoken

_WORD_PATTERN = re.compile(r"\S+")

# Global tiktoken encoder (cached for performance)
_TIKTOKEN_ENCODER: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Get or create the cl100k_base tiktoken encoder."""
    global _TIKTOKEN_ENCODER
    if _TIKTOKEN_ENCODER is None:
        _TIKTOKEN_ENCODER = tiktoken.get_encoding("cl100k_base")
    return _TIKTOKEN_ENCODER


def count_tokens(text: str) -> int:
    """Count tokens in text using tiktoken.

    Args:
        text: Text to count tokens for

    Returns:
        Number of tokens (0 for empty string)
    """
    if not text:
        return 0
    encoder = _get_encoder()
    return len(encoder.encode(text))


def count_words(text: str) -> int:
    """Count whitespace-separated words (0 for empty or blank text)."""
    return len(text.split())


def word_spans(text: str, start: int = 0, end: int | None = None) -> list[tuple[int, int]]:
    """Return (start, end) offsets of every word in text[start:end].

    Offsets are absolute positions in ``text``.

    Example:
        >>> word_spans("one  two", 0)
        [(0, 3), (5, 8)]
    """
    if end is None:
        end = len(text)
    return [(m.start(), m.end()) for m in _WORD_PATTERN.finditer(text, start, end)]


def first_words(text: str, count: int) -> str:
    """Return the first ``count`` words of text joined by single spaces."""
    if count <= 0:
        return ""
    return " ".join(text.split()[:count])


def last_words(text: str, count: int) -> str:
    """Return the last ``count`` words of text joined by single spaces."""
    if count <= 0:
        return ""
    return " ".join(text.split()[-count:])
