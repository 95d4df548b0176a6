"""Degrading chunking path for ingestion.

Tries the adaptive chunker first, then the character-window DocumentChunker,
then plain fixed-size slices, so a non-blank document always yields chunks.
"""

from __future__ import annotations

import logging

from barkly_research.ingest.chunker.core import AdaptiveChunker
from barkly_research.ingest.chunker.document_chunker import (
    DocumentChunk,
    DocumentChunker,
    from_adaptive_chunks,
)
from barkly_research.ingest.chunker.models import ChunkingConfig
from barkly_research.ingest.chunker.token_counting import count_words

logger = logging.getLogger(__name__)


def basic_chunking(text: str, chunk_size: int = 1000) -> list[DocumentChunk]:
    """Cut text into consecutive slices of ``chunk_size`` characters.

    Slices are not trimmed and may end mid-word; offsets are exact.

    Example:
        >>> [(c.start_char, c.end_char) for c in basic_chunking("x" * 25, 10)]
        [(0, 10), (10, 20), (20, 25)]
    """
    chunk_size = max(1, chunk_size)
    chunks: list[DocumentChunk] = []
    for index, start in enumerate(range(0, len(text), chunk_size)):
        end = min(start + chunk_size, len(text))
        piece = text[start:end]
        chunks.append(
            DocumentChunk(
                text=piece,
                start_char=start,
                end_char=end,
                index=index,
                word_count=count_words(piece),
                chunk_number=index + 1,
            )
        )
    for chunk in chunks:
        chunk.total_chunks = len(chunks)
    return chunks


def chunk_with_fallback(text: str, config: ChunkingConfig | None = None) -> list[DocumentChunk]:
    """Chunk text, degrading to simpler chunkers when needed.

    Order:
    1. AdaptiveChunker with ``config``
    2. DocumentChunker with default options, when step 1 raised or
       returned nothing for non-blank text
    3. basic_chunking, when step 2 raised or returned nothing

    Args:
        text: Raw document text
        config: Adaptive chunking configuration (default: ChunkingConfig())

    Returns:
        Chunks from the first step that produced any ([] for blank text)
    """
    if not text or not text.strip():
        return []

    try:
        chunks = from_adaptive_chunks(AdaptiveChunker(config).chunk_document(text))
        if chunks:
            return chunks
        logger.warning("Adaptive chunking produced no chunks, using character windows")
    except Exception as e:
        logger.warning(f"Adaptive chunking failed, using character windows: {e}", exc_info=True)

    try:
        chunks = DocumentChunker().chunk_document(text)
        if chunks:
            return chunks
        logger.warning("Character-window chunking produced no chunks, using fixed slices")
    except Exception as e:
        logger.warning(f"Character-window chunking failed, using fixed slices: {e}", exc_info=True)

    return basic_chunking(text)
