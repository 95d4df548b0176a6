"""Adaptive chunker entry points.

Pipeline per call:
    raw text -> normalize_text -> analyze_structure -> route -> finalize

Nothing is cached between calls; an AdaptiveChunker holds only its
normalized configuration and may be shared across threads.
"""

from __future__ import annotations

import logging

from barkly_research.ingest.chunker.models import Chunk, ChunkingConfig, DocumentStructure
from barkly_research.ingest.chunker.postprocess import finalize
from barkly_research.ingest.chunker.preprocessing import normalize_text
from barkly_research.ingest.chunker.strategies import route
from barkly_research.ingest.chunker.structure import analyze_structure

logger = logging.getLogger(__name__)


class AdaptiveChunker:
    """Structure-aware document chunker.

    Example:
        >>> chunker = AdaptiveChunker(ChunkingConfig.for_academic_papers())
        >>> chunks = chunker.chunk_document(paper_text)
        >>> chunks[0].metadata.chunk_number
        1
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        """Create a chunker.

        Args:
            config: Chunking configuration (default: ChunkingConfig()). Size
                combinations that make no sense are clamped, not rejected.
        """
        self.config = (config or ChunkingConfig()).normalized()

    def preprocess(self, text: str) -> str:
        """Return the normalized text all offsets refer to."""
        return normalize_text(text)

    def analyze(self, text: str) -> DocumentStructure:
        """Normalize text and return its structure index."""
        return analyze_structure(self.preprocess(text), self.config)

    def chunk_document(self, text: str) -> list[Chunk]:
        """Split a document into enriched, numbered chunks.

        Args:
            text: Raw document text

        Returns:
            Chunks in document order; [] for empty or whitespace-only text
        """
        normalized = self.preprocess(text)
        if not normalized:
            return []

        structure = analyze_structure(normalized, self.config)
        logger.debug(
            f"Structure: {len(structure.headers)} headers, {len(structure.paragraphs)} paragraphs, "
            f"{len(structure.sentences)} sentences"
        )

        segments = route(normalized, structure, self.config)
        chunks = finalize(normalized, segments, structure, self.config)
        logger.debug(f"Produced {len(chunks)} chunks with strategy {self.config.strategy!r}")
        return chunks


def chunk_text_adaptive(text: str, config: ChunkingConfig | None = None) -> list[Chunk]:
    """Chunk text with a one-off AdaptiveChunker.

    Args:
        text: Raw document text
        config: Chunking configuration (default: ChunkingConfig())

    Returns:
        Chunks in document order
    """
    return AdaptiveChunker(config).chunk_document(text)
