"""Chunker package - adaptive, structure-aware document chunking.

Splits long document text into ordered, overlapping chunks sized for
embedding and retrieval, with per-chunk metadata and relatedness links.

Public API:
- ChunkingConfig: Frozen configuration dataclass (with presets)
- HeuristicWeights: Scoring constants for importance and relatedness
- Chunk / ChunkMetadata: Pipeline output
- DocumentStructure: Detected headers, paragraphs, sentences, lists, quotes
- AdaptiveChunker / chunk_text_adaptive: Main chunking entry points
- analyze_structure / normalize_text: Pipeline stages
- DocumentChunker: Character-window chunker with page numbers
- basic_chunking / chunk_with_fallback: Degrading chunking path
- count_tokens / count_words: Size utilities
"""

# Core chunking
from barkly_research.ingest.chunker.core import AdaptiveChunker, chunk_text_adaptive

# Character windows and presets
from barkly_research.ingest.chunker.document_chunker import (
    ChunkOptions,
    DocumentAnalysis,
    DocumentChunk,
    DocumentChunker,
    HierarchicalChunks,
    analyze_document,
)

# Degradation
from barkly_research.ingest.chunker.fallback import basic_chunking, chunk_with_fallback

# Models
from barkly_research.ingest.chunker.models import (
    PRESETS,
    STRATEGIES,
    Chunk,
    ChunkingConfig,
    ChunkMetadata,
    DocumentStructure,
    HeuristicWeights,
    Segment,
)

# Post-processing
from barkly_research.ingest.chunker.postprocess import finalize, keyword_overlap

# Preprocessing and structure
from barkly_research.ingest.chunker.preprocessing import normalize_text

# Strategies
from barkly_research.ingest.chunker.strategies import STRATEGY_REGISTRY, route
from barkly_research.ingest.chunker.structure import analyze_structure

# Token counting
from barkly_research.ingest.chunker.token_counting import count_tokens, count_words

__all__ = [
    # Constants
    "PRESETS",
    "STRATEGIES",
    "STRATEGY_REGISTRY",
    # Models
    "Chunk",
    "ChunkMetadata",
    "ChunkOptions",
    "ChunkingConfig",
    "DocumentAnalysis",
    "DocumentChunk",
    "DocumentStructure",
    "HeuristicWeights",
    "HierarchicalChunks",
    "Segment",
    # Public API - Chunking
    "AdaptiveChunker",
    "DocumentChunker",
    "basic_chunking",
    "chunk_text_adaptive",
    "chunk_with_fallback",
    # Public API - Pipeline stages
    "analyze_document",
    "analyze_structure",
    "finalize",
    "normalize_text",
    "route",
    # Public API - Utilities
    "count_tokens",
    "count_words",
    "keyword_overlap",
]
