"""Core data models for the adaptive chunking pipeline.

This module contains the dataclasses used throughout the chunking process:
- ChunkingConfig: Immutable configuration for one chunker instance
- HeuristicWeights: Tunable constants for importance and relatedness scoring
- Header, Paragraph, Sentence, ListItem, Quote, CodeBlock: Structure elements
- DocumentStructure: Index of structure elements detected in a document
- Segment: An unpadded chunk produced by a chunking strategy
- ChunkMetadata / Chunk: Final output of the pipeline
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Literal, get_args

if TYPE_CHECKING:
    from barkly_research.config import ResearchConfig

Strategy = Literal["semantic", "structural", "hybrid", "sliding"]
"""Chunk construction strategy selected by the router."""

ContentType = Literal["text", "list", "code", "quote", "mixed"]
"""Dominant content classification of a chunk."""

ListType = Literal["bullet", "numbered", "lettered"]
"""Marker style of a detected list item."""

STRATEGIES: tuple[str, ...] = get_args(Strategy)


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class HeuristicWeights:
    """Heuristic constants used by metadata enrichment and relatedness.

    Attributes:
        related_threshold: Jaccard overlap above which two chunks are related
        base_importance: Starting contextual importance score
        header_boost: Added when the chunk contains a header
        keyword_boost: Added per distinct importance keyword found
        max_keyword_boost: Cap on the total keyword contribution
        question_boost: Added when the chunk contains a question mark
        header_search_chars: Window at the start of a chunk searched for headers
    """

    related_threshold: float = 0.3
    base_importance: float = 0.5
    header_boost: float = 0.2
    keyword_boost: float = 0.1
    max_keyword_boost: float = 0.3
    question_boost: float = 0.1
    header_search_chars: int = 100


@dataclass(frozen=True)
class ChunkingConfig:
    """Configuration for adaptive chunking.

    All sizes are measured in whitespace-separated words.

    Attributes:
        min_chunk_size: Chunks below this are merge candidates (default: 100)
        max_chunk_size: Hard ceiling for a chunk (default: 1500)
        target_chunk_size: Preferred size before closing a chunk (default: 750)
        overlap_tokens: Words of context copied from each neighbour (default: 50)
        overlap_percentage: Share of a buffer carried into the next semantic
            chunk, and the window overlap of the sliding strategy (default: 10)
        preserve_sentences: Cut on sentence boundaries; off, text is cut
            into word windows of target_chunk_size (default: True)
        preserve_paragraphs: Accumulate whole paragraphs when there are no
            sections; off, sentences are accumulated (default: True)
        preserve_sections: Chunk by header sections; off, sectioned text is
            accumulated like headerless text (default: True)
        detect_headers: Enable header detection (default: True)
        detect_lists: Enable list item detection (default: True)
        detect_code_blocks: Enable fenced code block detection (default: True)
        detect_quotes: Enable quote detection (default: True)
        strategy: One of semantic, structural, hybrid, sliding (default: hybrid)
        weights: Heuristic scoring constants
    """

    min_chunk_size: int = 100
    max_chunk_size: int = 1500
    target_chunk_size: int = 750
    overlap_tokens: int = 50
    overlap_percentage: int = 10
    preserve_sentences: bool = True
    preserve_paragraphs: bool = True
    preserve_sections: bool = True
    detect_headers: bool = True
    detect_lists: bool = True
    detect_code_blocks: bool = True
    detect_quotes: bool = True
    strategy: Strategy = "hybrid"
    weights: HeuristicWeights = field(default_factory=HeuristicWeights)

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown chunking strategy: {self.strategy!r} (expected one of {STRATEGIES})"
            )

    def normalized(self) -> ChunkingConfig:
        """Return a copy with nonsensical size combinations clamped.

        Guarantees 1 <= min <= target <= max, overlap_tokens >= 0 and
        0 <= overlap_percentage <= 99.
        """
        min_size = max(1, self.min_chunk_size)
        max_size = max(min_size, self.max_chunk_size)
        target = min(max(self.target_chunk_size, min_size), max_size)
        return replace(
            self,
            min_chunk_size=min_size,
            max_chunk_size=max_size,
            target_chunk_size=target,
            overlap_tokens=max(0, self.overlap_tokens),
            overlap_percentage=min(max(0, self.overlap_percentage), 99),
        )

    # -------------------------------------------------------------------------
    # Presets
    # -------------------------------------------------------------------------

    @classmethod
    def for_academic_papers(cls) -> ChunkingConfig:
        """Section-driven chunks for papers with clear headings."""
        return cls(
            min_chunk_size=200,
            max_chunk_size=800,
            target_chunk_size=500,
            preserve_sections=True,
            detect_headers=True,
            strategy="structural",
        )

    @classmethod
    def for_conversational_data(cls) -> ChunkingConfig:
        """Smaller sentence-driven chunks for transcripts and interviews."""
        return cls(
            min_chunk_size=100,
            max_chunk_size=400,
            target_chunk_size=250,
            preserve_sentences=True,
            detect_quotes=True,
            strategy="semantic",
        )

    @classmethod
    def for_technical_documents(cls) -> ChunkingConfig:
        """Hybrid chunks with list and code detection."""
        return cls(
            min_chunk_size=150,
            max_chunk_size=600,
            target_chunk_size=400,
            detect_code_blocks=True,
            detect_lists=True,
            strategy="hybrid",
        )

    @classmethod
    def for_maximum_coverage(cls) -> ChunkingConfig:
        """Heavily overlapping sliding windows for embedding recall."""
        return cls(
            min_chunk_size=50,
            max_chunk_size=500,
            target_chunk_size=250,
            overlap_percentage=20,
            preserve_sentences=True,
            strategy="sliding",
        )

    @classmethod
    def from_project_config(cls, project: ResearchConfig | None = None) -> ChunkingConfig:
        """Build a config from the [tool.barkly-research] pyproject settings.

        Args:
            project: Loaded project config (default: load_config())

        Returns:
            ChunkingConfig carrying the project's chunking defaults
        """
        if project is None:
            from barkly_research.config import load_config

            project = load_config()
        return cls(
            min_chunk_size=project.chunk_min_words,
            max_chunk_size=project.chunk_max_words,
            target_chunk_size=project.chunk_target_words,
            overlap_tokens=project.chunk_overlap_tokens,
            overlap_percentage=project.chunk_overlap_percentage,
            strategy=project.chunk_strategy,
            weights=HeuristicWeights(related_threshold=project.related_threshold),
        )


PRESETS: dict[str, str] = {
    "academic": "for_academic_papers",
    "conversational": "for_conversational_data",
    "technical": "for_technical_documents",
    "coverage": "for_maximum_coverage",
}
"""Preset names accepted by the CLI, mapped to ChunkingConfig constructors."""


# =============================================================================
# DOCUMENT STRUCTURE
# =============================================================================


@dataclass(frozen=True)
class Header:
    """Detected header line.

    Attributes:
        text: Header text without Markdown markers
        position: Offset of the header line in the normalized text
        level: Nesting level (1 = top)
    """

    text: str
    position: int
    level: int


@dataclass(frozen=True)
class Paragraph:
    """Blank-line delimited block of text."""

    text: str
    position: int
    end_position: int


@dataclass(frozen=True)
class Sentence:
    """Run of text ending in sentence punctuation (or the end of text)."""

    text: str
    position: int
    end_position: int


@dataclass(frozen=True)
class ListItem:
    """Line starting with a bullet, number or letter marker."""

    text: str
    position: int
    type: ListType


@dataclass(frozen=True)
class Quote:
    """Quoted span or Markdown blockquote line.

    Attributes:
        text: Quoted content without the quote marks
        position: Offset of the opening mark
        full_match: Quoted span including the marks
    """

    text: str
    position: int
    full_match: str


@dataclass(frozen=True)
class CodeBlock:
    """Fenced code block."""

    text: str
    position: int
    end_position: int
    language: str | None = None


@dataclass(frozen=True)
class DocumentStructure:
    """Read-only index of the structure elements found in a text."""

    headers: tuple[Header, ...] = ()
    paragraphs: tuple[Paragraph, ...] = ()
    sentences: tuple[Sentence, ...] = ()
    list_items: tuple[ListItem, ...] = ()
    quotes: tuple[Quote, ...] = ()
    code_blocks: tuple[CodeBlock, ...] = ()


# =============================================================================
# CHUNKS
# =============================================================================


@dataclass(frozen=True)
class Segment:
    """Unpadded chunk produced by a strategy.

    Attributes:
        text: Trimmed chunk text
        start_char: Offset of the first character in the normalized text
        end_char: Offset one past the last character
        header_text: Header owning this segment, if it opens a section
        header_level: Level of that header
    """

    text: str
    start_char: int
    end_char: int
    header_text: str | None = None
    header_level: int | None = None

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass
class ChunkMetadata:
    """Metadata computed for a final chunk.

    Attributes:
        chunk_number: 1-based position in the output
        total_chunks: Number of chunks produced for the document
        start_char: Start of the chunk's own span (excluding overlap padding)
        end_char: End of the chunk's own span
        word_count: Words in the final (padded) text
        sentence_count: Sentences in the final text
        has_header: Whether the chunk opens with a known header
        header_text: That header's text
        header_level: That header's level
        content_type: text, list, code, quote or mixed
        semantic_density: Unique-word ratio (0-1)
        contextual_importance: Heuristic importance score (0-1)
        avg_sentence_length: Mean words per sentence
        key_terms: Most frequent non-stop-word terms
        estimated_tokens: tiktoken count of the final text
    """

    chunk_number: int
    total_chunks: int
    start_char: int
    end_char: int
    word_count: int
    sentence_count: int = 0
    has_header: bool = False
    header_text: str | None = None
    header_level: int | None = None
    content_type: ContentType = "text"
    semantic_density: float = 0.0
    contextual_importance: float = 0.0
    avg_sentence_length: float = 0.0
    key_terms: list[str] = field(default_factory=list)
    estimated_tokens: int = 0


@dataclass
class Chunk:
    """Single output chunk.

    Attributes:
        text: Chunk text including overlap padding (what gets embedded)
        metadata: Computed metadata
        related_chunks: 0-based indices of chunks with overlapping keywords
    """

    text: str
    metadata: ChunkMetadata
    related_chunks: list[int] = field(default_factory=list)
