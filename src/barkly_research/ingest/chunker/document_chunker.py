"""Character-window document chunker.

A simpler companion to AdaptiveChunker: cuts raw text into windows of at
most ``max_chunk_size`` characters, preferring to end a window on a
paragraph break and then on a sentence end, and back-annotates page
numbers from page-break offsets supplied by the text extractor.

It also bundles the document-type presets of the adaptive chunker:
    chunk_document_adaptive     -> academic / conversational / technical / general
    analyze_and_chunk           -> detect the document type, then chunk
    create_hierarchical_chunks  -> coarse, fine and sentence-level views
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from barkly_research.ingest.chunker.core import AdaptiveChunker
from barkly_research.ingest.chunker.models import Chunk, ChunkingConfig
from barkly_research.ingest.chunker.structure import (
    ALL_CAPS_HEADER_PATTERN,
    MARKDOWN_HEADER_PATTERN,
    SENTENCE_PATTERN,
)
from barkly_research.ingest.chunker.token_counting import count_words

logger = logging.getLogger(__name__)

DocumentType = Literal["academic", "conversational", "technical", "general"]
BlockType = Literal["narrative", "list", "table", "mixed"]

_PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n")
_SENTENCE_BOUNDARY = re.compile(r"[.!?]\s+")
_SECTION_HEADER = re.compile(r"^(?:#{1,6}[ \t]+.+|.+\n[-=]{3,})$", re.MULTILINE)
_BULLET_LINE = re.compile(r"^[ \t]*(?:[-*•]|\d+\.)[ \t]+", re.MULTILINE)
_LONG_QUOTE = re.compile(r"\"[^\"]{10,}\"|'[^']{10,}'")
_DIALOGUE_QUOTE = re.compile(r"\"[^\"]{20,}\"")
_CODE_WORD = re.compile(r"\b(?:function|class)\b")

# Sentence length (words) separating academic from conversational prose
ACADEMIC_SENTENCE_WORDS = 15


@dataclass(frozen=True)
class ChunkOptions:
    """Options for DocumentChunker. Sizes are in characters.

    Attributes:
        max_chunk_size: Maximum characters per chunk (default: 1500)
        overlap_size: Characters shared by consecutive chunks (default: 150)
        preserve_sentences: End chunks on sentence boundaries when possible
        preserve_paragraphs: End chunks on paragraph breaks when possible
        min_chunk_size: Chunks with fewer characters are dropped (default: 50)
    """

    max_chunk_size: int = 1500
    overlap_size: int = 150
    preserve_sentences: bool = True
    preserve_paragraphs: bool = True
    min_chunk_size: int = 50

    def adaptive_config(self) -> ChunkingConfig:
        """ChunkingConfig used for the ``general`` document type."""
        return ChunkingConfig(
            min_chunk_size=self.min_chunk_size,
            max_chunk_size=self.max_chunk_size,
            target_chunk_size=(self.min_chunk_size + self.max_chunk_size) // 2,
            overlap_tokens=self.overlap_size // 5,
            preserve_sentences=self.preserve_sentences,
            preserve_paragraphs=self.preserve_paragraphs,
        )


@dataclass
class BlockMetadata:
    """Content flags for a DocumentChunk."""

    has_headers: bool = False
    has_bullet_points: bool = False
    has_quotes: bool = False
    content_type: BlockType = "narrative"
    header_text: str | None = None
    section_title: str | None = None
    semantic_density: float | None = None
    contextual_importance: float | None = None


@dataclass
class DocumentChunk:
    """Chunk produced by DocumentChunker.

    Attributes:
        text: Trimmed chunk text
        start_char: Window start in the input text
        end_char: Window end in the input text
        index: 0-based position in the output
        word_count: Words in text
        start_page: Page holding start_char (when page breaks are known)
        end_page: Page holding end_char (when page breaks are known)
        chunk_number: 1-based position, set for adaptive conversions
        total_chunks: Output length, set for adaptive conversions
        metadata: Content flags
    """

    text: str
    start_char: int
    end_char: int
    index: int = 0
    word_count: int = 0
    start_page: int | None = None
    end_page: int | None = None
    chunk_number: int | None = None
    total_chunks: int | None = None
    metadata: BlockMetadata = field(default_factory=BlockMetadata)


@dataclass(frozen=True)
class DocumentAnalysis:
    """Document characteristics used to pick a chunking preset."""

    document_type: DocumentType
    recommended_strategy: str
    average_sentence_length: float
    has_structure: bool
    content_density: float


@dataclass
class HierarchicalChunks:
    """Three chunkings of the same document at different granularities."""

    coarse: list[DocumentChunk]
    fine: list[DocumentChunk]
    sentences: list[DocumentChunk]


# =============================================================================
# HELPERS
# =============================================================================


def find_page_number(char_pos: int, page_breaks: list[int]) -> int:
    """Return the 1-based page holding ``char_pos``.

    ``page_breaks`` holds the ascending offsets at which each page ends; a
    position equal to a break belongs to the page that break closes.

    Examples:
        >>> find_page_number(0, [100, 200])
        1
        >>> find_page_number(100, [100, 200])
        1
        >>> find_page_number(150, [100, 200])
        2
        >>> find_page_number(250, [100, 200])
        3
    """
    return bisect.bisect_left(page_breaks, char_pos) + 1


def analyze_chunk_content(text: str) -> BlockMetadata:
    """Flag headers, bullet points, quotes and tables in a chunk."""
    has_headers = _SECTION_HEADER.search(text) is not None
    has_bullet_points = _BULLET_LINE.search(text) is not None
    has_quotes = _LONG_QUOTE.search(text) is not None

    content_type: BlockType = "narrative"
    if has_bullet_points and has_headers:
        content_type = "mixed"
    elif has_bullet_points:
        content_type = "list"
    elif "|" in text and "\n" in text:
        content_type = "table"

    return BlockMetadata(
        has_headers=has_headers,
        has_bullet_points=has_bullet_points,
        has_quotes=has_quotes,
        content_type=content_type,
    )


def from_adaptive_chunks(chunks: list[Chunk]) -> list[DocumentChunk]:
    """Convert AdaptiveChunker output to DocumentChunks."""
    converted: list[DocumentChunk] = []
    for index, chunk in enumerate(chunks):
        meta = chunk.metadata
        if meta.content_type == "text":
            block_type: BlockType = "narrative"
        elif meta.content_type == "list":
            block_type = "list"
        else:
            block_type = "mixed"
        converted.append(
            DocumentChunk(
                text=chunk.text,
                start_char=meta.start_char,
                end_char=meta.end_char,
                index=index,
                word_count=meta.word_count,
                chunk_number=meta.chunk_number,
                total_chunks=meta.total_chunks,
                metadata=BlockMetadata(
                    has_headers=meta.has_header,
                    header_text=meta.header_text,
                    content_type=block_type,
                    semantic_density=meta.semantic_density,
                    contextual_importance=meta.contextual_importance,
                ),
            )
        )
    return converted


def analyze_document(text: str) -> DocumentAnalysis:
    """Guess the document type from sentence length and structure cues.

    - academic: has headers and averages more than 15 words per sentence
    - conversational: has long double-quoted spans and shorter sentences
    - technical: has lists or mentions ``function`` / ``class``
    - general: anything else
    """
    sentences = [match.group(0) for match in SENTENCE_PATTERN.finditer(text) if match.group(0)[-1] in ".!?"]
    avg_sentence_length = sum(len(sentence.split()) for sentence in sentences) / max(1, len(sentences))
    has_headers = MARKDOWN_HEADER_PATTERN.search(text) is not None or ALL_CAPS_HEADER_PATTERN.search(text) is not None
    has_lists = _BULLET_LINE.search(text) is not None
    has_quotes = _DIALOGUE_QUOTE.search(text) is not None

    document_type: DocumentType = "general"
    recommended_strategy = "hybrid"
    if has_headers and avg_sentence_length > ACADEMIC_SENTENCE_WORDS:
        document_type = "academic"
        recommended_strategy = "structural"
    elif has_quotes and avg_sentence_length < ACADEMIC_SENTENCE_WORDS:
        document_type = "conversational"
        recommended_strategy = "semantic"
    elif has_lists or _CODE_WORD.search(text):
        document_type = "technical"

    words = text.split()
    content_density = len({word.lower() for word in words}) / max(1, len(words))

    return DocumentAnalysis(
        document_type=document_type,
        recommended_strategy=recommended_strategy,
        average_sentence_length=avg_sentence_length,
        has_structure=has_headers or has_lists,
        content_density=content_density,
    )


# =============================================================================
# CHUNKER
# =============================================================================


class DocumentChunker:
    """Character-window chunker with paragraph and sentence preference.

    Example:
        >>> chunker = DocumentChunker(ChunkOptions(max_chunk_size=800))
        >>> chunks = chunker.chunk_document(text, page_breaks=[3000, 6100])
        >>> chunks[0].start_page
        1
    """

    def __init__(self, options: ChunkOptions | None = None) -> None:
        self.options = options or ChunkOptions()
        self.adaptive_chunker = AdaptiveChunker(self.options.adaptive_config())

    # -------------------------------------------------------------------------
    # Character windows
    # -------------------------------------------------------------------------

    def chunk_document(self, text: str, page_breaks: list[int] | None = None) -> list[DocumentChunk]:
        """Cut text into overlapping character windows.

        Each window starts ``overlap_size`` characters before the previous
        one ended (never at or before the previous start) and chunking stops
        once a window reaches the end of the text. Windows whose trimmed text
        is shorter than ``min_chunk_size`` characters are dropped.

        Args:
            text: Document text
            page_breaks: Ascending character offsets where pages end

        Returns:
            Chunks in document order ([] for blank text)
        """
        if not text or not text.strip():
            return []

        chunks: list[DocumentChunk] = []
        position = 0
        while position < len(text):
            chunk = self._extract_chunk(text, position, page_breaks)
            if len(chunk.text) >= self.options.min_chunk_size:
                chunk.index = len(chunks)
                chunks.append(chunk)

            if chunk.end_char >= len(text):
                break
            next_position = chunk.end_char - self.options.overlap_size
            position = next_position if next_position > chunk.start_char else chunk.end_char

        return chunks

    def _extract_chunk(self, text: str, start: int, page_breaks: list[int] | None) -> DocumentChunk:
        max_end = min(start + max(1, self.options.max_chunk_size), len(text))
        end = max_end

        if max_end < len(text):
            if self.options.preserve_paragraphs:
                paragraph_end = self._find_paragraph_boundary(text, start, max_end)
                if paragraph_end > start + self.options.min_chunk_size:
                    end = paragraph_end

            if self.options.preserve_sentences and end == max_end:
                sentence_end = self._find_sentence_boundary(text, start, max_end)
                if sentence_end > start + self.options.min_chunk_size:
                    end = sentence_end

        chunk_text = text[start:end].strip()
        return DocumentChunk(
            text=chunk_text,
            start_char=start,
            end_char=end,
            word_count=count_words(chunk_text),
            start_page=find_page_number(start, page_breaks) if page_breaks else None,
            end_page=find_page_number(end, page_breaks) if page_breaks else None,
            metadata=analyze_chunk_content(chunk_text),
        )

    @staticmethod
    def _find_paragraph_boundary(text: str, start: int, max_end: int) -> int:
        """Offset just past the last paragraph break in text[start:max_end]."""
        boundary = max_end
        for match in _PARAGRAPH_BOUNDARY.finditer(text, start, max_end):
            boundary = match.end()
        return boundary

    @staticmethod
    def _find_sentence_boundary(text: str, start: int, max_end: int) -> int:
        """Offset just past the last sentence end strictly before max_end."""
        boundary = max_end
        for match in _SENTENCE_BOUNDARY.finditer(text, start, max_end):
            if match.end() < max_end:
                boundary = match.end()
        return boundary

    def create_sliding_window_chunks(
        self, text: str, window_size: int = 1000, stride: int = 500
    ) -> list[DocumentChunk]:
        """Cut text into fixed windows of ``window_size`` characters every ``stride``.

        Windows ignore paragraph and sentence boundaries. The last window is
        the first one that reaches the end of the text.
        """
        window_size = max(1, window_size)
        stride = max(1, stride)
        chunks: list[DocumentChunk] = []

        position = 0
        while position < len(text):
            end = min(position + window_size, len(text))
            chunk_text = text[position:end].strip()
            if len(chunk_text) >= self.options.min_chunk_size:
                chunks.append(
                    DocumentChunk(
                        text=chunk_text,
                        start_char=position,
                        end_char=end,
                        index=len(chunks),
                        word_count=count_words(chunk_text),
                        metadata=analyze_chunk_content(chunk_text),
                    )
                )
            if end >= len(text):
                break
            position += stride

        return chunks

    def create_semantic_chunks(self, text: str, page_breaks: list[int] | None = None) -> list[DocumentChunk]:
        """Chunk each Markdown/setext section separately.

        Windows never cross a section header. Offsets and page numbers refer
        to the whole document, and every chunk records its section title.
        """
        chunks: list[DocumentChunk] = []
        for title, start, end in self._split_by_sections(text):
            for chunk in self.chunk_document(text[start:end]):
                chunk.start_char += start
                chunk.end_char += start
                if page_breaks:
                    chunk.start_page = find_page_number(chunk.start_char, page_breaks)
                    chunk.end_page = find_page_number(chunk.end_char, page_breaks)
                chunk.metadata.section_title = title
                chunk.index = len(chunks)
                chunks.append(chunk)
        return chunks

    @staticmethod
    def _split_by_sections(text: str) -> list[tuple[str | None, int, int]]:
        """Return (title, start, end) of every non-blank header-delimited section."""
        starts = [0] + [match.start() for match in _SECTION_HEADER.finditer(text) if match.start() > 0]
        sections: list[tuple[str | None, int, int]] = []
        for i, raw_start in enumerate(starts):
            raw_end = starts[i + 1] if i + 1 < len(starts) else len(text)
            body = text[raw_start:raw_end]
            stripped = body.strip()
            if not stripped:
                continue
            start = raw_start + (len(body) - len(body.lstrip()))
            end = raw_start + len(body.rstrip())
            header = _SECTION_HEADER.match(text, start)
            title = header.group(0).split("\n")[0].lstrip("#").strip() if header else None
            sections.append((title, start, end))
        return sections

    # -------------------------------------------------------------------------
    # Adaptive presets
    # -------------------------------------------------------------------------

    def chunk_document_adaptive(self, text: str, document_type: DocumentType = "general") -> list[DocumentChunk]:
        """Chunk with the adaptive chunker preset for ``document_type``.

        ``general`` uses a config derived from this chunker's options.
        """
        if document_type == "academic":
            chunker = AdaptiveChunker(ChunkingConfig.for_academic_papers())
        elif document_type == "conversational":
            chunker = AdaptiveChunker(ChunkingConfig.for_conversational_data())
        elif document_type == "technical":
            chunker = AdaptiveChunker(ChunkingConfig.for_technical_documents())
        else:
            chunker = self.adaptive_chunker
        return from_adaptive_chunks(chunker.chunk_document(text))

    def create_embedding_optimized_chunks(self, text: str) -> list[DocumentChunk]:
        """Small, heavily overlapping sliding windows for embedding."""
        chunker = AdaptiveChunker(ChunkingConfig.for_maximum_coverage())
        return from_adaptive_chunks(chunker.chunk_document(text))

    def create_hierarchical_chunks(self, text: str) -> HierarchicalChunks:
        """Chunk the document at three granularities.

        - coarse: structural, 500-2000 words
        - fine: hybrid, 100-500 words, 15% overlap
        - sentences: semantic, 10-100 words
        """
        coarse = ChunkingConfig(
            min_chunk_size=500,
            max_chunk_size=2000,
            target_chunk_size=1000,
            preserve_sections=True,
            strategy="structural",
        )
        fine = ChunkingConfig(
            min_chunk_size=100,
            max_chunk_size=500,
            target_chunk_size=300,
            overlap_percentage=15,
            strategy="hybrid",
        )
        sentences = ChunkingConfig(
            min_chunk_size=10,
            max_chunk_size=100,
            target_chunk_size=50,
            preserve_sentences=True,
            strategy="semantic",
        )
        return HierarchicalChunks(
            coarse=from_adaptive_chunks(AdaptiveChunker(coarse).chunk_document(text)),
            fine=from_adaptive_chunks(AdaptiveChunker(fine).chunk_document(text)),
            sentences=from_adaptive_chunks(AdaptiveChunker(sentences).chunk_document(text)),
        )

    def analyze_and_chunk(self, text: str) -> tuple[DocumentAnalysis, list[DocumentChunk]]:
        """Detect the document type, then chunk with its preset.

        Returns:
            Tuple of (analysis, chunks)
        """
        analysis = analyze_document(text)
        logger.debug(
            f"Detected {analysis.document_type} document "
            f"(avg sentence {analysis.average_sentence_length:.1f} words)"
        )
        return analysis, self.chunk_document_adaptive(text, analysis.document_type)
