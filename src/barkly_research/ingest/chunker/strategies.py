"""Chunk construction strategies.

Four strategies turn normalized text plus its structure index into an
ordered list of unpadded segments:

- semantic:   accumulate sentences, break on size or on transition words
- structural: one segment per header section, or paragraph accumulation
              when the document has no headers
- sliding:    fixed word windows, ignoring all structure
- hybrid:     structural for well-sectioned documents, semantic otherwise,
              with oversized sections re-split semantically

The ``preserve_*`` flags of ChunkingConfig drop one boundary level each:
sections fall back to paragraph accumulation, paragraphs to sentence
accumulation, sentences to word windows of target_chunk_size. Sliding
windows ignore them.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable

from barkly_research.ingest.chunker.models import (
    ChunkingConfig,
    DocumentStructure,
    Header,
    Segment,
)
from barkly_research.ingest.chunker.structure import analyze_structure
from barkly_research.ingest.chunker.text_splitting import (
    UnitBuffer,
    bounded_sentences,
    hard_split,
    make_segment,
    merge_small_segments,
    shift_segment,
    split_large_section,
)
from barkly_research.ingest.chunker.token_counting import count_words, word_spans

logger = logging.getLogger(__name__)

TRANSITION_PHRASES: tuple[str, ...] = (
    "however",
    "furthermore",
    "moreover",
    "nevertheless",
    "in conclusion",
    "in summary",
    "therefore",
    "thus",
    "on the other hand",
    "in contrast",
    "alternatively",
)

_TRANSITION_PATTERN = re.compile(
    r"^(?:" + "|".join(re.escape(phrase) for phrase in TRANSITION_PHRASES) + r")\b",
    re.IGNORECASE,
)

# Hybrid treats a document as sectioned only above this many headers
HYBRID_HEADER_THRESHOLD = 2

MAX_RESPLIT_DEPTH = 3

StrategyFn = Callable[[str, DocumentStructure, ChunkingConfig], list[Segment]]


def is_semantic_boundary(next_sentence: str | None) -> bool:
    """Check whether a sentence opens with a topic-shift transition.

    Examples:
        >>> is_semantic_boundary("However, the elders disagreed.")
        True
        >>> is_semantic_boundary("The elders disagreed.")
        False
    """
    if not next_sentence:
        return False
    return _TRANSITION_PATTERN.match(next_sentence.lstrip()) is not None


def overlap_tail(buffer: UnitBuffer, overlap_percentage: int) -> UnitBuffer:
    """Return the trailing units of buffer that fit in the overlap budget.

    The budget is ``overlap_percentage`` percent of the buffer's word count.
    The tail never holds the whole buffer, so the next chunk always starts
    after the previous one.
    """
    budget = math.floor(buffer.words * overlap_percentage / 100)
    tail: list = []
    words = 0
    for unit in reversed(buffer.units[1:]):
        unit_words = count_words(unit.text)
        if words + unit_words > budget:
            break
        tail.insert(0, unit)
        words += unit_words
    return UnitBuffer(units=tuple(tail), words=words)


# =============================================================================
# SEMANTIC
# =============================================================================


def semantic_chunks(text: str, structure: DocumentStructure, config: ChunkingConfig) -> list[Segment]:
    """Accumulate sentences into segments.

    A segment closes when:
    1. Adding the next sentence would exceed max_chunk_size. The next segment
       then starts with an overlap tail of the closed buffer.
    2. The next sentence opens with a transition phrase and the buffer
       already holds min_chunk_size words.

    With ``preserve_sentences`` off the text is cut into word windows of
    target_chunk_size instead.

    Args:
        text: Normalized document text
        structure: Structure index of text
        config: Chunking configuration

    Returns:
        Segments in document order
    """
    if not config.preserve_sentences:
        return hard_split(text, 0, len(text), config.target_chunk_size)

    sentences = bounded_sentences(text, structure.sentences, config.max_chunk_size)
    if not sentences:
        return hard_split(text, 0, len(text), config.target_chunk_size)

    segments: list[Segment] = []
    buffer = UnitBuffer()

    for i, sentence in enumerate(sentences):
        words = count_words(sentence.text)

        if buffer.units and buffer.words + words > config.max_chunk_size:
            segment = buffer.to_segment(text)
            if segment is not None:
                segments.append(segment)
            buffer = overlap_tail(buffer, config.overlap_percentage)
            if buffer.words + words > config.max_chunk_size:
                buffer = UnitBuffer()

        buffer = buffer.push(sentence, words)

        next_text = sentences[i + 1].text if i + 1 < len(sentences) else None
        if buffer.words >= config.min_chunk_size and is_semantic_boundary(next_text):
            segment = buffer.to_segment(text)
            if segment is not None:
                segments.append(segment)
            buffer = UnitBuffer()

    segment = buffer.to_segment(text)
    if segment is not None:
        segments.append(segment)
    return segments


# =============================================================================
# STRUCTURAL
# =============================================================================


def paragraph_chunks(text: str, structure: DocumentStructure, config: ChunkingConfig) -> list[Segment]:
    """Accumulate paragraphs into segments (structural fallback without headers).

    A paragraph that would push the buffer past max_chunk_size starts a new
    segment; a buffer reaching target_chunk_size is closed. Paragraphs larger
    than max_chunk_size are split sentence by sentence.

    With ``preserve_paragraphs`` off sentences are accumulated the same way,
    ignoring paragraph breaks. With ``preserve_sentences`` off as well the
    text is cut into word windows of target_chunk_size.
    """
    if config.preserve_paragraphs:
        units = list(structure.paragraphs)
    elif config.preserve_sentences:
        units = bounded_sentences(text, structure.sentences, config.max_chunk_size)
    else:
        return hard_split(text, 0, len(text), config.target_chunk_size)

    segments: list[Segment] = []
    buffer = UnitBuffer()

    def flush() -> None:
        segment = buffer.to_segment(text)
        if segment is not None:
            segments.append(segment)

    for unit in units:
        words = count_words(unit.text)

        if words > config.max_chunk_size:
            flush()
            buffer = UnitBuffer()
            oversized = make_segment(text, unit.position, unit.end_position)
            if oversized is not None:
                segments.extend(split_large_section(text, oversized, config))
            continue

        if buffer.units and buffer.words + words > config.max_chunk_size:
            flush()
            buffer = UnitBuffer()

        buffer = buffer.push(unit, words)

        if buffer.words >= config.target_chunk_size:
            flush()
            buffer = UnitBuffer()

    flush()
    return segments


def section_segments(text: str, headers: tuple[Header, ...]) -> list[Segment]:
    """Cut text into header-delimited sections.

    Text before the first header becomes a headerless preamble section.
    Each section runs from its header to the next header (or end of text).
    """
    sections: list[Segment] = []
    preamble = make_segment(text, 0, headers[0].position)
    if preamble is not None:
        sections.append(preamble)

    for i, header in enumerate(headers):
        end = headers[i + 1].position if i + 1 < len(headers) else len(text)
        section = make_segment(text, header.position, end, header)
        if section is not None:
            sections.append(section)
    return sections


def structural_chunks(
    text: str,
    structure: DocumentStructure,
    config: ChunkingConfig,
    split_oversized: bool = True,
) -> list[Segment]:
    """Chunk by header sections, falling back to paragraph accumulation.

    The fallback also applies when ``preserve_sections`` is off.

    Args:
        text: Normalized document text
        structure: Structure index of text
        config: Chunking configuration
        split_oversized: Split sections above max_chunk_size sentence by
            sentence (the hybrid strategy re-splits them itself)

    Returns:
        Segments in document order
    """
    if not structure.headers or not config.preserve_sections:
        return paragraph_chunks(text, structure, config)

    segments: list[Segment] = []
    for section in section_segments(text, structure.headers):
        if split_oversized and section.word_count > config.max_chunk_size:
            segments.extend(split_large_section(text, section, config))
        else:
            segments.append(section)
    return segments


# =============================================================================
# SLIDING
# =============================================================================


def sliding_step(config: ChunkingConfig) -> int:
    """Words between window starts: target * (1 - overlap_percentage / 100)."""
    return max(1, math.floor(config.target_chunk_size * (1 - config.overlap_percentage / 100)))


def sliding_chunks(text: str, structure: DocumentStructure, config: ChunkingConfig) -> list[Segment]:
    """Slide a window of target_chunk_size words over the text.

    Windows shorter than min_chunk_size are dropped. If that leaves the last
    words uncovered, a final full-size window ending at the last word is
    added; text shorter than min_chunk_size forms a single window.
    """
    spans = word_spans(text)
    if not spans:
        return []

    window = config.target_chunk_size
    step = sliding_step(config)
    segments: list[Segment] = []

    def add_window(group: list[tuple[int, int]]) -> None:
        segments.append(
            Segment(text=text[group[0][0] : group[-1][1]], start_char=group[0][0], end_char=group[-1][1])
        )

    for i in range(0, len(spans), step):
        group = spans[i : i + window]
        if len(group) < config.min_chunk_size:
            continue
        add_window(group)

    if not segments:
        add_window(spans[:window])
    elif segments[-1].end_char < spans[-1][1]:
        add_window(spans[-window:])
    return segments


# =============================================================================
# HYBRID
# =============================================================================


def resplit_semantic(segment: Segment, config: ChunkingConfig, depth: int = 0) -> list[Segment]:
    """Re-split an oversized segment with a fresh structure pass.

    The segment's text is analyzed on its own and chunked semantically; the
    resulting pieces are shifted back into document coordinates and the
    first piece inherits the segment's header.
    """
    if depth >= MAX_RESPLIT_DEPTH:
        pieces = hard_split(segment.text, 0, len(segment.text), config.max_chunk_size)
        return [shift_segment(piece, segment.start_char) for piece in pieces]

    sub_structure = analyze_structure(segment.text, config)
    pieces: list[Segment] = []
    for piece in semantic_chunks(segment.text, sub_structure, config):
        shifted = shift_segment(piece, segment.start_char)
        if shifted.word_count > config.max_chunk_size:
            pieces.extend(resplit_semantic(shifted, config, depth + 1))
        else:
            pieces.append(shifted)

    if pieces and segment.header_text is not None:
        first = pieces[0]
        pieces[0] = Segment(
            text=first.text,
            start_char=first.start_char,
            end_char=first.end_char,
            header_text=segment.header_text,
            header_level=segment.header_level,
        )
    return pieces


def hybrid_chunks(text: str, structure: DocumentStructure, config: ChunkingConfig) -> list[Segment]:
    """Structural chunking for sectioned documents, semantic otherwise.

    With more than two headers (and ``preserve_sections`` on) the document is
    split into sections and any section above max_chunk_size is re-split
    semantically. Adjacent undersized segments are then merged.
    """
    if config.preserve_sections and len(structure.headers) > HYBRID_HEADER_THRESHOLD:
        logger.debug(f"Hybrid: {len(structure.headers)} headers, splitting by section")
        segments: list[Segment] = []
        for section in structural_chunks(text, structure, config, split_oversized=False):
            if section.word_count > config.max_chunk_size:
                segments.extend(resplit_semantic(section, config))
            else:
                segments.append(section)
    else:
        logger.debug(f"Hybrid: {len(structure.headers)} headers, splitting by sentence")
        segments = semantic_chunks(text, structure, config)

    return merge_small_segments(segments, config, text)


STRATEGY_REGISTRY: dict[str, StrategyFn] = {
    "semantic": semantic_chunks,
    "structural": structural_chunks,
    "sliding": sliding_chunks,
    "hybrid": hybrid_chunks,
}


def route(text: str, structure: DocumentStructure, config: ChunkingConfig) -> list[Segment]:
    """Run the strategy selected by ``config.strategy``."""
    strategy_fn = STRATEGY_REGISTRY[config.strategy]
    segments = strategy_fn(text, structure, config)
    logger.debug(f"Strategy {config.strategy!r} produced {len(segments)} segments")
    return segments
