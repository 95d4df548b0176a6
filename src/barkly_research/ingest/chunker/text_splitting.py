"""Span-level splitting helpers shared by the chunking strategies.

Every helper works on offsets into the normalized text, so segment text is
always an exact slice of that text and offsets never drift.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from barkly_research.ingest.chunker.models import (
    ChunkingConfig,
    Header,
    Paragraph,
    Segment,
    Sentence,
)
from barkly_research.ingest.chunker.structure import find_sentences
from barkly_research.ingest.chunker.token_counting import count_words, word_spans

Unit = Sentence | Paragraph


def make_segment(text: str, start: int, end: int, header: Header | None = None) -> Segment | None:
    """Create a Segment for text[start:end] with surrounding whitespace trimmed.

    Args:
        text: Normalized document text
        start: Span start
        end: Span end (exclusive)
        header: Header opening this span, if any

    Returns:
        Segment, or None if the span holds only whitespace
    """
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if end <= start:
        return None
    return Segment(
        text=text[start:end],
        start_char=start,
        end_char=end,
        header_text=header.text if header else None,
        header_level=header.level if header else None,
    )


def hard_split(text: str, start: int, end: int, size: int) -> list[Segment]:
    """Cut text[start:end] into windows of at most ``size`` words.

    Last-resort split used when no sentence or paragraph boundary exists
    inside the size ceiling; windows may end mid-sentence.
    """
    spans = word_spans(text, start, end)
    size = max(1, size)
    segments: list[Segment] = []
    for i in range(0, len(spans), size):
        group = spans[i : i + size]
        segments.append(
            Segment(text=text[group[0][0] : group[-1][1]], start_char=group[0][0], end_char=group[-1][1])
        )
    return segments


def bounded_sentences(text: str, sentences: tuple[Sentence, ...] | list[Sentence], max_words: int) -> list[Sentence]:
    """Replace sentences longer than ``max_words`` with hard-split pieces."""
    bounded: list[Sentence] = []
    for sentence in sentences:
        if count_words(sentence.text) <= max_words:
            bounded.append(sentence)
            continue
        for piece in hard_split(text, sentence.position, sentence.end_position, max_words):
            bounded.append(Sentence(text=piece.text, position=piece.start_char, end_position=piece.end_char))
    return bounded


@dataclass(frozen=True)
class UnitBuffer:
    """Accumulated run of consecutive sentences or paragraphs.

    Immutable: ``push`` returns a new buffer, so strategies thread the
    current buffer through their loops as a plain value.
    """

    units: tuple[Unit, ...] = ()
    words: int = 0

    def push(self, unit: Unit, words: int | None = None) -> UnitBuffer:
        if words is None:
            words = count_words(unit.text)
        return UnitBuffer(units=(*self.units, unit), words=self.words + words)

    def to_segment(self, text: str, header: Header | None = None) -> Segment | None:
        if not self.units:
            return None
        return make_segment(text, self.units[0].position, self.units[-1].end_position, header)


def split_large_section(text: str, section: Segment, config: ChunkingConfig) -> list[Segment]:
    """Split an oversized section sentence by sentence.

    Sentences are accumulated until the next one would push the buffer past
    ``max_chunk_size``. Only the first sub-segment keeps the section header.
    With ``preserve_sentences`` off the section is cut into plain word
    windows of ``target_chunk_size`` instead.

    Args:
        text: Normalized document text
        section: Section span exceeding max_chunk_size
        config: Chunking configuration

    Returns:
        Sub-segments in document order
    """
    if not config.preserve_sentences:
        pieces = hard_split(text, section.start_char, section.end_char, config.target_chunk_size)
        if pieces:
            pieces[0] = replace(pieces[0], header_text=section.header_text, header_level=section.header_level)
        return pieces

    header = (
        Header(text=section.header_text, position=section.start_char, level=section.header_level or 1)
        if section.header_text is not None
        else None
    )
    sentences = bounded_sentences(
        text, find_sentences(text, section.start_char, section.end_char), config.max_chunk_size
    )

    pieces: list[Segment] = []
    buffer = UnitBuffer()
    for sentence in sentences:
        words = count_words(sentence.text)
        if buffer.units and buffer.words + words > config.max_chunk_size:
            segment = buffer.to_segment(text, header if not pieces else None)
            if segment is not None:
                pieces.append(segment)
            buffer = UnitBuffer()
        buffer = buffer.push(sentence, words)

    segment = buffer.to_segment(text, header if not pieces else None)
    if segment is not None:
        pieces.append(segment)
    return pieces


def join_segments(first: Segment, second: Segment, text: str) -> Segment:
    """Join two consecutive segments with a blank line.

    When the second segment overlaps the first (a semantic overlap tail),
    only its non-overlapping remainder is appended.
    """
    if second.start_char >= first.end_char:
        tail = second.text
    else:
        tail = text[first.end_char : second.end_char].strip()
    joined = f"{first.text}\n\n{tail}" if tail else first.text
    # A header inside the second segment is mid-chunk, not leading
    return Segment(
        text=joined,
        start_char=first.start_char,
        end_char=max(first.end_char, second.end_char),
        header_text=first.header_text,
        header_level=first.header_level,
    )


def merge_small_segments(segments: list[Segment], config: ChunkingConfig, text: str) -> list[Segment]:
    """Merge undersized segments into their successors.

    A segment below ``min_chunk_size`` that is not last absorbs the next
    segment as long as the result stays within ``max_chunk_size``; the
    merged segment is re-checked against the next one. A short final segment
    is kept as-is.
    """
    merged: list[Segment] = []
    current: Segment | None = None

    for segment in segments:
        if current is None:
            current = segment
            continue
        if current.word_count < config.min_chunk_size:
            candidate = join_segments(current, segment, text)
            if candidate.word_count <= config.max_chunk_size:
                current = candidate
                continue
        merged.append(current)
        current = segment

    if current is not None:
        merged.append(current)
    return merged


def shift_segment(segment: Segment, offset: int) -> Segment:
    """Move a segment's offsets by ``offset`` characters."""
    return replace(segment, start_char=segment.start_char + offset, end_char=segment.end_char + offset)
