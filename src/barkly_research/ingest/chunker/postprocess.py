"""Post-processing of strategy segments into final chunks.

Runs in a fixed order:
1. Merge undersized segments into their successors
2. Pad each segment with words from its neighbours (overlap)
3. Compute per-chunk metadata from the padded text
4. Link chunks whose keyword sets overlap (Jaccard similarity)
5. Number the chunks 1..N
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from barkly_research.ingest.chunker.models import (
    Chunk,
    ChunkingConfig,
    ChunkMetadata,
    ContentType,
    DocumentStructure,
    Header,
    Segment,
)
from barkly_research.ingest.chunker.structure import split_sentences
from barkly_research.ingest.chunker.text_splitting import merge_small_segments
from barkly_research.ingest.chunker.token_counting import count_tokens, first_words, last_words

logger = logging.getLogger(__name__)

STOP_WORDS: frozenset[str] = frozenset(
    {
        # Short function words
        "the", "is", "at", "which", "on", "a", "an", "and", "or", "but",
        "in", "with", "to", "for", "of", "as", "by", "that", "this",
        "it", "from", "be", "are", "been", "was", "were", "being",
        "have", "has", "had", "not", "they", "them", "then", "than",
        "what", "when", "will", "your", "also", "into", "only",
        # Common words long enough to pass the keyword length filter
        "about", "above", "after", "again", "against", "because", "before",
        "below", "between", "could", "doing", "during", "further", "having",
        "their", "there", "these", "those", "through", "under", "until",
        "where", "while", "would", "should", "other", "themselves",
        "yourself", "ourselves", "itself", "himself", "herself", "myself",
        "yours",
    }
)

IMPORTANCE_KEYWORDS: tuple[str, ...] = (
    "conclusion",
    "summary",
    "important",
    "key",
    "critical",
    "essential",
    "significant",
    "major",
    "primary",
    "finding",
)


def _plural(word: str) -> str:
    """Regular English plural: summary -> summaries, key -> keys."""
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return f"{word[:-1]}ies"
    return f"{word}s"


# Each keyword also matches its plural ("findings", "summaries")
_IMPORTANCE_PATTERNS = tuple(
    re.compile(rf"\b(?:{word}|{_plural(word)})\b") for word in IMPORTANCE_KEYWORDS
)
_NON_ALNUM = re.compile(r"[^a-z0-9]")

CODE_FENCE_MARKER = "```"
# Minimum word length for relatedness keywords and for key terms
KEYWORD_MIN_CHARS = 5
KEY_TERM_MIN_CHARS = 4
MAX_KEY_TERMS = 10
# More quote spans than this make a chunk a quote chunk
QUOTE_DOMINANCE_COUNT = 2


# =============================================================================
# OVERLAP
# =============================================================================


def apply_overlap(segments: list[Segment], config: ChunkingConfig) -> list[str]:
    """Build the padded text of every segment.

    Each segment gets the last ``overlap_tokens`` words of its predecessor
    prepended and the first ``overlap_tokens`` words of its successor
    appended, always taken from the neighbours' own unpadded text. Padding
    is clamped so a padded chunk never exceeds ``max_chunk_size`` words;
    the remaining headroom is shared evenly between the two sides.

    Args:
        segments: Unpadded segments in document order
        config: Chunking configuration

    Returns:
        Padded texts, parallel to segments
    """
    if config.overlap_tokens <= 0 or len(segments) < 2:
        return [segment.text for segment in segments]

    padded: list[str] = []
    for i, segment in enumerate(segments):
        previous = segments[i - 1] if i > 0 else None
        following = segments[i + 1] if i + 1 < len(segments) else None
        neighbours = (previous is not None) + (following is not None)

        headroom = max(0, config.max_chunk_size - segment.word_count)
        per_side = min(config.overlap_tokens, headroom // neighbours)

        parts: list[str] = []
        if previous is not None and per_side > 0:
            parts.append(last_words(previous.text, per_side))
        parts.append(segment.text)
        if following is not None and per_side > 0:
            parts.append(first_words(following.text, per_side))
        padded.append(" ".join(parts))

    return padded


# =============================================================================
# METADATA
# =============================================================================


def find_leading_header(segment: Segment, structure: DocumentStructure, search_chars: int) -> Header | None:
    """Return the first known header that starts near the segment's start.

    Only headers inside the segment's own span and within ``search_chars``
    characters of its start count, so overlap padding never produces a
    false positive.
    """
    limit = min(segment.end_char, segment.start_char + search_chars)
    for header in structure.headers:
        if segment.start_char <= header.position < limit:
            return header
        if header.position >= limit:
            break
    return None


def detect_content_type(segment: Segment, structure: DocumentStructure) -> ContentType:
    """Classify a segment by the structure elements inside its span.

    Returns ``list`` when list item lines make up more than half the lines,
    ``quote`` for more than two quote spans, ``code`` for a fenced code
    block, ``mixed`` when some list or quote signal is present, else
    ``text``.
    """
    lines = [line for line in segment.text.split("\n") if line.strip()]
    list_lines = sum(1 for item in structure.list_items if segment.start_char <= item.position < segment.end_char)
    quotes = sum(1 for quote in structure.quotes if segment.start_char <= quote.position < segment.end_char)

    if lines and list_lines > len(lines) / 2:
        return "list"
    if quotes > QUOTE_DOMINANCE_COUNT:
        return "quote"
    has_code = CODE_FENCE_MARKER in segment.text or any(
        block.position < segment.end_char and block.end_position > segment.start_char
        for block in structure.code_blocks
    )
    if has_code:
        return "code"
    if list_lines or quotes:
        return "mixed"
    return "text"


def semantic_density(text: str) -> float:
    """Unique lowercased words divided by total words (0.0 for empty text)."""
    words = text.lower().split()
    if not words:
        return 0.0
    return len(set(words)) / len(words)


def contextual_importance(text: str, has_header: bool, config: ChunkingConfig) -> float:
    """Score how central a chunk is likely to be, between 0 and 1.

    Starts at ``base_importance`` and adds the header boost, a capped boost
    per distinct importance keyword (conclusion, summary, key, ...) and a
    boost for chunks that ask a question.
    """
    weights = config.weights
    lowered = text.lower()
    score = weights.base_importance

    if has_header:
        score += weights.header_boost

    matched = sum(1 for pattern in _IMPORTANCE_PATTERNS if pattern.search(lowered))
    score += min(weights.max_keyword_boost, weights.keyword_boost * matched)

    if "?" in text:
        score += weights.question_boost

    return min(1.0, round(score, 4))


def _clean_words(text: str) -> list[str]:
    cleaned = (_NON_ALNUM.sub("", word) for word in text.lower().split())
    return [word for word in cleaned if word]


def extract_key_terms(text: str, limit: int = MAX_KEY_TERMS) -> list[str]:
    """Return the most frequent non-stop-word terms, most frequent first.

    Ties keep first-occurrence order.

    Example:
        >>> extract_key_terms("River levels rose. The river flooded the river flats.", 2)
        ['river', 'levels']
    """
    counts = Counter(
        word for word in _clean_words(text) if len(word) >= KEY_TERM_MIN_CHARS and word not in STOP_WORDS
    )
    return [term for term, _ in counts.most_common(limit)]


def build_metadata(
    segment: Segment,
    final_text: str,
    structure: DocumentStructure,
    config: ChunkingConfig,
) -> ChunkMetadata:
    """Compute metadata for one chunk.

    Counts come from the padded ``final_text``; header, offsets and content
    type come from the segment's own span.
    """
    header = find_leading_header(segment, structure, config.weights.header_search_chars)
    header_text = header.text if header else segment.header_text
    header_level = header.level if header else segment.header_level
    has_header = header_text is not None

    sentences = split_sentences(final_text)
    words = final_text.split()

    return ChunkMetadata(
        chunk_number=0,
        total_chunks=0,
        start_char=segment.start_char,
        end_char=segment.end_char,
        word_count=len(words),
        sentence_count=len(sentences),
        has_header=has_header,
        header_text=header_text,
        header_level=header_level,
        content_type=detect_content_type(segment, structure),
        semantic_density=round(semantic_density(final_text), 4),
        contextual_importance=contextual_importance(final_text, has_header, config),
        avg_sentence_length=round(len(words) / len(sentences), 2) if sentences else 0.0,
        key_terms=extract_key_terms(final_text),
        estimated_tokens=count_tokens(final_text),
    )


# =============================================================================
# RELATEDNESS
# =============================================================================


def extract_keywords(text: str) -> set[str]:
    """Return the keyword set used for relatedness.

    Keywords are lowercased alphanumeric words longer than four characters
    that are not stop words.
    """
    return {word for word in _clean_words(text) if len(word) >= KEYWORD_MIN_CHARS and word not in STOP_WORDS}


def keyword_overlap(first: set[str], second: set[str]) -> float:
    """Jaccard similarity of two keyword sets (0.0 when both are empty)."""
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


def link_related_chunks(chunks: list[Chunk], threshold: float) -> None:
    """Fill ``related_chunks`` with the 0-based indices of similar chunks.

    Compares every pair once; the similarity is symmetric, so both chunks of
    a pair above ``threshold`` list each other.
    """
    keywords = [extract_keywords(chunk.text) for chunk in chunks]
    for i in range(len(chunks)):
        for j in range(i + 1, len(chunks)):
            if keyword_overlap(keywords[i], keywords[j]) > threshold:
                chunks[i].related_chunks.append(j)
                chunks[j].related_chunks.append(i)
    for chunk in chunks:
        chunk.related_chunks.sort()


# =============================================================================
# FINALIZE
# =============================================================================


def finalize(
    text: str,
    segments: list[Segment],
    structure: DocumentStructure,
    config: ChunkingConfig,
) -> list[Chunk]:
    """Turn strategy segments into numbered, enriched chunks.

    Args:
        text: Normalized document text the segments point into
        segments: Strategy output in document order
        structure: Structure index of text
        config: Normalized chunking configuration

    Returns:
        Final chunks with chunk_number 1..N and total_chunks N
    """
    merged = merge_small_segments(segments, config, text)
    if len(merged) != len(segments):
        logger.debug(f"Merged {len(segments)} segments into {len(merged)}")

    padded = apply_overlap(merged, config)
    chunks = [
        Chunk(text=final_text, metadata=build_metadata(segment, final_text, structure, config))
        for segment, final_text in zip(merged, padded, strict=True)
    ]

    link_related_chunks(chunks, config.weights.related_threshold)

    total = len(chunks)
    for number, chunk in enumerate(chunks, start=1):
        chunk.metadata.chunk_number = number
        chunk.metadata.total_chunks = total

    return chunks
