"""Document structure analysis.

Scans normalized text once and indexes headers, paragraphs, sentences,
list items, quotes and fenced code blocks, each with character offsets
into the scanned text. Every detector tolerates zero matches.

Header patterns (matched per line, merged and sorted by position):
- Markdown:  ``# Title`` ... ``###### Title``
- All caps:  ``INTRODUCTION``
- Numbered:  ``1. Background`` or ``2.3 Methods``
- Colon:     ``Key findings:``
"""

from __future__ import annotations

import re

from barkly_research.ingest.chunker.models import (
    ChunkingConfig,
    CodeBlock,
    DocumentStructure,
    Header,
    ListItem,
    ListType,
    Paragraph,
    Quote,
    Sentence,
)

MARKDOWN_HEADER_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t#]*$", re.MULTILINE)
ALL_CAPS_HEADER_PATTERN = re.compile(r"^([A-Z][A-Z0-9 ]+)$", re.MULTILINE)
# Numbered lines ending in sentence punctuation are list items, not headers
NUMBERED_HEADER_PATTERN = re.compile(
    r"^((\d+(?:\.\d+)*)\.?[ \t]+[A-Z](?:[^\n]*[^.!?\n])?)$", re.MULTILINE
)
COLON_HEADER_PATTERN = re.compile(r"^([A-Z][^.!?:\n]+):[ \t]*$", re.MULTILINE)

PARAGRAPH_BREAK_PATTERN = re.compile(r"\n{2,}")

# A run of non-terminators closed by one or more terminators, or by the end
# of the scanned range (so trailing unpunctuated text is not lost)
SENTENCE_PATTERN = re.compile(r"[^.!?]+(?:[.!?]+|\Z)")

_LIST_PATTERNS: tuple[tuple[re.Pattern[str], ListType], ...] = (
    (re.compile(r"^[ \t]*[-*•+][ \t]+(.+)$", re.MULTILINE), "bullet"),
    (re.compile(r"^[ \t]*\d+\.[ \t]+(.+)$", re.MULTILINE), "numbered"),
    (re.compile(r"^[ \t]*[a-z]\)[ \t]+(.+)$", re.MULTILINE), "lettered"),
)

_QUOTE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'"([^"]+)"'),
    # Single quotes must not touch word characters, so apostrophes in
    # "don't ... it's" are not read as a quoted span
    re.compile(r"(?<!\w)'([^'\n]+)'(?!\w)"),
    re.compile(r"^>[ \t]+(.+)$", re.MULTILINE),
)

CODE_FENCE_PATTERN = re.compile(r"```([\w+-]*)[ \t]*\n(.*?)```", re.DOTALL)

MIN_QUOTE_CHARS = 20


# =============================================================================
# HEADERS
# =============================================================================


def header_level(line: str) -> int:
    """Infer a header's nesting level from its source line.

    Examples:
        >>> header_level("# Introduction")
        1
        >>> header_level("## Methods")
        2
        >>> header_level("#### Deep detail")
        3
        >>> header_level("3. Results")
        1
        >>> header_level("3.2 Sampling")
        2
        >>> header_level("SUMMARY")
        1
        >>> header_level("Key findings:")
        2
    """
    stripped = line.strip()
    markdown = re.match(r"^(#{1,6})\s", stripped)
    if markdown:
        return min(len(markdown.group(1)), 3)
    numbered = re.match(r"^(\d+(?:\.\d+)*)\.?\s", stripped)
    if numbered:
        return 1 if "." not in numbered.group(1) else 2
    if ALL_CAPS_HEADER_PATTERN.match(stripped):
        return 1
    return 2


def find_headers(text: str) -> list[Header]:
    """Find header lines with every header pattern.

    A line matched by several patterns is reported once, using the first
    pattern in the order Markdown, all caps, numbered, colon.

    Args:
        text: Normalized text

    Returns:
        Headers sorted by position
    """
    found: dict[int, Header] = {}

    for match in MARKDOWN_HEADER_PATTERN.finditer(text):
        found.setdefault(
            match.start(),
            Header(text=match.group(2).strip(), position=match.start(), level=header_level(match.group(0))),
        )

    for pattern in (ALL_CAPS_HEADER_PATTERN, NUMBERED_HEADER_PATTERN, COLON_HEADER_PATTERN):
        for match in pattern.finditer(text):
            title = match.group(1).strip()
            if not title:
                continue
            found.setdefault(
                match.start(),
                Header(text=title, position=match.start(), level=header_level(match.group(0))),
            )

    return sorted(found.values(), key=lambda header: header.position)


# =============================================================================
# PARAGRAPHS AND SENTENCES
# =============================================================================


def _trimmed_span(text: str, start: int, end: int) -> tuple[int, int]:
    """Shrink [start, end) so it excludes surrounding whitespace."""
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def find_paragraphs(text: str) -> list[Paragraph]:
    """Split text on runs of two or more newlines.

    Offsets are tracked in a single pass over the separator matches, so they
    are exact whatever the separator length.
    """
    paragraphs: list[Paragraph] = []
    block_start = 0
    boundaries = [(m.start(), m.end()) for m in PARAGRAPH_BREAK_PATTERN.finditer(text)]
    boundaries.append((len(text), len(text)))

    for sep_start, sep_end in boundaries:
        start, end = _trimmed_span(text, block_start, sep_start)
        if end > start:
            paragraphs.append(Paragraph(text=text[start:end], position=start, end_position=end))
        block_start = sep_end

    return paragraphs


def find_sentences(text: str, start: int = 0, end: int | None = None) -> list[Sentence]:
    """Find sentences in text[start:end].

    A sentence is a run of characters other than ``.``, ``!`` and ``?``
    closed by one or more of them. Text after the last terminator in the
    range is returned as a final sentence.

    Args:
        text: Text to scan
        start: Start of the range to scan
        end: End of the range (default: end of text)

    Returns:
        Sentences with absolute, whitespace-trimmed offsets
    """
    if end is None:
        end = len(text)
    sentences: list[Sentence] = []
    for match in SENTENCE_PATTERN.finditer(text, start, end):
        s_start, s_end = _trimmed_span(text, match.start(), match.end())
        if s_end > s_start:
            sentences.append(Sentence(text=text[s_start:s_end], position=s_start, end_position=s_end))
    return sentences


def split_sentences(text: str) -> list[str]:
    """Return the trimmed sentence strings of text."""
    return [sentence.text for sentence in find_sentences(text)]


# =============================================================================
# LISTS, QUOTES, CODE
# =============================================================================


def find_list_items(text: str) -> list[ListItem]:
    """Find bullet, numbered and lettered list item lines."""
    items: list[ListItem] = []
    for pattern, list_type in _LIST_PATTERNS:
        for match in pattern.finditer(text):
            items.append(ListItem(text=match.group(1).strip(), position=match.start(), type=list_type))
    return sorted(items, key=lambda item: item.position)


def find_quotes(text: str) -> list[Quote]:
    """Find quoted spans and blockquote lines longer than 20 characters."""
    quotes: list[Quote] = []
    for pattern in _QUOTE_PATTERNS:
        for match in pattern.finditer(text):
            content = match.group(1)
            if len(content) > MIN_QUOTE_CHARS:
                quotes.append(Quote(text=content.strip(), position=match.start(), full_match=match.group(0)))
    return sorted(quotes, key=lambda quote: quote.position)


def find_code_blocks(text: str) -> list[CodeBlock]:
    """Find fenced (```) code blocks and their language tags."""
    return [
        CodeBlock(
            text=match.group(2).rstrip("\n"),
            position=match.start(),
            end_position=match.end(),
            language=match.group(1) or None,
        )
        for match in CODE_FENCE_PATTERN.finditer(text)
    ]


# =============================================================================
# ANALYSIS
# =============================================================================


def analyze_structure(text: str, config: ChunkingConfig | None = None) -> DocumentStructure:
    """Build the structure index for normalized text.

    Paragraphs and sentences are always detected; the other detectors follow
    the config's ``detect_*`` switches. Running this twice on the same text
    yields equal structures.

    Args:
        text: Normalized text (see normalize_text)
        config: Chunking configuration (default: ChunkingConfig())

    Returns:
        DocumentStructure with every element list sorted by position
    """
    if config is None:
        config = ChunkingConfig()
    if not text:
        return DocumentStructure()

    return DocumentStructure(
        headers=tuple(find_headers(text)) if config.detect_headers else (),
        paragraphs=tuple(find_paragraphs(text)),
        sentences=tuple(find_sentences(text)),
        list_items=tuple(find_list_items(text)) if config.detect_lists else (),
        quotes=tuple(find_quotes(text)) if config.detect_quotes else (),
        code_blocks=tuple(find_code_blocks(text)) if config.detect_code_blocks else (),
    )
