"""Text normalization applied before structure analysis.

Fixes the whitespace and run-together words typically left behind by PDF
text extraction, while keeping paragraph breaks intact.
"""

from __future__ import annotations

import re

_LINE_ENDINGS = re.compile(r"\r\n?")
_SMART_DOUBLE_QUOTES = re.compile("[“”]")
_SMART_SINGLE_QUOTES = re.compile("[‘’]")
_LOWER_UPPER = re.compile(r"([a-z])([A-Z])")
_LETTER_DIGIT = re.compile(r"([A-Za-z])(\d)")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_SPACE_RUNS = re.compile(r" {2,}")


def normalize_text(text: str) -> str:
    """Normalize raw document text.

    Steps, in order:
    1. CRLF / CR line endings become LF, tabs become two spaces
    2. Typographic quotes become ASCII quotes
    3. A space is inserted between a lowercase and an uppercase letter
       ("wordsJoined" -> "words Joined")
    4. A space is inserted between a letter and a digit ("page12" -> "page 12")
    5. Three or more newlines collapse to one blank line
    6. Runs of spaces collapse to one space
    7. Leading and trailing whitespace is trimmed

    Args:
        text: Raw text, possibly empty

    Returns:
        Normalized text ("" for empty or whitespace-only input)

    Examples:
        >>> normalize_text("endOf sentence.\\r\\n\\r\\n\\r\\nNext  page2")
        'end Of sentence.\\n\\nNext page 2'
    """
    if not text:
        return ""

    processed = _LINE_ENDINGS.sub("\n", text)
    processed = processed.replace("\t", "  ")
    processed = _SMART_DOUBLE_QUOTES.sub('"', processed)
    processed = _SMART_SINGLE_QUOTES.sub("'", processed)
    processed = _LOWER_UPPER.sub(r"\1 \2", processed)
    processed = _LETTER_DIGIT.sub(r"\1 \2", processed)
    processed = _EXCESS_NEWLINES.sub("\n\n", processed)
    processed = _SPACE_RUNS.sub(" ", processed)
    return processed.strip()
