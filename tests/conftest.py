"""Shared pytest fixtures for barkly-research tests."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"
CHUNKING_FIXTURES_DIR = FIXTURES_DIR / "chunking"

# Ten-word sentence template; sizes in tests are multiples of ten words
_SENTENCE = "Sentence {n} records how the river crossing changed over time."

_FILLER_WORDS = (
    "river", "stock", "route", "camp", "water", "fence", "track", "creek",
    "grass", "cattle", "station", "ridge", "plain", "drover", "well", "yard",
)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def chunking_input_dir() -> Path:
    """Return path to chunking input documents."""
    return CHUNKING_FIXTURES_DIR / "input"


@pytest.fixture
def load_chunking_fixture() -> Callable[[str], str]:
    """Factory fixture to load chunking input documents.

    Usage:
        def test_something(load_chunking_fixture):
            text = load_chunking_fixture("academic_paper.md")
    """

    def _load(name: str) -> str:
        path = CHUNKING_FIXTURES_DIR / "input" / name
        return path.read_text(encoding="utf-8")

    return _load


@pytest.fixture
def make_prose() -> Callable[[int], str]:
    """Factory fixture building prose of exactly N words (N a multiple of 10).

    Every sentence has ten words and ends with a period; sentences are
    grouped into paragraphs of ten sentences.

    Usage:
        def test_something(make_prose):
            text = make_prose(300)
    """

    def _make(words: int) -> str:
        sentences = [_SENTENCE.format(n=n) for n in range(words // 10)]
        paragraphs = [" ".join(sentences[i : i + 10]) for i in range(0, len(sentences), 10)]
        return "\n\n".join(paragraphs)

    return _make


@pytest.fixture
def make_words() -> Callable[[int], str]:
    """Factory fixture building N space-separated words with no punctuation."""

    def _make(count: int) -> str:
        return " ".join(_FILLER_WORDS[i % len(_FILLER_WORDS)] for i in range(count))

    return _make


@pytest.fixture
def make_sectioned_document(make_prose: Callable[[int], str]) -> Callable[..., str]:
    """Factory fixture building a Markdown document with N sections.

    Usage:
        def test_something(make_sectioned_document):
            text = make_sectioned_document(sections=3, words_per_section=2000)
    """

    def _make(sections: int, words_per_section: int) -> str:
        titles = ("Section One", "Section Two", "Section Three", "Section Four", "Section Five")
        parts = [f"# {titles[i]}\n\n{make_prose(words_per_section)}" for i in range(sections)]
        return "\n\n".join(parts)

    return _make


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Drop handlers the CLI attaches to the package logger after each test."""
    yield
    package_logger = logging.getLogger("barkly_research")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
