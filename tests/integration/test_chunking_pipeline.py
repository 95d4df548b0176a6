"""Integration tests for the chunking pipeline.

These tests run whole sample documents through:
1. Normalization and structure analysis
2. Every strategy and document-type preset
3. The document-type detection and fallback entry points
"""

from typing import TYPE_CHECKING

import pytest

from barkly_research.ingest.chunker import (
    PRESETS,
    STRATEGIES,
    AdaptiveChunker,
    ChunkingConfig,
    DocumentChunker,
    chunk_with_fallback,
    normalize_text,
)

if TYPE_CHECKING:
    from collections.abc import Callable

SAMPLE_DOCUMENTS = ("academic_paper.md", "interview_transcript.txt", "field_notes.txt")


class TestAdaptivePipelineIntegration:
    """Integration tests for AdaptiveChunker over sample documents."""

    @pytest.mark.integration
    @pytest.mark.parametrize("name", SAMPLE_DOCUMENTS)
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_every_strategy_on_every_document(
        self, name: str, strategy: str, load_chunking_fixture: "Callable[[str], str]"
    ) -> None:
        """Each strategy yields ordered, bounded chunks that slice the normalized text."""
        text = load_chunking_fixture(name)
        normalized = normalize_text(text)
        config = ChunkingConfig(
            min_chunk_size=20, max_chunk_size=80, target_chunk_size=50, overlap_tokens=5, strategy=strategy
        )
        chunks = AdaptiveChunker(config).chunk_document(text)

        assert chunks
        assert [c.metadata.chunk_number for c in chunks] == list(range(1, len(chunks) + 1))
        for chunk in chunks:
            meta = chunk.metadata
            assert 0 <= meta.start_char < meta.end_char <= len(normalized)
            assert meta.word_count <= 80
            assert meta.estimated_tokens > 0
            assert 0.0 <= meta.contextual_importance <= 1.0
            assert len(meta.key_terms) <= 10

    @pytest.mark.integration
    @pytest.mark.parametrize("preset", sorted(PRESETS.values()))
    def test_presets_on_academic_paper(self, preset: str, load_chunking_fixture: "Callable[[str], str]") -> None:
        """Every preset chunks a real paper within its ceiling."""
        config = getattr(ChunkingConfig, preset)()
        chunks = AdaptiveChunker(config).chunk_document(load_chunking_fixture("academic_paper.md"))
        assert chunks
        assert all(c.metadata.word_count <= config.max_chunk_size for c in chunks)

    @pytest.mark.integration
    def test_academic_sections_keep_headers(self, load_chunking_fixture: "Callable[[str], str]") -> None:
        """Structural chunks of a sectioned paper start at their headers."""
        config = ChunkingConfig(
            min_chunk_size=1, max_chunk_size=400, target_chunk_size=200, overlap_tokens=0, strategy="structural"
        )
        chunks = AdaptiveChunker(config).chunk_document(load_chunking_fixture("academic_paper.md"))
        headers = [c.metadata.header_text for c in chunks]
        assert headers == [
            "Water Governance in the Barkly Tableland",
            "Background",
            "Methods",
            "Findings",
            "Conclusion",
        ]
        assert chunks[1].metadata.header_level == 2

    @pytest.mark.integration
    def test_list_document_content_type(self, load_chunking_fixture: "Callable[[str], str]") -> None:
        """A checklist-heavy document produces list or mixed chunks."""
        config = ChunkingConfig(min_chunk_size=1, max_chunk_size=50, overlap_tokens=0, strategy="structural")
        chunks = AdaptiveChunker(config).chunk_document(load_chunking_fixture("field_notes.txt"))
        assert {c.metadata.content_type for c in chunks} & {"list", "mixed"}


class TestDocumentChunkerIntegration:
    """Integration tests for document-type detection and fallback."""

    @pytest.mark.integration
    @pytest.mark.parametrize(
        ("name", "document_type"),
        [
            ("academic_paper.md", "academic"),
            ("interview_transcript.txt", "conversational"),
            ("field_notes.txt", "technical"),
        ],
    )
    def test_analyze_and_chunk(
        self, name: str, document_type: str, load_chunking_fixture: "Callable[[str], str]"
    ) -> None:
        """Detection picks the preset and chunking covers the document."""
        analysis, chunks = DocumentChunker().analyze_and_chunk(load_chunking_fixture(name))
        assert analysis.document_type == document_type
        assert chunks
        assert chunks[-1].total_chunks == len(chunks)

    @pytest.mark.integration
    @pytest.mark.parametrize("name", SAMPLE_DOCUMENTS)
    def test_fallback_entry_point(self, name: str, load_chunking_fixture: "Callable[[str], str]") -> None:
        """The ingestion entry point chunks every sample document adaptively."""
        chunks = chunk_with_fallback(load_chunking_fixture(name))
        assert chunks
        assert all(c.chunk_number is not None for c in chunks)

    @pytest.mark.integration
    def test_character_windows_with_pages(self, load_chunking_fixture: "Callable[[str], str]") -> None:
        """Character windows over a paper carry page numbers."""
        text = load_chunking_fixture("academic_paper.md")
        middle = len(text) // 2
        chunks = DocumentChunker().chunk_document(text, page_breaks=[middle, len(text)])
        assert chunks[0].start_page == 1
        assert chunks[-1].end_page == 2
