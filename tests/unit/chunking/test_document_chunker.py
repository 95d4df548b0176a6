"""Unit tests for the character-window DocumentChunker and document analysis."""

import pytest

from barkly_research.ingest.chunker import (
    ChunkOptions,
    DocumentChunker,
    analyze_document,
    chunk_text_adaptive,
)
from barkly_research.ingest.chunker.document_chunker import (
    analyze_chunk_content,
    find_page_number,
    from_adaptive_chunks,
)

FIRST_PARAGRAPH = "The first paragraph talks about the crossing in the wet."


# =============================================================================
# HELPERS
# =============================================================================


class TestFindPageNumber:
    """Tests for page lookup from page-break offsets."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("position", "page"),
        [(0, 1), (99, 1), (100, 1), (101, 2), (200, 2), (250, 3)],
    )
    def test_page_lookup(self, position: int, page: int) -> None:
        """A position equal to a break belongs to the page that break closes."""
        assert find_page_number(position, [100, 200]) == page

    @pytest.mark.unit
    def test_no_breaks_is_page_one(self) -> None:
        """Without page breaks everything is on page 1."""
        assert find_page_number(5000, []) == 1


class TestAnalyzeChunkContent:
    """Tests for DocumentChunk content flags."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("text", "content_type"),
        [
            ("- first item\n- second item", "list"),
            ("# Heading\n- item under heading", "mixed"),
            ("site | status\nbore 7 | running", "table"),
            ("Plain narrative text about the station.", "narrative"),
        ],
    )
    def test_content_type(self, text: str, content_type: str) -> None:
        """Bullets, headers and pipes decide the block type."""
        assert analyze_chunk_content(text).content_type == content_type

    @pytest.mark.unit
    def test_quote_flag(self) -> None:
        """Quoted spans of ten or more characters set has_quotes."""
        assert analyze_chunk_content('She said "come back next dry season".').has_quotes
        assert not analyze_chunk_content('She said "no".').has_quotes


# =============================================================================
# CHARACTER WINDOWS
# =============================================================================


class TestChunkDocument:
    """Tests for DocumentChunker.chunk_document."""

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", "   \n\n  "])
    def test_blank_text(self, text: str) -> None:
        """Blank text yields no chunks."""
        assert DocumentChunker().chunk_document(text) == []

    @pytest.mark.unit
    def test_short_text_single_chunk(self) -> None:
        """Text shorter than the window is one chunk covering everything."""
        text = "A short document that fits in a single window."
        chunks = DocumentChunker(ChunkOptions(min_chunk_size=10)).chunk_document(text)
        assert len(chunks) == 1
        assert chunks[0].text == text
        assert (chunks[0].start_char, chunks[0].end_char) == (0, len(text))
        assert chunks[0].index == 0
        assert chunks[0].word_count == 9

    @pytest.mark.unit
    def test_short_chunks_dropped(self) -> None:
        """Windows shorter than min_chunk_size characters are dropped."""
        assert DocumentChunker(ChunkOptions(min_chunk_size=50)).chunk_document("Too short.") == []

    @pytest.mark.unit
    def test_prefers_paragraph_boundary(self) -> None:
        """A window ends just after the last paragraph break inside it."""
        text = f"{FIRST_PARAGRAPH}\n\n" + "second paragraph words " * 10
        options = ChunkOptions(max_chunk_size=100, overlap_size=10, min_chunk_size=20)
        chunks = DocumentChunker(options).chunk_document(text)
        assert chunks[0].text == FIRST_PARAGRAPH
        assert chunks[0].end_char == len(FIRST_PARAGRAPH) + 2

    @pytest.mark.unit
    def test_falls_back_to_sentence_boundary(self) -> None:
        """Without paragraph breaks a window ends after the last full sentence."""
        text = "Short sentence one. " * 10
        options = ChunkOptions(max_chunk_size=50, overlap_size=0, min_chunk_size=5)
        chunks = DocumentChunker(options).chunk_document(text)
        assert chunks[0].end_char == 40
        assert chunks[0].text == "Short sentence one. Short sentence one."

    @pytest.mark.unit
    def test_consecutive_windows_overlap(self) -> None:
        """Each window starts overlap_size characters before the previous end."""
        text = f"{FIRST_PARAGRAPH}\n\n" + "second paragraph words " * 10
        options = ChunkOptions(max_chunk_size=100, overlap_size=10, min_chunk_size=20)
        chunks = DocumentChunker(options).chunk_document(text)
        assert len(chunks) > 1
        assert chunks[1].start_char == chunks[0].end_char - 10

    @pytest.mark.unit
    def test_terminates_at_end_of_text(self, make_prose) -> None:
        """Windows advance strictly and the last one reaches the end."""
        text = make_prose(500)
        options = ChunkOptions(max_chunk_size=400, overlap_size=50, min_chunk_size=1)
        chunks = DocumentChunker(options).chunk_document(text)
        starts = [chunk.start_char for chunk in chunks]
        assert starts == sorted(set(starts))
        assert chunks[-1].end_char == len(text)
        assert [chunk.index for chunk in chunks] == list(range(len(chunks)))

    @pytest.mark.unit
    def test_overlap_larger_than_window_still_advances(self) -> None:
        """An overlap bigger than the window cannot stall the chunker."""
        text = "word " * 100
        options = ChunkOptions(max_chunk_size=20, overlap_size=50, min_chunk_size=1)
        chunks = DocumentChunker(options).chunk_document(text)
        assert chunks[-1].end_char == len(text)

    @pytest.mark.unit
    def test_page_numbers(self) -> None:
        """Chunks report the pages holding their start and end offsets."""
        text = "word " * 60
        options = ChunkOptions(
            max_chunk_size=100, overlap_size=0, preserve_sentences=False, preserve_paragraphs=False
        )
        chunks = DocumentChunker(options).chunk_document(text, page_breaks=[100, 200])
        assert [(c.start_char, c.end_char) for c in chunks] == [(0, 100), (100, 200), (200, 300)]
        assert [(c.start_page, c.end_page) for c in chunks] == [(1, 1), (1, 2), (2, 3)]

    @pytest.mark.unit
    def test_no_page_numbers_without_breaks(self) -> None:
        """Page fields stay None when no page breaks are given."""
        chunks = DocumentChunker(ChunkOptions(min_chunk_size=1)).chunk_document("Some text.")
        assert chunks[0].start_page is None
        assert chunks[0].end_page is None


class TestSlidingWindows:
    """Tests for fixed character windows."""

    @pytest.mark.unit
    def test_window_count(self) -> None:
        """2500 characters with 1000-char windows every 500 gives four windows."""
        text = "abcd " * 500
        chunks = DocumentChunker().create_sliding_window_chunks(text, window_size=1000, stride=500)
        assert [(c.start_char, c.end_char) for c in chunks] == [
            (0, 1000),
            (500, 1500),
            (1000, 2000),
            (1500, 2500),
        ]

    @pytest.mark.unit
    def test_short_text_single_window(self) -> None:
        """Text shorter than one window is a single chunk."""
        text = "x " * 40
        chunks = DocumentChunker().create_sliding_window_chunks(text)
        assert len(chunks) == 1
        assert chunks[0].end_char == len(text)


class TestSemanticChunks:
    """Tests for section-bounded character windows."""

    SECTIONED = (
        "# Intro\n\nIntro body text that is long enough.\n\n"
        "# Methods\n\nMethods body text that is long enough too."
    )

    @pytest.mark.unit
    def test_sections_keep_titles(self) -> None:
        """Each chunk records the title of its section."""
        chunks = DocumentChunker(ChunkOptions(min_chunk_size=5)).create_semantic_chunks(self.SECTIONED)
        assert [c.metadata.section_title for c in chunks] == ["Intro", "Methods"]
        assert [c.index for c in chunks] == [0, 1]

    @pytest.mark.unit
    def test_offsets_refer_to_whole_document(self) -> None:
        """Offsets point into the full text, not the section."""
        text = self.SECTIONED
        chunks = DocumentChunker(ChunkOptions(min_chunk_size=5)).create_semantic_chunks(text)
        assert chunks[1].start_char == text.index("# Methods")
        for chunk in chunks:
            assert text[chunk.start_char : chunk.end_char].strip() == chunk.text

    @pytest.mark.unit
    def test_page_numbers_are_global(self) -> None:
        """Page numbers use document offsets."""
        text = self.SECTIONED
        methods = text.index("# Methods")
        chunks = DocumentChunker(ChunkOptions(min_chunk_size=5)).create_semantic_chunks(
            text, page_breaks=[methods - 1]
        )
        assert chunks[0].start_page == 1
        assert chunks[1].start_page == 2

    @pytest.mark.unit
    def test_untitled_preamble(self) -> None:
        """Text before the first header has no section title."""
        text = "Opening remarks before any heading.\n\n# Body\n\nBody text of the document."
        chunks = DocumentChunker(ChunkOptions(min_chunk_size=5)).create_semantic_chunks(text)
        assert chunks[0].metadata.section_title is None
        assert chunks[1].metadata.section_title == "Body"


# =============================================================================
# DOCUMENT ANALYSIS AND PRESETS
# =============================================================================


class TestAnalyzeDocument:
    """Tests for document type detection."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("fixture", "document_type", "strategy"),
        [
            ("academic_paper.md", "academic", "structural"),
            ("interview_transcript.txt", "conversational", "semantic"),
            ("field_notes.txt", "technical", "hybrid"),
        ],
    )
    def test_fixture_types(self, fixture: str, document_type: str, strategy: str, load_chunking_fixture) -> None:
        """Each sample document is classified by its dominant cues."""
        analysis = analyze_document(load_chunking_fixture(fixture))
        assert analysis.document_type == document_type
        assert analysis.recommended_strategy == strategy

    @pytest.mark.unit
    def test_code_words_mean_technical(self) -> None:
        """Whole-word function or class marks a technical document."""
        assert analyze_document("Define the function before the class.").document_type == "technical"
        assert analyze_document("A classical functionality review.").document_type == "general"

    @pytest.mark.unit
    def test_density_and_structure(self, load_chunking_fixture) -> None:
        """Density is a ratio and headers count as structure."""
        analysis = analyze_document(load_chunking_fixture("academic_paper.md"))
        assert analysis.has_structure
        assert 0.0 < analysis.content_density <= 1.0

    @pytest.mark.unit
    def test_empty_text_is_general(self) -> None:
        """Empty text falls through to the general type."""
        analysis = analyze_document("")
        assert analysis.document_type == "general"
        assert analysis.average_sentence_length == 0.0


class TestAdaptivePresets:
    """Tests for the adaptive chunker bridge."""

    @pytest.mark.unit
    def test_general_config_from_options(self) -> None:
        """The general preset derives word sizes from the chunk options."""
        config = ChunkOptions(max_chunk_size=1000, overlap_size=100, min_chunk_size=50).adaptive_config()
        assert config.min_chunk_size == 50
        assert config.max_chunk_size == 1000
        assert config.target_chunk_size == 525
        assert config.overlap_tokens == 20

    @pytest.mark.unit
    @pytest.mark.parametrize("document_type", ["academic", "conversational", "technical", "general"])
    def test_chunk_document_adaptive(self, document_type: str, load_chunking_fixture) -> None:
        """Every document type yields numbered chunks."""
        chunks = DocumentChunker().chunk_document_adaptive(
            load_chunking_fixture("academic_paper.md"), document_type
        )
        assert chunks
        assert [c.chunk_number for c in chunks] == list(range(1, len(chunks) + 1))
        assert all(c.total_chunks == len(chunks) for c in chunks)

    @pytest.mark.unit
    def test_analyze_and_chunk(self, load_chunking_fixture) -> None:
        """Detection and chunking run together."""
        analysis, chunks = DocumentChunker().analyze_and_chunk(load_chunking_fixture("academic_paper.md"))
        assert analysis.document_type == "academic"
        assert chunks

    @pytest.mark.unit
    def test_hierarchical_granularities(self, load_chunking_fixture) -> None:
        """Sentence-level chunks are at least as many as coarse chunks."""
        hierarchy = DocumentChunker().create_hierarchical_chunks(load_chunking_fixture("academic_paper.md"))
        assert hierarchy.coarse
        assert hierarchy.fine
        assert len(hierarchy.sentences) >= len(hierarchy.coarse)
        assert all(c.word_count <= 100 for c in hierarchy.sentences)

    @pytest.mark.unit
    def test_embedding_optimized_chunks(self, make_words) -> None:
        """Embedding chunks are overlapping windows of at most 500 words."""
        chunks = DocumentChunker().create_embedding_optimized_chunks(make_words(1000))
        assert len(chunks) > 1
        assert all(c.word_count <= 500 for c in chunks)

    @pytest.mark.unit
    def test_from_adaptive_chunks_mapping(self) -> None:
        """Adaptive chunk metadata carries over to DocumentChunks."""
        adaptive = chunk_text_adaptive("- one item here\n- two item here\n- three item here")
        converted = from_adaptive_chunks(adaptive)
        assert len(converted) == 1
        assert converted[0].metadata.content_type == "list"
        assert converted[0].index == 0
        assert converted[0].word_count == adaptive[0].metadata.word_count
