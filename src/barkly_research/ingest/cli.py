"""CLI for the document chunking engine.

Commands:
    barkly-chunk chunk     Chunk text files and print the chunks as JSON
    barkly-chunk analyze   Print the detected structure of a text file

Examples:
    # Chunk with the project defaults from [tool.barkly-research]
    barkly-chunk chunk paper.txt

    # Chunk an interview transcript with the conversational preset
    barkly-chunk chunk --preset conversational interview.txt

    # Full chunk records (text and all metadata) with sliding windows
    barkly-chunk chunk --strategy sliding --target-words 200 --full notes.txt

    # Inspect headers, paragraphs and lists before choosing a strategy
    barkly-chunk analyze report.txt
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from dataclasses import asdict, replace
from datetime import datetime
from pathlib import Path
from typing import Any

from barkly_research.ingest.chunker.models import PRESETS, STRATEGIES, Chunk, ChunkingConfig

# =============================================================================
# LOGGING SETUP
# =============================================================================

# Package-level logger so chunker module loggers share its handlers
logger = logging.getLogger("barkly_research")

PREVIEW_CHARS = 80


def _setup_logging(log_dir: Path | None = None, verbose: bool = False) -> Path | None:
    """Configure logging with a console handler and an optional file handler.

    Args:
        log_dir: Directory for a timestamped log file (default: no file)
        verbose: If True, set console to DEBUG level

    Returns:
        Path to the log file, or None when no log directory was given
    """
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    # Console handler - less verbose unless --verbose flag
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_dir is None:
        return None

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"barkly_chunk_{timestamp}.log"

    # File handler - captures everything with full detail
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    logger.info(f"Logging initialized - log file: {log_file}")
    return log_file


def _log_exception(msg: str, exc: Exception) -> None:
    """Log an exception, with the traceback at DEBUG level.

    Args:
        msg: Context message describing what failed
        exc: The exception that was raised
    """
    logger.error(f"{msg}: {type(exc).__name__}: {exc}")
    logger.debug(f"Traceback:\n{traceback.format_exc()}")


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="barkly-chunk",
        description="Split research documents into embedding-ready chunks",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # =========================================================================
    # CHUNK SUBCOMMAND
    # =========================================================================
    chunk_parser = subparsers.add_parser(
        "chunk",
        help="Chunk text files and print the chunks as JSON",
        description=(
            "Normalize each file, detect its structure and split it into chunks. "
            "Settings start from the --preset (or the project config) and are "
            "overridden by explicit size flags."
        ),
    )
    chunk_parser.add_argument(
        "files",
        type=Path,
        nargs="+",
        metavar="FILE",
        help="Text files to chunk",
    )
    chunk_parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        help="Chunking strategy (default: from preset or project config)",
    )
    chunk_parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Start from a document-type preset instead of the project config",
    )
    chunk_parser.add_argument(
        "--min-words",
        type=int,
        help="Minimum words per chunk; smaller chunks are merged",
    )
    chunk_parser.add_argument(
        "--max-words",
        type=int,
        help="Maximum words per chunk",
    )
    chunk_parser.add_argument(
        "--target-words",
        type=int,
        help="Preferred words per chunk",
    )
    chunk_parser.add_argument(
        "--overlap-tokens",
        type=int,
        help="Words copied from each neighbouring chunk for context",
    )
    chunk_parser.add_argument(
        "--overlap-percentage",
        type=int,
        help="Share of a chunk carried into the next one (semantic and sliding)",
    )
    chunk_parser.add_argument(
        "--full",
        action="store_true",
        help="Print full chunk records instead of summaries",
    )
    _add_common_arguments(chunk_parser)

    # =========================================================================
    # ANALYZE SUBCOMMAND
    # =========================================================================
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Print the detected structure of a text file",
        description="Count headers, paragraphs, sentences, lists, quotes and code blocks.",
    )
    analyze_parser.add_argument(
        "file",
        type=Path,
        metavar="FILE",
        help="Text file to analyze",
    )
    _add_common_arguments(analyze_parser)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging on stderr",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        help="Also write a timestamped debug log file to this directory",
    )


# =============================================================================
# HELPERS
# =============================================================================


def _build_config(args: argparse.Namespace) -> ChunkingConfig:
    """Resolve the chunking config from preset/project config and flags."""
    if args.preset is not None:
        config: ChunkingConfig = getattr(ChunkingConfig, PRESETS[args.preset])()
    else:
        config = ChunkingConfig.from_project_config()

    overrides: dict[str, Any] = {
        "strategy": args.strategy,
        "min_chunk_size": args.min_words,
        "max_chunk_size": args.max_words,
        "target_chunk_size": args.target_words,
        "overlap_tokens": args.overlap_tokens,
        "overlap_percentage": args.overlap_percentage,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **overrides) if overrides else config


def _read_text(path: Path) -> str | None:
    """Read a UTF-8 text file, logging and returning None on failure."""
    if not path.is_file():
        logger.error(f"Input file does not exist: {path}")
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _log_exception(f"Failed to read {path}", e)
        return None


def _chunk_summary(chunk: Chunk) -> dict[str, Any]:
    meta = chunk.metadata
    return {
        "chunk_number": meta.chunk_number,
        "start_char": meta.start_char,
        "end_char": meta.end_char,
        "word_count": meta.word_count,
        "estimated_tokens": meta.estimated_tokens,
        "content_type": meta.content_type,
        "header_text": meta.header_text,
        "related_chunks": chunk.related_chunks,
        "preview": chunk.text[:PREVIEW_CHARS],
    }


# =============================================================================
# COMMANDS
# =============================================================================


def _run_chunk_process(args: argparse.Namespace) -> int:
    """Chunk every input file and print one JSON document to stdout.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, 1 for error, 130 for interrupt)
    """
    # Import here to speed up --help
    from barkly_research.ingest.chunker import AdaptiveChunker

    _setup_logging(args.log_dir, args.verbose)

    try:
        config = _build_config(args)
    except ValueError as e:
        _log_exception("Invalid chunking configuration", e)
        return 1

    chunker = AdaptiveChunker(config)
    logger.debug(
        f"Config: strategy={chunker.config.strategy} min={chunker.config.min_chunk_size} "
        f"target={chunker.config.target_chunk_size} max={chunker.config.max_chunk_size}"
    )

    results: list[dict[str, Any]] = []
    try:
        for path in args.files:
            text = _read_text(path)
            if text is None:
                return 1

            chunks = chunker.chunk_document(text)
            logger.info(f"{path}: {len(chunks)} chunks")
            results.append(
                {
                    "file": str(path),
                    "strategy": chunker.config.strategy,
                    "total_chunks": len(chunks),
                    "chunks": [asdict(chunk) if args.full else _chunk_summary(chunk) for chunk in chunks],
                }
            )
    except KeyboardInterrupt:
        print(f"\n\nInterrupted after processing {len(results)} files", file=sys.stderr)
        return 130  # Standard exit code for SIGINT

    print(json.dumps(results, indent=2, ensure_ascii=False))
    return 0


def _run_analyze_process(args: argparse.Namespace) -> int:
    """Print structure counts and the detected document type for one file.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    from barkly_research.ingest.chunker import analyze_document, analyze_structure, normalize_text

    _setup_logging(args.log_dir, args.verbose)

    text = _read_text(args.file)
    if text is None:
        return 1

    normalized = normalize_text(text)
    structure = analyze_structure(normalized)
    analysis = analyze_document(normalized)

    print("Structure Analysis")
    print("=" * 40)
    print(f"File:        {args.file}")
    print(f"Characters:  {len(normalized):,}")
    print(f"Words:       {len(normalized.split()):,}")
    print(f"Headers:     {len(structure.headers)}")
    print(f"Paragraphs:  {len(structure.paragraphs)}")
    print(f"Sentences:   {len(structure.sentences)}")
    print(f"List items:  {len(structure.list_items)}")
    print(f"Quotes:      {len(structure.quotes)}")
    print(f"Code blocks: {len(structure.code_blocks)}")
    print(f"Document:    {analysis.document_type} (recommended strategy: {analysis.recommended_strategy})")

    for header in structure.headers:
        print(f"  {'  ' * (header.level - 1)}- {header.text}")

    return 0


def main() -> None:
    """Run the chunking CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    if args.command == "chunk":
        exit_code = _run_chunk_process(args)
        sys.exit(exit_code)
    elif args.command == "analyze":
        exit_code = _run_analyze_process(args)
        sys.exit(exit_code)
    else:
        # No subcommand
        parser.print_help()
        sys.exit(0 if len(sys.argv) == 1 else 1)


if __name__ == "__main__":
    main()
