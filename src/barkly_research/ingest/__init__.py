"""Document ingestion: text normalization, structure analysis and chunking."""
