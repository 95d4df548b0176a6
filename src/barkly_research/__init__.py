"""Barkly Research Platform: document ingestion and chunking."""
