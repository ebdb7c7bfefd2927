"""Event-driven ingestion, embedding and indexing pipeline for semantic resume search."""

__version__ = "0.1.0"
