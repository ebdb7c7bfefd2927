"""Utility modules for the pipeline."""

from resume_pipeline.utils.logging import (
    bind_document,
    configure_logging,
    get_logger,
    record_context,
)

__all__ = [
    "bind_document",
    "configure_logging",
    "get_logger",
    "record_context",
]
