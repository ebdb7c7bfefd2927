"""HTTP ingestion endpoint."""

from resume_pipeline.ingestion.app import create_app
from resume_pipeline.ingestion.publisher import DocumentPublisher

__all__ = ["DocumentPublisher", "create_app"]
