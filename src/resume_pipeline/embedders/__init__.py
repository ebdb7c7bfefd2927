"""Embedder implementations for the pipeline."""

from resume_pipeline.embedders.base import BaseEmbedder
from resume_pipeline.embedders.factory import create_embedder_pool
from resume_pipeline.embedders.pool import EmbedderPool

__all__ = [
    "BaseEmbedder",
    "EmbedderPool",
    "create_embedder_pool",
]
