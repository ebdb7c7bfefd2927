"""Long-running pipeline workers.

Components:
    - EventWorker: consume loop, drop accounting and commit policy
    - EmbeddingWorker: resume_received -> resume_vectorized
    - IndexingWorker: resume_vectorized -> Qdrant
"""

from resume_pipeline.workers.base import EventWorker, Outcome
from resume_pipeline.workers.embedding import EmbeddingWorker
from resume_pipeline.workers.indexing import IndexingWorker

__all__ = [
    "EmbeddingWorker",
    "EventWorker",
    "IndexingWorker",
    "Outcome",
]
