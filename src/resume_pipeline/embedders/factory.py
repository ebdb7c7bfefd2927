"""Factory for creating the embedder pool from settings."""

import logging

from resume_pipeline.config import Settings
from resume_pipeline.embedders.pool import EmbedderPool

logger = logging.getLogger(__name__)


def create_embedder_pool(settings: Settings) -> EmbedderPool:
    """Build a pool of ``settings.embedder_pool_size`` text embedders.

    Each pool slot gets its own model instance so replicas never share
    state. Models are not loaded here; call ``EmbedderPool.load_all``.

    Args:
            settings: Application settings.

    Returns:
            EmbedderPool with unloaded TextEmbedder instances.
    """
    from resume_pipeline.embedders.text import TextEmbedder

    logger.info(
        f"Creating {settings.embedder_pool_size} text embedder(s) for "
        f"{settings.embedder_model} on {settings.embedder_device}"
    )
    embedders = [
        TextEmbedder(model_name=settings.embedder_model, device=settings.embedder_device)
        for _ in range(settings.embedder_pool_size)
    ]
    return EmbedderPool(embedders)
