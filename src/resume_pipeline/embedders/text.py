"""Dense text embedder using sentence-transformers."""

import logging
from typing import Any

from sentence_transformers import SentenceTransformer  # type: ignore

from resume_pipeline.embedders.base import BaseEmbedder

logger = logging.getLogger(__name__)


class TextEmbedder(BaseEmbedder):
    """Dense text embedder using sentence-transformers.

    Uses sentence-transformers/all-MiniLM-L6-v2 by default (384 dimensions).
    Documents are embedded without a prefix.
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        device: str = "cpu",
        batch_size: int = 32,
        normalize_embeddings: bool = True,
        **kwargs: Any,
    ) -> None:
        """Initialize text embedder.

        Args:
                model_name: HuggingFace model identifier.
                device: Device for inference (cpu, cuda, mps, auto).
                batch_size: Batch size for the model.
                normalize_embeddings: Whether to normalize embeddings to unit length.
                **kwargs: Additional sentence-transformers arguments.
        """
        super().__init__(model_name, device, batch_size)
        self.normalize_embeddings = normalize_embeddings
        self._model_kwargs = kwargs

    def _load_model(self) -> None:
        """Load sentence-transformers model."""
        logger.info(f"Loading sentence-transformers model: {self.model_name}")

        self._model = SentenceTransformer(
            self.model_name,
            device=self.device,
            **self._model_kwargs,
        )

        self._embedding_dim = self._model.get_sentence_embedding_dimension()

        logger.info(
            f"Loaded {self.model_name} with {self._embedding_dim} dimensions "
            f"on device {self.device}"
        )

    def _embed_sync(self, text: str) -> Any:
        """Synchronous single text embedding.

        Args:
                text: Text to embed.

        Returns:
                Embedding as a numpy array.
        """
        if not self._model:
            raise RuntimeError("Model not loaded. Call load() first.")

        return self._model.encode(
            text,
            batch_size=self.batch_size,
            normalize_embeddings=self.normalize_embeddings,
            convert_to_numpy=True,
            show_progress_bar=False,
        )

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions.

        Returns:
                Number of dimensions in embedding vector.
        """
        if self._model_loaded and hasattr(self, "_embedding_dim"):
            dim: int = self._embedding_dim
            return dim
        # Default for all-MiniLM-L6-v2
        return 384
