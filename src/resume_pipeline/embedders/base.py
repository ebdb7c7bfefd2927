"""Base abstract class for all embedders."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import numpy as np
import torch  # type: ignore

from resume_pipeline.errors import InferenceError
from resume_pipeline.utils.metrics import record_embedding, record_model_load

logger = logging.getLogger(__name__)


class BaseEmbedder(ABC):
    """Abstract base class for all embedder implementations.

    An embedder owns one model instance and one executor thread. Every call
    into the model (load, encode) runs on that thread, so the model is never
    touched by two threads at once and the event loop is never blocked.
    """

    def __init__(
        self,
        model_name: str,
        device: str = "cpu",
        batch_size: int = 32,
        **kwargs: Any,
    ) -> None:
        """Initialize base embedder.

        Args:
                model_name: HuggingFace model identifier.
                device: Device to use for inference (cpu, cuda, mps, auto).
                batch_size: Batch size passed to the model.
                **kwargs: Additional model-specific arguments.
        """
        self.model_name = model_name
        self.device = self._get_device(device)
        self.batch_size = batch_size
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="embedder")
        self._model: Any = None
        self._model_loaded = False

        logger.info(
            f"Initializing {self.__class__.__name__} with model '{model_name}' "
            f"on device '{self.device}'"
        )

    def _get_device(self, device: str) -> str:
        """Auto-detect and validate device.

        Args:
                device: Requested device (cpu, cuda, mps, auto).

        Returns:
                Validated device string.
        """
        if device == "auto":
            if torch.cuda.is_available():
                return "cuda"
            elif torch.backends.mps.is_available():
                return "mps"
            return "cpu"

        if device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA requested but not available, falling back to CPU")
            return "cpu"

        if device == "mps" and not torch.backends.mps.is_available():
            logger.warning("MPS requested but not available, falling back to CPU")
            return "cpu"

        return device

    @abstractmethod
    def _load_model(self) -> None:
        """Load the embedding model.

        Should set self._model. Runs on the executor thread.
        """
        pass

    @abstractmethod
    def _embed_sync(self, text: str) -> Any:
        """Synchronous embedding of a single text.

        Args:
                text: Text to embed.

        Returns:
                A one-dimensional array-like of floats.
        """
        pass

    async def embed(self, text: str) -> list[float]:
        """Embed one text on the executor thread.

        Args:
                text: Text to embed.

        Returns:
                Embedding as float32 values.

        Raises:
                InferenceError: If the model fails or returns something other than a finite vector.
        """
        if not self._model_loaded:
            await self.load()

        start_time = time.perf_counter()
        loop = asyncio.get_running_loop()
        try:
            raw = await loop.run_in_executor(self._executor, self._embed_sync, text)
            vector = np.asarray(raw, dtype=np.float32)
            if vector.ndim != 1:
                raise ValueError(f"model returned array of shape {vector.shape}")
            if not np.isfinite(vector).all():
                raise ValueError("model returned NaN or infinite values")
        except Exception as e:
            record_embedding(self.model_name, time.perf_counter() - start_time, type(e).__name__)
            raise InferenceError(f"Embedding with {self.model_name} failed: {e}") from e

        record_embedding(self.model_name, time.perf_counter() - start_time)
        result: list[float] = vector.tolist()
        return result

    async def load(self) -> None:
        """Load the model on the executor thread."""
        if self._model_loaded:
            logger.debug(f"Model {self.model_name} already loaded")
            return

        logger.info(f"Loading model {self.model_name}...")
        start_time = time.perf_counter()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self._load_model)
        self._model_loaded = True
        record_model_load(self.model_name, time.perf_counter() - start_time)
        logger.info(f"Model {self.model_name} loaded successfully")

    async def unload(self) -> None:
        """Unload the model to free memory."""
        if not self._model_loaded:
            return

        logger.info(f"Unloading model {self.model_name}...")
        self._model = None
        self._model_loaded = False

        if self.device == "cuda":
            torch.cuda.empty_cache()

    @property
    def is_loaded(self) -> bool:
        return self._model_loaded

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions.

        This should be overridden by subclasses to return the correct dimension.
        """
        return 0

    def __del__(self) -> None:
        """Cleanup executor on deletion."""
        self._executor.shutdown(wait=False)
