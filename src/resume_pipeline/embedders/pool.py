"""Single-owner pool of embedder instances.

A model instance is stateful and not safe for concurrent use. The pool hands
each instance to at most one task at a time: with capacity 1 inference is
serialized across the process, with capacity N there are N independent
model replicas.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from resume_pipeline.embedders.base import BaseEmbedder
from resume_pipeline.utils.metrics import set_pool_available

logger = logging.getLogger(__name__)


class EmbedderPool:
    """Fixed-capacity pool with acquire/release semantics."""

    def __init__(self, embedders: Sequence[BaseEmbedder]) -> None:
        """Initialize the pool.

        Args:
            embedders: Instances owned by the pool. Each must wrap its own model.

        Raises:
            ValueError: If no embedders are given or an instance appears twice.
        """
        if not embedders:
            raise ValueError("EmbedderPool needs at least one embedder")
        if len({id(e) for e in embedders}) != len(embedders):
            raise ValueError("EmbedderPool instances must be distinct")

        self._embedders = list(embedders)
        self._available: asyncio.Queue[BaseEmbedder] = asyncio.Queue()
        for embedder in self._embedders:
            self._available.put_nowait(embedder)
        set_pool_available(self.available)

    @property
    def capacity(self) -> int:
        return len(self._embedders)

    @property
    def available(self) -> int:
        return self._available.qsize()

    @property
    def dimensions(self) -> int:
        return self._embedders[0].dimensions

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[BaseEmbedder]:
        """Hold one embedder exclusively for the duration of the block."""
        embedder = await self._available.get()
        set_pool_available(self.available)
        try:
            yield embedder
        finally:
            self._available.put_nowait(embedder)
            set_pool_available(self.available)

    async def embed(self, text: str) -> list[float]:
        """Embed ``text`` with whichever instance is free next.

        Raises:
            InferenceError: If the model fails.
        """
        async with self.acquire() as embedder:
            return await embedder.embed(text)

    async def load_all(self) -> None:
        """Load every model replica, holding the whole pool while doing so."""
        held = [await self._available.get() for _ in range(self.capacity)]
        set_pool_available(self.available)
        try:
            for embedder in held:
                await embedder.load()
        finally:
            for embedder in held:
                self._available.put_nowait(embedder)
            set_pool_available(self.available)
        logger.info(f"Loaded {self.capacity} embedder instance(s)")

    async def unload_all(self) -> None:
        for embedder in self._embedders:
            await embedder.unload()
