"""Pytest configuration and shared fixtures."""

import hashlib
import threading
import time
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from aiokafka.structs import ConsumerRecord

from resume_pipeline.config import Settings, load_settings
from resume_pipeline.embedders.base import BaseEmbedder
from resume_pipeline.embedders.pool import EmbedderPool

TEST_DIMENSIONS = 8


class FakeEmbedder(BaseEmbedder):
    """Deterministic embedder: the vector is derived from a hash of the text."""

    def __init__(self, dimensions: int = TEST_DIMENSIONS, delay: float = 0.0, **kwargs: Any):
        super().__init__(model_name="fake-model", device="cpu", **kwargs)
        self._dimension = dimensions
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def _load_model(self) -> None:
        self._model = object()

    def _embed_sync(self, text: str) -> Any:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            self.calls.append(text)
            digest = hashlib.sha256(text.encode("utf-8")).digest()
            return np.frombuffer(digest[: self._dimension], dtype=np.uint8) / 255.0
        finally:
            with self._lock:
                self.active -= 1

    @property
    def dimensions(self) -> int:
        return self._dimension


class FailingEmbedder(FakeEmbedder):
    """Embedder whose model raises on every call."""

    def _embed_sync(self, text: str) -> Any:
        raise RuntimeError("CUDA out of memory")


def make_record(
    value: bytes | None,
    key: bytes | None = None,
    topic: str = "resume_received",
    partition: int = 0,
    offset: int = 0,
) -> ConsumerRecord:
    """Build a ConsumerRecord as returned by AIOKafkaConsumer."""
    return ConsumerRecord(
        topic=topic,
        partition=partition,
        offset=offset,
        timestamp=0,
        timestamp_type=0,
        key=key,
        value=value,
        checksum=None,
        serialized_key_size=len(key) if key else -1,
        serialized_value_size=len(value) if value else -1,
        headers=(),
    )


@pytest.fixture
def settings() -> Settings:
    """Settings without a config file, sized for the fake embedder."""
    return load_settings(
        None,
        embedding_dimensions=TEST_DIMENSIONS,
        metrics_port=0,
        qdrant_collection="test_resumes",
    )


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def embedder_pool(fake_embedder: FakeEmbedder) -> EmbedderPool:
    return EmbedderPool([fake_embedder])


@pytest.fixture
def mock_kafka_client() -> MagicMock:
    """KafkaClient stand-in recording every publish."""
    kafka = MagicMock()
    kafka.send_event = AsyncMock()
    kafka.commit = AsyncMock()
    kafka.create_consumer = AsyncMock()
    kafka.get_producer = AsyncMock()
    kafka.close = AsyncMock()
    kafka.manual_commit = True
    return kafka
