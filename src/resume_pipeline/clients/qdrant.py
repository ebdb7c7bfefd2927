"""Async Qdrant client wrapper with connection management."""

import logging
import time
from typing import Any
from uuid import UUID

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models

from resume_pipeline.config import Settings
from resume_pipeline.errors import CollectionNotFoundError, ConnectivityError, UpsertError
from resume_pipeline.events import to_point_id
from resume_pipeline.utils.metrics import record_qdrant_request

logger = logging.getLogger(__name__)


class QdrantClientWrapper:
    """Wrapper around AsyncQdrantClient with lifecycle management.

    Provides async context manager interface for proper resource cleanup.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize the Qdrant client wrapper.

        Args:
            settings: Application settings containing Qdrant configuration.
        """
        self.settings = settings
        self._client: AsyncQdrantClient | None = None
        self._collection_name = settings.qdrant_collection

    @property
    def collection_name(self) -> str:
        return self._collection_name

    async def connect(self) -> None:
        """Create the AsyncQdrantClient with configured timeout and gRPC settings.

        The client is lazy; use ``verify_collection`` to confirm the server
        is reachable.
        """
        logger.info(
            f"Connecting to Qdrant at {self.settings.qdrant_url} "
            f"(collection: {self._collection_name})"
        )

        client_kwargs: dict[str, Any] = {
            "url": self.settings.qdrant_url,
            "timeout": self.settings.qdrant_timeout,
            "prefer_grpc": self.settings.qdrant_prefer_grpc,
        }
        if self.settings.qdrant_grpc_port is not None:
            client_kwargs["grpc_port"] = self.settings.qdrant_grpc_port

        self._client = AsyncQdrantClient(**client_kwargs)

    async def close(self) -> None:
        """Close the Qdrant client connection."""
        if self._client is not None:
            logger.info("Closing Qdrant client connection")
            await self._client.close()
            self._client = None

    @property
    def client(self) -> AsyncQdrantClient:
        """Get the underlying AsyncQdrantClient instance.

        Raises:
            RuntimeError: If client is not connected.
        """
        if self._client is None:
            raise RuntimeError("Qdrant client not connected. Call connect() first.")
        return self._client

    async def collection_exists(self, collection_name: str | None = None) -> bool:
        """Check whether a collection exists.

        Args:
            collection_name: Name of the collection to check. Defaults to configured collection.

        Raises:
            ConnectivityError: If Qdrant cannot be reached.
        """
        collection = collection_name or self._collection_name
        start_time = time.perf_counter()
        try:
            exists = await self.client.collection_exists(collection_name=collection)
        except Exception as e:
            record_qdrant_request("collection_exists", False, time.perf_counter() - start_time)
            raise ConnectivityError(f"Qdrant unreachable at {self.settings.qdrant_url}: {e}") from e

        record_qdrant_request("collection_exists", True, time.perf_counter() - start_time)
        return bool(exists)

    async def verify_collection(self) -> None:
        """Fail fast unless the configured collection exists.

        Raises:
            CollectionNotFoundError: If the collection is missing.
            ConnectivityError: If Qdrant cannot be reached.
        """
        if not await self.collection_exists():
            raise CollectionNotFoundError(self._collection_name)
        logger.info(f"Verified Qdrant collection: {self._collection_name}")

    async def ensure_collection(self, dimensions: int) -> bool:
        """Create the configured collection if it does not exist.

        Args:
            dimensions: Vector size of the collection.

        Returns:
            True if the collection was created, False if it already existed.
        """
        if await self.collection_exists():
            logger.info(f"Collection '{self._collection_name}' already exists")
            return False

        start_time = time.perf_counter()
        try:
            await self.client.create_collection(
                collection_name=self._collection_name,
                vectors_config=models.VectorParams(
                    size=dimensions, distance=models.Distance.COSINE
                ),
            )
        except Exception as e:
            record_qdrant_request("create_collection", False, time.perf_counter() - start_time)
            raise ConnectivityError(
                f"Failed to create collection '{self._collection_name}': {e}"
            ) from e

        record_qdrant_request("create_collection", True, time.perf_counter() - start_time)
        logger.info(f"Created collection '{self._collection_name}' with {dimensions} dimensions")
        return True

    async def upsert_vector(self, document_id: UUID, vector: list[float]) -> str:
        """Insert or overwrite the point for ``document_id``.

        Waits for Qdrant to apply the write before returning.

        Args:
            document_id: Document identifier; encoded losslessly as the point ID.
            vector: Dense embedding.

        Returns:
            The point ID written.

        Raises:
            UpsertError: If Qdrant rejects the write or cannot be reached.
        """
        point_id = to_point_id(document_id)
        point = models.PointStruct(id=point_id, vector=vector, payload={})

        start_time = time.perf_counter()
        try:
            await self.client.upsert(
                collection_name=self._collection_name,
                points=[point],
                wait=True,
            )
        except Exception as e:
            record_qdrant_request("upsert", False, time.perf_counter() - start_time)
            raise UpsertError(f"Upsert of point {point_id} failed: {e}") from e

        record_qdrant_request("upsert", True, time.perf_counter() - start_time)
        return point_id

    async def health_check(self) -> bool:
        """Check if Qdrant is healthy and responsive."""
        if self._client is None:
            return False
        try:
            return await self.collection_exists()
        except ConnectivityError as e:
            logger.error(f"Qdrant health check failed: {e}")
            return False

    async def __aenter__(self) -> "QdrantClientWrapper":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
