"""Exception hierarchy shared by all pipeline stages.

Three families cover every failure a stage can observe:

- ConnectivityError: the broker or the vector store cannot be reached.
  Fatal at startup, a per-message drop in steady state.
- MalformedMessageError: a record does not parse against its event shape.
  Always dropped, never retried.
- ResourceError: inference or upsert failed for an otherwise valid record.
  Dropped and logged.
"""


class PipelineError(Exception):
    """Base class for pipeline errors."""

    # Label used when a worker drops a record because of this error
    reason = "error"


class ConnectivityError(PipelineError):
    """Raised when an external service (Kafka, Qdrant) is unreachable."""

    reason = "unavailable"


class PublishError(ConnectivityError):
    """Raised when a Kafka publish fails or is not acknowledged in time."""

    reason = "publish_failed"

    def __init__(self, message: str, topic: str, key: str | None = None) -> None:
        """Initialize publish error.

        Args:
            message: Error message.
            topic: Topic the publish targeted.
            key: Message key, usually the document ID.
        """
        super().__init__(message)
        self.topic = topic
        self.key = key


class CollectionNotFoundError(ConnectivityError):
    """Raised when the target Qdrant collection does not exist."""

    reason = "collection_missing"

    def __init__(self, collection_name: str) -> None:
        super().__init__(f"Qdrant collection '{collection_name}' does not exist")
        self.collection_name = collection_name


class MalformedMessageError(PipelineError):
    """Raised when a broker record cannot be decoded into its event shape."""

    reason = "malformed"


class ResourceError(PipelineError):
    """Raised when a stateful resource (model, store) fails on valid input."""


class InferenceError(ResourceError):
    """Raised when the embedding model fails to produce a vector."""

    reason = "inference_failed"


class DimensionMismatchError(ResourceError):
    """Raised when a vector length differs from the configured dimension."""

    reason = "dimension_mismatch"

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected vector of {expected} dimensions, got {actual}")
        self.expected = expected
        self.actual = actual


class UpsertError(ResourceError):
    """Raised when a Qdrant upsert is rejected or fails."""

    reason = "upsert_failed"
