"""Event contracts exchanged between pipeline stages.

Two events cross the broker:

- ``DocumentReceivedEvent`` on the received topic, produced by ingestion.
- ``DocumentVectorizedEvent`` on the vectorized topic, produced by the
  embedding worker.

Both are JSON documents. Unknown or missing fields make a record unparsable;
there is no version negotiation.
"""

from typing import TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, ValidationError

from resume_pipeline.errors import DimensionMismatchError, MalformedMessageError


class _Contract(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class DocumentPayload(_Contract):
    """A document as accepted at ingestion."""

    id: UUID = Field(description="Document identifier assigned at ingestion")
    content: str = Field(description="Raw text to embed")

    @classmethod
    def new(cls, content: str) -> "DocumentPayload":
        """Create a payload with a freshly generated document identifier."""
        return cls(id=uuid4(), content=content)


class DocumentReceivedEvent(_Contract):
    """Emitted by ingestion once per accepted document."""

    payload: DocumentPayload

    @property
    def document_id(self) -> UUID:
        return self.payload.id


class DocumentVectorizedEvent(_Contract):
    """Emitted by the embedding worker after successful inference."""

    id: UUID = Field(description="Identifier of the originating document")
    vector: list[FiniteFloat] = Field(
        min_length=1, description="Dense embedding (finite float32 values)"
    )

    @property
    def document_id(self) -> UUID:
        return self.id

    def check_dimensions(self, expected: int) -> None:
        """Raise DimensionMismatchError unless the vector has ``expected`` entries."""
        if len(self.vector) != expected:
            raise DimensionMismatchError(expected=expected, actual=len(self.vector))


EventT = TypeVar("EventT", bound=_Contract)


def encode_event(event: _Contract) -> bytes:
    """Serialize an event to UTF-8 JSON bytes."""
    return event.model_dump_json().encode("utf-8")


def _decode(model: type[EventT], raw: bytes | None) -> EventT:
    if raw is None:
        raise MalformedMessageError(f"Empty record, expected {model.__name__}")
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedMessageError(
            f"Record does not match {model.__name__}: {e.error_count()} error(s): "
            f"{e.errors(include_url=False)[0]['msg']}"
        ) from e


def decode_received_event(raw: bytes | None) -> DocumentReceivedEvent:
    """Parse a received-topic record.

    Raises:
        MalformedMessageError: If the record is empty or does not match the contract.
    """
    return _decode(DocumentReceivedEvent, raw)


def decode_vectorized_event(raw: bytes | None) -> DocumentVectorizedEvent:
    """Parse a vectorized-topic record.

    Raises:
        MalformedMessageError: If the record is empty or does not match the contract.
    """
    return _decode(DocumentVectorizedEvent, raw)


def to_point_id(document_id: UUID) -> str:
    """Encode a document identifier as a Qdrant point ID.

    The canonical UUID string keeps all 128 bits, so the mapping is reversible.
    """
    return str(document_id)


def from_point_id(point_id: str | int | UUID) -> UUID:
    """Decode a Qdrant point ID back into the document identifier.

    Raises:
        ValueError: If the point ID is not a UUID (for example a numeric ID).
    """
    if isinstance(point_id, UUID):
        return point_id
    if isinstance(point_id, int):
        raise ValueError(f"Numeric point ID {point_id} cannot encode a document identifier")
    return UUID(point_id)
