"""Tests for event contracts and point ID encoding."""

import json
import uuid

import pytest
from pydantic import ValidationError

from resume_pipeline.errors import DimensionMismatchError, MalformedMessageError
from resume_pipeline.events import (
    DocumentPayload,
    DocumentReceivedEvent,
    DocumentVectorizedEvent,
    decode_received_event,
    decode_vectorized_event,
    encode_event,
    from_point_id,
    to_point_id,
)


class TestDocumentPayload:
    """Tests for DocumentPayload."""

    def test_new_generates_distinct_ids(self) -> None:
        first = DocumentPayload.new("same text")
        second = DocumentPayload.new("same text")
        assert first.id != second.id
        assert first.content == second.content

    def test_new_id_is_uuid4(self) -> None:
        payload = DocumentPayload.new("text")
        assert payload.id.version == 4


class TestReceivedEvent:
    """Tests for DocumentReceivedEvent wire format."""

    def test_wire_shape(self) -> None:
        doc_id = uuid.uuid4()
        event = DocumentReceivedEvent(payload=DocumentPayload(id=doc_id, content="hello"))

        data = json.loads(encode_event(event))

        assert data == {"payload": {"id": str(doc_id), "content": "hello"}}

    def test_decode_preserves_id(self) -> None:
        doc_id = uuid.uuid4()
        raw = json.dumps({"payload": {"id": str(doc_id), "content": "Senior engineer"}}).encode()

        event = decode_received_event(raw)

        assert event.document_id == doc_id
        assert event.payload.content == "Senior engineer"

    def test_decode_unicode_content(self) -> None:
        event = DocumentReceivedEvent(payload=DocumentPayload.new("Ingénieur, 東京"))
        assert decode_received_event(encode_event(event)).payload.content == "Ingénieur, 東京"

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            b"",
            b"not json",
            b"\xff\xfe",
            b"[]",
            b'{"payload": {"content": "missing id"}}',
            b'{"payload": {"id": "not-a-uuid", "content": "x"}}',
            b'{"payload": {"id": "0b6f3e8e-1c1a-4c8e-9a55-8f4f1c3d2e10"}}',
            b'{"id": "0b6f3e8e-1c1a-4c8e-9a55-8f4f1c3d2e10", "vector": [0.1]}',
        ],
    )
    def test_decode_rejects_malformed(self, raw: bytes | None) -> None:
        with pytest.raises(MalformedMessageError):
            decode_received_event(raw)

    def test_decode_rejects_unknown_fields(self) -> None:
        doc_id = uuid.uuid4()
        raw = json.dumps(
            {"payload": {"id": str(doc_id), "content": "x", "source": "email"}}
        ).encode()

        with pytest.raises(MalformedMessageError):
            decode_received_event(raw)


class TestVectorizedEvent:
    """Tests for DocumentVectorizedEvent."""

    def test_wire_shape(self) -> None:
        doc_id = uuid.uuid4()
        event = DocumentVectorizedEvent(id=doc_id, vector=[0.5, -0.25])

        assert json.loads(encode_event(event)) == {"id": str(doc_id), "vector": [0.5, -0.25]}

    def test_decode(self) -> None:
        doc_id = uuid.uuid4()
        raw = json.dumps({"id": str(doc_id), "vector": [1, 2.5]}).encode()

        event = decode_vectorized_event(raw)

        assert event.id == doc_id
        assert event.vector == [1.0, 2.5]

    @pytest.mark.parametrize(
        "raw",
        [
            b'{"id": "0b6f3e8e-1c1a-4c8e-9a55-8f4f1c3d2e10"}',
            b'{"id": "0b6f3e8e-1c1a-4c8e-9a55-8f4f1c3d2e10", "vector": []}',
            b'{"id": "0b6f3e8e-1c1a-4c8e-9a55-8f4f1c3d2e10", "vector": ["a"]}',
            b'{"id": 42, "vector": [0.1]}',
            b'{"id": "0b6f3e8e-1c1a-4c8e-9a55-8f4f1c3d2e10", "vector": [0.1], "extra": 1}',
        ],
    )
    def test_decode_rejects_malformed(self, raw: bytes) -> None:
        with pytest.raises(MalformedMessageError):
            decode_vectorized_event(raw)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_rejects_non_finite_values(self, value: float) -> None:
        with pytest.raises(ValidationError):
            DocumentVectorizedEvent(id=uuid.uuid4(), vector=[0.1, value])

    def test_decode_rejects_null_entry(self) -> None:
        raw = b'{"id": "0b6f3e8e-1c1a-4c8e-9a55-8f4f1c3d2e10", "vector": [null, 0.0]}'
        with pytest.raises(MalformedMessageError):
            decode_vectorized_event(raw)

    def test_check_dimensions(self) -> None:
        event = DocumentVectorizedEvent(id=uuid.uuid4(), vector=[0.0] * 384)
        event.check_dimensions(384)

        with pytest.raises(DimensionMismatchError) as exc_info:
            event.check_dimensions(768)
        assert exc_info.value.expected == 768
        assert exc_info.value.actual == 384


class TestPointId:
    """Tests for the lossless point ID encoding."""

    def test_round_trip(self) -> None:
        for _ in range(100):
            doc_id = uuid.uuid4()
            assert from_point_id(to_point_id(doc_id)) == doc_id

    def test_round_trip_high_bits(self) -> None:
        # IDs that differ only above bit 64 must stay distinct
        low = uuid.UUID(int=0x0000_0000_0000_0000_FFFF_FFFF_FFFF_FFFF)
        high = uuid.UUID(int=0xFFFF_FFFF_FFFF_FFFF_FFFF_FFFF_FFFF_FFFF)

        assert to_point_id(low) != to_point_id(high)
        assert from_point_id(to_point_id(high)) == high

    def test_point_id_is_canonical_string(self) -> None:
        doc_id = uuid.uuid4()
        assert to_point_id(doc_id) == str(doc_id)

    def test_numeric_point_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            from_point_id(12345)
