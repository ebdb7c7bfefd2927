"""Tests for the Kafka client wrapper."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError
from aiokafka.structs import TopicPartition

from resume_pipeline.clients.kafka import (
    ConsumerConfig,
    KafkaClient,
    ProducerConfig,
    consumer_config_from_settings,
    producer_config_from_settings,
)
from resume_pipeline.config import Settings, load_settings
from resume_pipeline.errors import ConnectivityError, PublishError

from .conftest import make_record


@pytest.fixture
def mock_producer_cls():
    with patch("resume_pipeline.clients.kafka.AIOKafkaProducer") as mock_cls:
        producer = MagicMock()
        producer.start = AsyncMock()
        producer.stop = AsyncMock()
        producer.send_and_wait = AsyncMock()
        mock_cls.return_value = producer
        yield mock_cls


@pytest.fixture
def mock_consumer_cls():
    with patch("resume_pipeline.clients.kafka.AIOKafkaConsumer") as mock_cls:
        consumer = MagicMock()
        consumer.start = AsyncMock()
        consumer.stop = AsyncMock()
        consumer.commit = AsyncMock()
        mock_cls.return_value = consumer
        yield mock_cls


class TestConfigFromSettings:
    """Tests for building client configs from Settings."""

    def test_producer_config(self, settings: Settings) -> None:
        config = producer_config_from_settings(settings, client_id="ingestion-api")

        assert config.bootstrap_servers == ["localhost:9092"]
        assert config.client_id == "ingestion-api"
        assert config.acks == "all"
        assert config.request_timeout_ms == 5000
        assert config.send_timeout_s == 5.0

    def test_consumer_config_manual_commit_by_default(self, settings: Settings) -> None:
        config = consumer_config_from_settings(settings, "vectorizer_group_v1")

        assert config.group_id == "vectorizer_group_v1"
        assert config.auto_offset_reset == "earliest"
        assert config.enable_auto_commit is False
        assert KafkaClient(consumer_config=config).manual_commit is True

    def test_consumer_config_auto_commit_mode(self) -> None:
        settings = load_settings(None, kafka_commit_mode="auto")
        config = consumer_config_from_settings(settings, "indexer_group_v1")

        assert config.enable_auto_commit is True
        assert KafkaClient(consumer_config=config).manual_commit is False


class TestProducer:
    """Tests for producer lifecycle and publishing."""

    async def test_get_producer_is_lazy_and_cached(self, mock_producer_cls: MagicMock) -> None:
        client = KafkaClient(producer_config=ProducerConfig(client_id="test"))
        mock_producer_cls.assert_not_called()

        first = await client.get_producer()
        second = await client.get_producer()

        assert first is second
        mock_producer_cls.assert_called_once()
        assert mock_producer_cls.call_args.kwargs["acks"] == "all"
        first.start.assert_awaited_once()

    async def test_concurrent_get_producer_creates_one(self, mock_producer_cls: MagicMock) -> None:
        client = KafkaClient()

        await asyncio.gather(*(client.get_producer() for _ in range(5)))

        mock_producer_cls.assert_called_once()

    async def test_get_producer_unreachable(self, mock_producer_cls: MagicMock) -> None:
        producer = mock_producer_cls.return_value
        producer.start = AsyncMock(side_effect=KafkaConnectionError("no brokers"))
        client = KafkaClient()

        with pytest.raises(ConnectivityError):
            await client.get_producer()

        producer.stop.assert_awaited_once()
        assert client._producer is None

    async def test_send_event_keys_by_document_id(self, mock_producer_cls: MagicMock) -> None:
        client = KafkaClient()

        await client.send_event("resume_received", key="doc-1", value=b"{}")

        mock_producer_cls.return_value.send_and_wait.assert_awaited_once_with(
            "resume_received", value=b"{}", key=b"doc-1"
        )

    async def test_send_event_timeout(self, mock_producer_cls: MagicMock) -> None:
        """An unacknowledged send fails within the configured bound."""

        async def never_acked(*args, **kwargs):
            await asyncio.sleep(10)

        mock_producer_cls.return_value.send_and_wait = AsyncMock(side_effect=never_acked)
        client = KafkaClient(producer_config=ProducerConfig(send_timeout_s=0.05))

        with pytest.raises(PublishError) as exc_info:
            await client.send_event("resume_received", key="doc-1", value=b"{}")

        assert exc_info.value.topic == "resume_received"
        assert exc_info.value.key == "doc-1"
        assert "not acknowledged" in str(exc_info.value)

    async def test_send_event_broker_error(self, mock_producer_cls: MagicMock) -> None:
        mock_producer_cls.return_value.send_and_wait = AsyncMock(
            side_effect=KafkaTimeoutError()
        )
        client = KafkaClient()

        with pytest.raises(PublishError):
            await client.send_event("resume_vectorized", key="doc-1", value=b"{}")

    async def test_send_event_producer_unavailable(self, mock_producer_cls: MagicMock) -> None:
        mock_producer_cls.return_value.start = AsyncMock(
            side_effect=KafkaConnectionError("no brokers")
        )
        client = KafkaClient()

        with pytest.raises(PublishError):
            await client.send_event("resume_received", key="doc-1", value=b"{}")

    async def test_producer_recreated_after_failed_start(
        self, mock_producer_cls: MagicMock
    ) -> None:
        """A broker that comes back is picked up on the next send."""
        producer = mock_producer_cls.return_value
        producer.start = AsyncMock(side_effect=[KafkaConnectionError("down"), None])
        client = KafkaClient()

        with pytest.raises(PublishError):
            await client.send_event("resume_received", key="doc-1", value=b"{}")
        await client.send_event("resume_received", key="doc-1", value=b"{}")

        assert mock_producer_cls.call_count == 2
        producer.send_and_wait.assert_awaited_once()


class TestConsumer:
    """Tests for consumer lifecycle and commits."""

    async def test_create_consumer(self, mock_consumer_cls: MagicMock) -> None:
        client = KafkaClient(consumer_config=ConsumerConfig(group_id="indexer_group_v1"))

        consumer = await client.create_consumer(["resume_vectorized"])

        assert consumer is mock_consumer_cls.return_value
        args, kwargs = mock_consumer_cls.call_args
        assert args == ("resume_vectorized",)
        assert kwargs["group_id"] == "indexer_group_v1"
        assert kwargs["enable_auto_commit"] is False

    async def test_create_consumer_unreachable(self, mock_consumer_cls: MagicMock) -> None:
        consumer = mock_consumer_cls.return_value
        consumer.start = AsyncMock(side_effect=KafkaConnectionError("no brokers"))
        client = KafkaClient()

        with pytest.raises(ConnectivityError):
            await client.create_consumer(["resume_received"])
        consumer.stop.assert_awaited_once()

    async def test_commit_moves_past_record(self, mock_consumer_cls: MagicMock) -> None:
        client = KafkaClient()
        await client.create_consumer(["resume_received"])

        await client.commit(make_record(b"{}", partition=2, offset=41))

        mock_consumer_cls.return_value.commit.assert_awaited_once_with(
            {TopicPartition("resume_received", 2): 42}
        )

    async def test_commit_without_consumer(self) -> None:
        with pytest.raises(RuntimeError):
            await KafkaClient().commit(make_record(b"{}"))

    async def test_close_stops_both(
        self, mock_producer_cls: MagicMock, mock_consumer_cls: MagicMock
    ) -> None:
        async with KafkaClient() as client:
            await client.get_producer()
            await client.create_consumer(["resume_received"])

        mock_producer_cls.return_value.stop.assert_awaited_once()
        mock_consumer_cls.return_value.stop.assert_awaited_once()
        assert client._producer is None
        assert client._consumer is None
