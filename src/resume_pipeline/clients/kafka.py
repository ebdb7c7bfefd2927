"""Async Kafka client wrapper using aiokafka."""

import asyncio
import logging
import time
from typing import Any

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaError
from aiokafka.structs import ConsumerRecord, TopicPartition
from pydantic import BaseModel, Field

from resume_pipeline.config import Settings
from resume_pipeline.errors import ConnectivityError, PublishError
from resume_pipeline.utils.metrics import record_kafka_publish

logger = logging.getLogger(__name__)


class ProducerConfig(BaseModel):
    """Configuration for Kafka producer."""

    bootstrap_servers: list[str] = Field(
        default=["localhost:9092"], description="Kafka bootstrap servers"
    )
    client_id: str = Field(default="resume-pipeline-producer", description="Kafka client ID")
    acks: str = Field(default="all", description="Broker acks required per send")
    request_timeout_ms: int = Field(default=5000, description="Request timeout in milliseconds")
    send_timeout_s: float = Field(default=5.0, description="Bound on send_and_wait in seconds")


class ConsumerConfig(BaseModel):
    """Configuration for Kafka consumer."""

    bootstrap_servers: list[str] = Field(
        default=["localhost:9092"], description="Kafka bootstrap servers"
    )
    group_id: str = Field(default="resume-pipeline", description="Consumer group ID")
    auto_offset_reset: str = Field(default="earliest", description="Auto offset reset strategy")
    enable_auto_commit: bool = Field(default=False, description="Enable auto commit")
    session_timeout_ms: int = Field(default=120000, description="Session timeout (2 minutes)")
    max_poll_interval_ms: int = Field(default=180000, description="Max poll interval (3 minutes)")


def producer_config_from_settings(settings: Settings, client_id: str) -> ProducerConfig:
    return ProducerConfig(
        bootstrap_servers=settings.bootstrap_servers,
        client_id=client_id,
        request_timeout_ms=settings.kafka_request_timeout_ms,
        send_timeout_s=settings.kafka_send_timeout_s,
    )


def consumer_config_from_settings(settings: Settings, group_id: str) -> ConsumerConfig:
    return ConsumerConfig(
        bootstrap_servers=settings.bootstrap_servers,
        group_id=group_id,
        auto_offset_reset=settings.kafka_auto_offset_reset,
        enable_auto_commit=settings.kafka_commit_mode == "auto",
    )


class KafkaClient:
    """Async Kafka client wrapper with producer and consumer management."""

    def __init__(
        self,
        producer_config: ProducerConfig | None = None,
        consumer_config: ConsumerConfig | None = None,
    ) -> None:
        """Initialize Kafka client.

        Args:
            producer_config: Producer configuration.
            consumer_config: Consumer configuration.
        """
        self._producer_config = producer_config or ProducerConfig()
        self._consumer_config = consumer_config or ConsumerConfig()
        self._producer: AIOKafkaProducer | None = None
        self._consumer: AIOKafkaConsumer | None = None
        self._producer_lock = asyncio.Lock()

    @property
    def manual_commit(self) -> bool:
        """True when offsets must be committed explicitly by the caller."""
        return not self._consumer_config.enable_auto_commit

    async def get_producer(self) -> AIOKafkaProducer:
        """Get or create the Kafka producer.

        Returns:
            Started AIOKafkaProducer instance.

        Raises:
            ConnectivityError: If the producer cannot reach the cluster.
        """
        async with self._producer_lock:
            if self._producer is None:
                logger.info(
                    f"Creating Kafka producer for {self._producer_config.bootstrap_servers}"
                )
                producer = AIOKafkaProducer(
                    bootstrap_servers=self._producer_config.bootstrap_servers,
                    client_id=self._producer_config.client_id,
                    acks=self._producer_config.acks,
                    request_timeout_ms=self._producer_config.request_timeout_ms,
                )
                try:
                    await producer.start()
                except KafkaError as e:
                    await producer.stop()
                    raise ConnectivityError(f"Kafka producer unavailable: {e}") from e
                self._producer = producer
                logger.info("Kafka producer started")

        return self._producer

    async def create_consumer(self, topics: list[str]) -> AIOKafkaConsumer:
        """Create and start the Kafka consumer.

        Args:
            topics: List of topics to subscribe to.

        Returns:
            Started AIOKafkaConsumer instance.

        Raises:
            ConnectivityError: If the consumer cannot join the cluster.
        """
        if self._consumer is not None:
            logger.warning("Kafka consumer already exists")
            return self._consumer

        group_id = self._consumer_config.group_id
        logger.info(f"Creating Kafka consumer for topics {topics} with group {group_id}")

        consumer = AIOKafkaConsumer(
            *topics,
            bootstrap_servers=self._consumer_config.bootstrap_servers,
            group_id=group_id,
            auto_offset_reset=self._consumer_config.auto_offset_reset,
            enable_auto_commit=self._consumer_config.enable_auto_commit,
            session_timeout_ms=self._consumer_config.session_timeout_ms,
            max_poll_interval_ms=self._consumer_config.max_poll_interval_ms,
        )

        try:
            await consumer.start()
        except KafkaError as e:
            await consumer.stop()
            raise ConnectivityError(f"Kafka consumer unavailable: {e}") from e

        self._consumer = consumer
        logger.info(f"Kafka consumer started for group {group_id}")
        return consumer

    async def send_event(self, topic: str, key: str, value: bytes) -> None:
        """Publish a serialized event and wait for the broker acknowledgement.

        Args:
            topic: Kafka topic name.
            key: Message key for partitioning (the document ID).
            value: Serialized event.

        Raises:
            PublishError: On timeout, broker error, or unavailable producer.
        """
        start_time = time.perf_counter()
        try:
            producer = await self.get_producer()
            await asyncio.wait_for(
                producer.send_and_wait(topic, value=value, key=key.encode("utf-8")),
                timeout=self._producer_config.send_timeout_s,
            )
        except TimeoutError as e:
            record_kafka_publish(topic, False, time.perf_counter() - start_time)
            raise PublishError(
                f"Publish to {topic} not acknowledged within "
                f"{self._producer_config.send_timeout_s}s",
                topic=topic,
                key=key,
            ) from e
        except (KafkaError, ConnectivityError) as e:
            record_kafka_publish(topic, False, time.perf_counter() - start_time)
            raise PublishError(f"Publish to {topic} failed: {e}", topic=topic, key=key) from e

        record_kafka_publish(topic, True, time.perf_counter() - start_time)
        logger.debug(f"Sent message to {topic} with key {key}")

    async def commit(self, record: ConsumerRecord) -> None:
        """Commit the position just past ``record`` for its partition."""
        if self._consumer is None:
            raise RuntimeError("Kafka consumer not started. Call create_consumer() first.")
        tp = TopicPartition(record.topic, record.partition)
        await self._consumer.commit({tp: record.offset + 1})

    async def close(self) -> None:
        """Close the producer and consumer."""
        logger.info("Closing Kafka client")

        if self._producer is not None:
            await self._producer.stop()
            self._producer = None
            logger.info("Kafka producer stopped")

        if self._consumer is not None:
            await self._consumer.stop()
            self._consumer = None
            logger.info("Kafka consumer stopped")

    async def __aenter__(self) -> "KafkaClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
