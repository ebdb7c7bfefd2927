"""Shared consume loop for the pipeline workers."""

import asyncio
import contextlib
import signal
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from aiokafka.errors import KafkaError
from aiokafka.structs import ConsumerRecord, TopicPartition

from resume_pipeline.clients.kafka import KafkaClient
from resume_pipeline.errors import PipelineError
from resume_pipeline.utils.logging import get_logger, record_context
from resume_pipeline.utils.metrics import record_outcome

logger = get_logger(__name__)


class Outcome(str, Enum):
    """Terminal state of a consumed record."""

    PUBLISHED = "published"
    INDEXED = "indexed"
    DROPPED = "dropped"


class EventWorker(ABC):
    """Consumes one topic and drives each record to a terminal state.

    Records are handled one at a time in partition order. A record that
    cannot be processed is logged and dropped; the loop itself never stops
    because of a single record. When the Kafka client is in manual commit
    mode, a record's offset is committed only after the record reached its
    terminal state, so a crash mid-record leads to redelivery.
    """

    stage: str = "worker"

    def __init__(
        self,
        kafka_client: KafkaClient,
        topic: str,
        poll_timeout_ms: int = 1000,
        max_poll_records: int = 100,
    ) -> None:
        """Initialize the worker.

        Args:
            kafka_client: Client whose consumer config carries the group ID.
            topic: Topic to consume.
            poll_timeout_ms: How long one poll waits for records.
            max_poll_records: Upper bound on records returned by one poll.
        """
        self.kafka = kafka_client
        self.topic = topic
        self.poll_timeout_ms = poll_timeout_ms
        self.max_poll_records = max_poll_records
        self._running = False
        self._stop_requested = False

    @property
    def running(self) -> bool:
        return self._running

    @abstractmethod
    async def process(self, record: ConsumerRecord) -> Outcome:
        """Process one record.

        Returns:
            The successful terminal outcome.

        Raises:
            PipelineError: For any failure that should drop the record.
        """

    async def on_start(self) -> None:
        """Hook run before the consumer is created. Raising aborts startup."""

    async def handle_record(self, record: ConsumerRecord) -> Outcome:
        """Run ``process`` and convert every failure into a logged drop."""
        start_time = time.perf_counter()
        reason: str | None = None
        with record_context(self.stage, record):
            try:
                outcome = await self.process(record)
            except PipelineError as e:
                reason = e.reason
                outcome = Outcome.DROPPED
                logger.warning("record_dropped", reason=reason, error=str(e))
            except Exception as e:
                reason = "unexpected"
                outcome = Outcome.DROPPED
                logger.error("record_dropped", reason=reason, error=str(e), exc_info=True)
            else:
                logger.info("record_handled", outcome=outcome.value)

        record_outcome(self.stage, outcome.value, time.perf_counter() - start_time, reason)
        return outcome

    async def _commit(self, record: ConsumerRecord) -> None:
        try:
            await self.kafka.commit(record)
        except KafkaError as e:
            # The record will be redelivered to whichever member owns the partition next
            logger.warning(
                "commit_failed",
                topic=record.topic,
                partition=record.partition,
                offset=record.offset,
                error=str(e),
            )

    async def _handle_batch(
        self, consumer: Any, batches: dict[TopicPartition, list[ConsumerRecord]]
    ) -> None:
        for tp, records in batches.items():
            for record in records:
                if self._stop_requested:
                    if not self.kafka.manual_commit:
                        # Auto-commit would otherwise count the unhandled rest as consumed
                        consumer.seek(tp, record.offset)
                    break
                await self.handle_record(record)
                if self.kafka.manual_commit:
                    await self._commit(record)

    async def run(self) -> None:
        """Consume until ``stop`` is called.

        A stop requested while starting up is honoured before any record
        is read.

        Raises:
            ConnectivityError: If startup checks or the consumer fail.
        """
        await self.on_start()
        if self._stop_requested:
            logger.info("worker_stopped_before_start", stage=self.stage)
            return

        consumer = await self.kafka.create_consumer([self.topic])
        if self._stop_requested:
            logger.info("worker_stopped_before_start", stage=self.stage)
            return

        self._running = True
        logger.info(
            "worker_started",
            stage=self.stage,
            topic=self.topic,
            manual_commit=self.kafka.manual_commit,
        )

        try:
            while not self._stop_requested:
                batches = await consumer.getmany(
                    timeout_ms=self.poll_timeout_ms, max_records=self.max_poll_records
                )
                await self._handle_batch(consumer, batches)
        finally:
            self._running = False
            logger.info("worker_stopped", stage=self.stage)

    def stop(self) -> None:
        """Ask the loop to exit once the record in flight is finished.

        Records already polled but not yet handled stay uncommitted and are
        delivered again after restart.
        """
        if not self._stop_requested:
            logger.info("worker_stopping", stage=self.stage)
        self._stop_requested = True


def install_signal_handlers(worker: EventWorker) -> None:
    """Stop ``worker`` on SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, worker.stop)
