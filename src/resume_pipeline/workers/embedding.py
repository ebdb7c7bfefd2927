"""Embedding worker: received events in, vectorized events out."""

from aiokafka.structs import ConsumerRecord

from resume_pipeline.clients.kafka import (
    KafkaClient,
    consumer_config_from_settings,
    producer_config_from_settings,
)
from resume_pipeline.config import Settings
from resume_pipeline.embedders.factory import create_embedder_pool
from resume_pipeline.embedders.pool import EmbedderPool
from resume_pipeline.events import (
    DocumentReceivedEvent,
    DocumentVectorizedEvent,
    decode_received_event,
    encode_event,
)
from resume_pipeline.utils.logging import bind_document, get_logger
from resume_pipeline.utils.metrics import start_metrics_server
from resume_pipeline.workers.base import EventWorker, Outcome, install_signal_handlers

logger = get_logger(__name__)


class EmbeddingWorker(EventWorker):
    """Embeds each received document and publishes its vector.

    The Document Identifier of the outgoing event is taken from the incoming
    event unchanged, and it is also the partition key of the outgoing record.
    """

    stage = "embedding"

    def __init__(
        self,
        kafka_client: KafkaClient,
        embedder_pool: EmbedderPool,
        input_topic: str,
        output_topic: str,
        dimensions: int,
    ) -> None:
        """Initialize the embedding worker.

        Args:
            kafka_client: Client used for both consuming and publishing.
            embedder_pool: Pool guarding the model replicas.
            input_topic: Topic carrying DocumentReceivedEvent.
            output_topic: Topic for DocumentVectorizedEvent.
            dimensions: Vector length every produced embedding must have.
        """
        super().__init__(kafka_client, input_topic)
        self.pool = embedder_pool
        self.output_topic = output_topic
        self.dimensions = dimensions

    async def vectorize(self, event: DocumentReceivedEvent) -> DocumentVectorizedEvent:
        """Compute the embedding for ``event`` and wrap it in a vectorized event.

        Raises:
            InferenceError: If the model fails.
            DimensionMismatchError: If the model output has the wrong length.
        """
        vector = await self.pool.embed(event.payload.content)
        vectorized = DocumentVectorizedEvent(id=event.document_id, vector=vector)
        vectorized.check_dimensions(self.dimensions)
        return vectorized

    async def process(self, record: ConsumerRecord) -> Outcome:
        event = decode_received_event(record.value)
        doc_id = str(event.document_id)
        bind_document(doc_id)

        if record.key is not None and record.key != doc_id.encode("utf-8"):
            logger.warning("record_key_mismatch", key=record.key.decode("utf-8", "replace"))

        vectorized = await self.vectorize(event)
        logger.debug("vector_generated", dim=len(vectorized.vector))

        await self.kafka.send_event(self.output_topic, key=doc_id, value=encode_event(vectorized))
        return Outcome.PUBLISHED


async def serve(settings: Settings) -> None:
    """Run an embedding worker process until SIGINT/SIGTERM."""
    start_metrics_server(settings.metrics_port)

    pool = create_embedder_pool(settings)
    if settings.embedder_preload:
        await pool.load_all()

    kafka_client = KafkaClient(
        producer_config=producer_config_from_settings(settings, client_id="embedding-worker"),
        consumer_config=consumer_config_from_settings(settings, settings.kafka_embedding_group),
    )
    worker = EmbeddingWorker(
        kafka_client=kafka_client,
        embedder_pool=pool,
        input_topic=settings.kafka_received_topic,
        output_topic=settings.kafka_vectorized_topic,
        dimensions=settings.embedding_dimensions,
    )
    install_signal_handlers(worker)

    logger.info(
        "embedding_worker_starting",
        broker=settings.kafka_bootstrap_servers,
        input_topic=settings.kafka_received_topic,
        output_topic=settings.kafka_vectorized_topic,
        group=settings.kafka_embedding_group,
        pool_size=pool.capacity,
    )
    try:
        await worker.run()
    finally:
        await kafka_client.close()
        await pool.unload_all()
