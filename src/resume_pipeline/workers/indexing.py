"""Indexing worker: vectorized events in, Qdrant points out."""

from aiokafka.structs import ConsumerRecord

from resume_pipeline.clients.kafka import KafkaClient, consumer_config_from_settings
from resume_pipeline.clients.qdrant import QdrantClientWrapper
from resume_pipeline.config import Settings
from resume_pipeline.errors import DimensionMismatchError, MalformedMessageError
from resume_pipeline.events import decode_vectorized_event
from resume_pipeline.utils.logging import bind_document, get_logger
from resume_pipeline.utils.metrics import start_metrics_server
from resume_pipeline.workers.base import EventWorker, Outcome, install_signal_handlers

logger = get_logger(__name__)


class IndexingWorker(EventWorker):
    """Upserts each vectorized document into the Qdrant collection.

    The point ID is the canonical string of the Document Identifier, so
    redelivery of the same event overwrites the existing point.
    """

    stage = "indexing"

    def __init__(
        self,
        kafka_client: KafkaClient,
        qdrant_client: QdrantClientWrapper,
        input_topic: str,
        dimensions: int,
    ) -> None:
        super().__init__(kafka_client, input_topic)
        self.qdrant = qdrant_client
        self.dimensions = dimensions

    async def on_start(self) -> None:
        # Refuse to consume into a collection that is not there
        await self.qdrant.verify_collection()

    async def process(self, record: ConsumerRecord) -> Outcome:
        event = decode_vectorized_event(record.value)
        bind_document(event.document_id)

        try:
            event.check_dimensions(self.dimensions)
        except DimensionMismatchError as e:
            raise MalformedMessageError(str(e)) from e

        point_id = await self.qdrant.upsert_vector(event.document_id, event.vector)
        logger.debug("point_upserted", point_id=point_id, collection=self.qdrant.collection_name)
        return Outcome.INDEXED


async def serve(settings: Settings) -> None:
    """Run an indexing worker process until SIGINT/SIGTERM.

    Raises:
        CollectionNotFoundError: If the configured collection does not exist.
        ConnectivityError: If Qdrant or Kafka cannot be reached at startup.
    """
    start_metrics_server(settings.metrics_port)

    qdrant_client = QdrantClientWrapper(settings)
    await qdrant_client.connect()

    kafka_client = KafkaClient(
        consumer_config=consumer_config_from_settings(settings, settings.kafka_indexing_group),
    )
    worker = IndexingWorker(
        kafka_client=kafka_client,
        qdrant_client=qdrant_client,
        input_topic=settings.kafka_vectorized_topic,
        dimensions=settings.embedding_dimensions,
    )
    install_signal_handlers(worker)

    logger.info(
        "indexing_worker_starting",
        broker=settings.kafka_bootstrap_servers,
        input_topic=settings.kafka_vectorized_topic,
        group=settings.kafka_indexing_group,
        qdrant_url=settings.qdrant_url,
        collection=settings.qdrant_collection,
    )
    try:
        await worker.run()
    finally:
        await kafka_client.close()
        await qdrant_client.close()
