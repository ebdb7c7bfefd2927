"""Publishes accepted documents to the received topic."""

import logging

from resume_pipeline.clients.kafka import KafkaClient
from resume_pipeline.events import DocumentPayload, DocumentReceivedEvent, encode_event

logger = logging.getLogger(__name__)


class DocumentPublisher:
    """Assigns the Document Identifier and hands the document to Kafka."""

    def __init__(self, kafka_client: KafkaClient, topic: str) -> None:
        """Initialize the publisher.

        Args:
            kafka_client: Client owning the producer.
            topic: Topic for DocumentReceivedEvent.
        """
        self.kafka = kafka_client
        self.topic = topic

    async def submit(self, content: str) -> DocumentPayload:
        """Publish ``content`` as a new document.

        Returns only after the broker acknowledged the write. The record key
        is the Document Identifier, so all records of one document land on
        the same partition.

        Args:
            content: Raw document text.

        Returns:
            The payload that was published, including its new identifier.

        Raises:
            PublishError: If the broker is unavailable or does not acknowledge in time.
        """
        payload = DocumentPayload.new(content)
        doc_id = str(payload.id)
        event = DocumentReceivedEvent(payload=payload)

        logger.info(f"Publishing document {doc_id} to {self.topic}")
        await self.kafka.send_event(self.topic, key=doc_id, value=encode_event(event))
        logger.info(f"Published document {doc_id}")
        return payload
