"""Client wrappers for external services.

Provides async client wrappers for:
- Kafka: keyed publish and consumer-group consumption via aiokafka
- Qdrant: vector store for document embeddings
"""

from resume_pipeline.clients.kafka import (
    ConsumerConfig,
    KafkaClient,
    ProducerConfig,
    consumer_config_from_settings,
    producer_config_from_settings,
)
from resume_pipeline.clients.qdrant import QdrantClientWrapper

__all__ = [
    "ConsumerConfig",
    "KafkaClient",
    "ProducerConfig",
    "QdrantClientWrapper",
    "consumer_config_from_settings",
    "producer_config_from_settings",
]
