"""Prometheus metrics instrumentation for the pipeline.

This module tracks:
- Submissions accepted or rejected at the ingestion boundary
- Per-stage record outcomes (published, indexed, dropped) and drop reasons
- Embedding inference and Qdrant upsert latency
- Kafka publish latency
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    start_http_server,
)

SERVICE_INFO = Info("resume_pipeline", "Resume pipeline information")

# ==================== Ingestion Metrics ====================

SUBMISSIONS = Counter(
    "pipeline_submissions_total",
    "Documents submitted to the ingestion endpoint",
    ["status"],
)

# ==================== Worker Metrics ====================

MESSAGES = Counter(
    "pipeline_messages_total",
    "Records handled by a worker stage, by terminal outcome",
    ["stage", "outcome"],
)

DROPPED = Counter(
    "pipeline_dropped_total",
    "Records dropped by a worker stage, by reason",
    ["stage", "reason"],
)

HANDLE_LATENCY = Histogram(
    "pipeline_handle_latency_seconds",
    "Time from record receipt to terminal state",
    ["stage"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# ==================== Resource Metrics ====================

EMBEDDING_LATENCY = Histogram(
    "embedding_latency_seconds",
    "Embedding inference latency in seconds",
    ["model_name"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

EMBEDDING_ERRORS = Counter(
    "embedding_errors_total",
    "Embedding inference errors",
    ["model_name", "error_type"],
)

EMBEDDER_POOL_AVAILABLE = Gauge(
    "embedder_pool_available",
    "Embedder instances currently free in the pool",
)

MODEL_LOAD_LATENCY = Histogram(
    "model_load_latency_seconds",
    "Model loading latency in seconds",
    ["model_name"],
    buckets=[1, 5, 10, 30, 60, 120, 300],
)

KAFKA_PUBLISH_LATENCY = Histogram(
    "kafka_publish_latency_seconds",
    "Kafka publish latency until acknowledgement",
    ["topic", "status"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0],
)

QDRANT_REQUESTS = Counter(
    "qdrant_requests_total",
    "Total Qdrant requests",
    ["operation", "status"],
)

QDRANT_LATENCY = Histogram(
    "qdrant_latency_seconds",
    "Qdrant operation latency in seconds",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5],
)


# ==================== Helper Functions ====================


def record_submission(status: str) -> None:
    """Record an ingestion outcome.

    Args:
            status: accepted, rejected or unavailable.
    """
    SUBMISSIONS.labels(status=status).inc()


def record_outcome(stage: str, outcome: str, latency: float, reason: str | None = None) -> None:
    """Record the terminal outcome of a worker record.

    Args:
            stage: Worker stage (embedding, indexing).
            outcome: Terminal outcome (published, indexed, dropped).
            latency: Seconds spent handling the record.
            reason: Drop reason, only for dropped records.
    """
    MESSAGES.labels(stage=stage, outcome=outcome).inc()
    HANDLE_LATENCY.labels(stage=stage).observe(latency)
    if reason is not None:
        DROPPED.labels(stage=stage, reason=reason).inc()


def record_embedding(model_name: str, latency: float, error_type: str | None = None) -> None:
    """Record one inference call.

    Args:
            model_name: Model identifier.
            latency: Seconds spent in the call.
            error_type: Exception class name when the call failed.
    """
    EMBEDDING_LATENCY.labels(model_name=model_name).observe(latency)
    if error_type is not None:
        EMBEDDING_ERRORS.labels(model_name=model_name, error_type=error_type).inc()


def record_model_load(model_name: str, latency: float) -> None:
    MODEL_LOAD_LATENCY.labels(model_name=model_name).observe(latency)


def set_pool_available(count: int) -> None:
    EMBEDDER_POOL_AVAILABLE.set(count)


def record_kafka_publish(topic: str, success: bool, latency: float) -> None:
    """Record a Kafka publish attempt.

    Args:
            topic: Target topic.
            success: Whether the broker acknowledged the write.
            latency: Seconds until acknowledgement or failure.
    """
    status = "success" if success else "error"
    KAFKA_PUBLISH_LATENCY.labels(topic=topic, status=status).observe(latency)


def record_qdrant_request(operation: str, success: bool, latency: float) -> None:
    """Record a Qdrant request.

    Args:
            operation: Operation name (upsert, collection_exists, create_collection).
            success: Whether the request succeeded.
            latency: Request latency in seconds.
    """
    status = "success" if success else "error"
    QDRANT_REQUESTS.labels(operation=operation, status=status).inc()
    QDRANT_LATENCY.labels(operation=operation).observe(latency)


# ==================== Metrics Endpoint ====================


def set_service_info(component: str, version: str) -> None:
    SERVICE_INFO.info({"version": version, "component": component})


def start_metrics_server(port: int) -> None:
    """Expose metrics over HTTP from a worker process (no-op when port is 0)."""
    if port > 0:
        start_http_server(port)


def get_metrics() -> bytes:
    """Get Prometheus metrics as bytes for /metrics endpoint.

    Returns:
            Metrics in Prometheus text exposition format.
    """
    return generate_latest()


def get_content_type() -> str:
    """Get content type for metrics response.

    Returns:
            Content type string for Prometheus metrics.
    """
    return CONTENT_TYPE_LATEST
