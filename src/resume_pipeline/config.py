"""Configuration management using Pydantic Settings.

Settings are resolved once per process by ``load_settings`` and handed to
each component by value. Resolution order, highest first:

1. keyword overrides passed to ``load_settings``
2. values from the YAML config file
3. ``PIPELINE_*`` environment variables and ``.env``
4. defaults declared on ``Settings``
"""

import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"


class Settings(BaseSettings):
    """Pipeline settings shared by the ingestion API and both workers."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Ingestion server
    ingest_host: str = Field(default="0.0.0.0", description="Ingestion API bind host")
    ingest_port: int = Field(default=3000, description="Ingestion API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Kafka
    kafka_bootstrap_servers: str = Field(
        default="localhost:9092", description="Kafka bootstrap servers (comma-separated)"
    )
    kafka_received_topic: str = Field(
        default="resume_received", description="Topic carrying DocumentReceivedEvent"
    )
    kafka_vectorized_topic: str = Field(
        default="resume_vectorized", description="Topic carrying DocumentVectorizedEvent"
    )
    kafka_embedding_group: str = Field(
        default="vectorizer_group_v1", description="Consumer group of the embedding worker"
    )
    kafka_indexing_group: str = Field(
        default="indexer_group_v1", description="Consumer group of the indexing worker"
    )
    kafka_request_timeout_ms: int = Field(
        default=5000, gt=0, description="Producer request timeout in milliseconds"
    )
    kafka_send_timeout_s: float = Field(
        default=5.0, gt=0, description="Upper bound on waiting for a publish acknowledgement"
    )
    kafka_auto_offset_reset: Literal["earliest", "latest"] = Field(
        default="earliest", description="Where a new consumer group starts reading"
    )
    kafka_commit_mode: Literal["after_processing", "auto"] = Field(
        default="after_processing",
        description=(
            "'after_processing' commits a record once it is published or dropped; "
            "'auto' lets the consumer commit in the background"
        ),
    )

    # Qdrant
    qdrant_url: str = Field(default="http://localhost:6333", description="Qdrant server URL")
    qdrant_collection: str = Field(default="resumes", description="Qdrant collection name")
    qdrant_timeout: int = Field(default=30, description="Qdrant request timeout in seconds")
    qdrant_grpc_port: int | None = Field(default=None, description="Qdrant gRPC port (optional)")
    qdrant_prefer_grpc: bool = Field(default=False, description="Prefer gRPC over HTTP")

    # Embedder
    embedder_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Dense text embedding model",
    )
    embedder_device: str = Field(
        default="cpu", description="Device for embedder inference: cpu, cuda, mps, auto"
    )
    embedding_dimensions: int = Field(
        default=384, gt=0, description="Vector length every stage expects"
    )
    embedder_pool_size: int = Field(
        default=1, ge=1, description="Number of model replicas available for inference"
    )
    embedder_preload: bool = Field(default=True, description="Load models before consuming")

    # Observability
    metrics_port: int = Field(
        default=9100, ge=0, description="Prometheus port for workers (0 disables)"
    )

    @field_validator("embedder_device")
    @classmethod
    def validate_device(cls, v: str) -> str:
        if v not in ("cpu", "cuda", "mps", "auto"):
            raise ValueError(f"Device must be one of cpu, cuda, mps, auto; got '{v}'")
        return v

    @property
    def bootstrap_servers(self) -> list[str]:
        """Kafka bootstrap servers as a list."""
        return [s.strip() for s in self.kafka_bootstrap_servers.split(",") if s.strip()]


def _read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML mapping from ``path``.

    Returns an empty mapping when the file is missing or unreadable so the
    caller falls back to environment and defaults.
    """
    if not path.is_file():
        logger.warning(f"Config file {path} not found, using defaults")
        return {}

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read config file {path}: {e}. Using defaults")
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Config file {path} is not a mapping, using defaults")
        return {}

    unknown = sorted(str(key) for key in data if key not in Settings.model_fields)
    if unknown:
        logger.warning(f"Ignoring unknown keys in config file {path}: {', '.join(unknown)}")
    return data


def load_settings(
    config_file: str | Path | None = DEFAULT_CONFIG_FILE, **overrides: Any
) -> Settings:
    """Resolve settings once for the current process.

    Args:
        config_file: Path to a YAML file. ``None`` skips the file layer.
        **overrides: Explicit values that win over every other layer.

    Returns:
        Immutable Settings instance.

    Raises:
        pydantic.ValidationError: If any layer supplies an invalid value.
    """
    values: dict[str, Any] = {}
    if config_file is not None:
        values.update(_read_config_file(Path(config_file)))
    values.update(overrides)
    return Settings(**values)
