"""Ingestion API - FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from resume_pipeline import __version__
from resume_pipeline.clients.kafka import KafkaClient, producer_config_from_settings
from resume_pipeline.config import Settings
from resume_pipeline.errors import ConnectivityError, PipelineError, PublishError
from resume_pipeline.ingestion.publisher import DocumentPublisher
from resume_pipeline.ingestion.routes import router
from resume_pipeline.utils.logging import get_logger
from resume_pipeline.utils.metrics import record_submission

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Starts the Kafka producer on startup and stops it on shutdown. A broker
    that is down at startup does not prevent serving: the producer is
    created on the next submit and failures surface as 502.

    Args:
        app: FastAPI application instance.

    Yields:
        None after startup, before shutdown.
    """
    settings: Settings = app.state.settings
    kafka_client: KafkaClient = app.state.kafka

    logger.info(
        "ingestion_starting",
        broker=settings.kafka_bootstrap_servers,
        topic=settings.kafka_received_topic,
    )

    try:
        await kafka_client.get_producer()
    except ConnectivityError as e:
        logger.warning("kafka_unavailable_at_startup", error=str(e))

    yield

    logger.info("ingestion_shutting_down")
    await kafka_client.close()


async def _publish_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("publish_failed", error=str(exc))
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": str(exc)})


async def _pipeline_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("submit_failed", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)}
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    record_submission("rejected")
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in errors
    )
    return JSONResponse(
        status_code=422,
        content={"error": message or "Malformed request"},
    )


def create_app(settings: Settings, kafka_client: KafkaClient | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Resolved settings for this process.
        kafka_client: Client to publish with. Built from settings when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    kafka_client = kafka_client or KafkaClient(
        producer_config=producer_config_from_settings(settings, client_id="ingestion-api"),
    )

    app = FastAPI(
        title="Resume Ingestion API",
        description="Accepts documents and publishes them to the embedding pipeline",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.kafka = kafka_client
    app.state.publisher = DocumentPublisher(kafka_client, settings.kafka_received_topic)

    app.add_exception_handler(PublishError, _publish_error_handler)
    app.add_exception_handler(PipelineError, _pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(router)

    return app


def serve(settings: Settings) -> None:
    """Run the ingestion API with uvicorn."""
    logger.info("starting_server", host=settings.ingest_host, port=settings.ingest_port)

    uvicorn.run(
        create_app(settings),
        host=settings.ingest_host,
        port=settings.ingest_port,
        log_level="debug" if settings.debug else "info",
    )
