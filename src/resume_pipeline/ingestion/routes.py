"""API route handlers for the ingestion endpoint."""

import logging

from fastapi import APIRouter, Request, Response, status

from resume_pipeline.errors import PublishError
from resume_pipeline.ingestion.publisher import DocumentPublisher
from resume_pipeline.ingestion.schemas import (
    ErrorResponse,
    HealthResponse,
    SubmitRequest,
    SubmitResponse,
)
from resume_pipeline.utils.metrics import get_content_type, get_metrics, record_submission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe. Healthy whenever the process is serving."""
    return HealthResponse()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=get_metrics(), media_type=get_content_type())


@router.post(
    "/submit",
    response_model=SubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        422: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)
async def submit(request: Request, submit_request: SubmitRequest) -> SubmitResponse:
    """Accept a document for processing.

    The document is published to the received topic before this returns.
    202 means accepted, not embedded or indexed.

    Args:
        request: FastAPI request object with app state.
        submit_request: Document content.

    Returns:
        The identifier assigned to the document.

    Raises:
        PublishError: If the broker does not acknowledge the write (mapped to 502).
    """
    publisher: DocumentPublisher = request.app.state.publisher

    try:
        payload = await publisher.submit(submit_request.content)
    except PublishError:
        record_submission("unavailable")
        raise

    record_submission("accepted")
    return SubmitResponse(id=payload.id)
