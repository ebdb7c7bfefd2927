"""Pydantic schemas for API request and response models."""

from uuid import UUID

from pydantic import BaseModel, Field


class SubmitRequest(BaseModel):
    """Document submission payload."""

    content: str = Field(min_length=1, description="Raw text of the document")


class SubmitResponse(BaseModel):
    """Acknowledgement that the document was handed to the broker."""

    id: UUID = Field(description="Document identifier assigned at ingestion")
    status: str = Field(default="accepted", description="Always 'accepted'")


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(default="healthy", description="Always 'healthy' while the process runs")


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(description="Human-readable error message")
