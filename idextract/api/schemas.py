"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel


class AttemptResponse(BaseModel):
    """Response schema for one OCR pass."""

    mode: str
    raw_text_length: int
    source: str
    error: str | None = None


class ExtractionResponse(BaseModel):
    """Response schema for an identifier extraction request."""

    document_id: str
    document_type: str
    identifier: str | None
    found: bool
    source: str
    keyword: str | None = None
    pattern: str | None = None
    state: str
    attempts: list[AttemptResponse]
    processing_time_ms: float


class DocumentTypeInfo(BaseModel):
    """Extraction rules of a supported document type."""

    name: str
    keywords: list[str]
    window_size: int
    min_length: int
    max_length: int
    patterns: list[str]


class DocumentTypesResponse(BaseModel):
    """Response schema listing supported document types."""

    document_types: list[DocumentTypeInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
