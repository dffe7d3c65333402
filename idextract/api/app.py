"""FastAPI application for the identifier extraction service.

Provides REST endpoints for extracting a driving license or RC book
number from an uploaded file, listing document types, and health checks.
"""

import shutil
import time
import uuid
from typing import Annotated

from fastapi import FastAPI, File, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from idextract import __version__
from idextract.extraction.document_types import DocumentType
from idextract.pipeline import run_extraction
from idextract.utils.config import load_config
from idextract.utils.logger import get_logger

from .schemas import (
    AttemptResponse,
    DocumentTypeInfo,
    DocumentTypesResponse,
    ExtractionResponse,
    HealthResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Document Identifier Extraction API",
    description="Read driving license and vehicle registration numbers from uploads",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
    document_type: Annotated[DocumentType, Query()] = DocumentType.DRIVING_LICENSE,
) -> ExtractionResponse:
    """Extract the identifier from an uploaded document.

    An identifier that cannot be read is a normal outcome, reported with
    ``found=false`` so the form can fall back to manual entry.

    Args:
        file: Uploaded document file (PNG, JPEG, TIFF, or PDF).
        document_type: Document the upload holds.

    Returns:
        Extraction outcome with the identifier and the attempts made.
    """
    start_time = time.time()
    content = await file.read()
    outcome = await run_extraction(content, document_type, config=load_config())
    result = outcome.result

    logger.info(
        "Extraction for %s (%s): %s",
        file.filename or "document",
        document_type,
        result.source,
    )

    return ExtractionResponse(
        document_id=str(uuid.uuid4()),
        document_type=document_type.value,
        identifier=result.identifier,
        found=result.found,
        source=result.source.value,
        keyword=result.keyword,
        pattern=result.pattern,
        state=outcome.state.value,
        attempts=[
            AttemptResponse(
                mode=a.mode.value,
                raw_text_length=a.raw_text_length,
                source=a.source.value,
                error=a.error,
            )
            for a in outcome.attempts
        ],
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.get("/document-types", response_model=DocumentTypesResponse)
async def list_document_types() -> DocumentTypesResponse:
    """List supported document types and their extraction rules."""
    config = load_config()
    return DocumentTypesResponse(
        document_types=[
            DocumentTypeInfo(
                name=doc_type.value,
                keywords=rules.keywords,
                window_size=rules.window_size,
                min_length=rules.min_length,
                max_length=rules.max_length,
                patterns=[p.name for p in rules.patterns],
            )
            for doc_type, rules in config.documents.items()
        ]
    )
