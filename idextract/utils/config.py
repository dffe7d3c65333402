"""Configuration management for the identifier extraction service.

Loads and validates YAML configuration with defaults for OCR, the
recognition retry policy and the per-document extraction rule tables.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from idextract.extraction.document_types import (
    DocumentType,
    ExtractionConfig,
    default_document_configs,
)

logger = logging.getLogger(__name__)

IDENTIFIER_WHITELIST = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-/"


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR collaborator."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300
    max_pdf_pages: int = Field(default=2, gt=0)
    char_whitelist: str = IDENTIFIER_WHITELIST


class RetryConfig(BaseModel):
    """Configuration for the two-pass recognition retry."""

    min_text_length: int = Field(default=50, ge=0)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    documents: dict[DocumentType, ExtractionConfig] = Field(
        default_factory=default_document_configs
    )
    log_level: str = "INFO"

    @field_validator("documents", mode="before")
    @classmethod
    def merge_document_defaults(cls, value: Any) -> Any:
        """Treat YAML document entries as overrides of the built-in tables."""
        if not isinstance(value, dict):
            return value
        merged: dict[Any, Any] = {
            doc_type: config.model_dump()
            for doc_type, config in default_document_configs().items()
        }
        for key, override in value.items():
            doc_type = DocumentType(key)
            if isinstance(override, ExtractionConfig):
                override = override.model_dump()
            merged[doc_type] = {**merged[doc_type], **(override or {})}
        return merged


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.

    Raises:
        pydantic.ValidationError: If a value is invalid, including an
            unknown document type or an uncompilable pattern.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
