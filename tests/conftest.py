"""Shared test fixtures for the identifier extraction test suite."""

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest

from idextract.extraction.document_types import (
    ExtractionConfig,
    driving_license_config,
    vehicle_registration_config,
)
from idextract.ocr.tesseract_engine import RecognitionMode


class FakeRecognizer:
    """OCR double returning canned text per recognition mode.

    A value that is an exception instance is raised instead of returned.
    """

    def __init__(
        self,
        whitelist: str | Exception = "",
        unrestricted: str | Exception = "",
        delay: float = 0.0,
    ) -> None:
        self.responses = {
            RecognitionMode.WHITELIST: whitelist,
            RecognitionMode.UNRESTRICTED: unrestricted,
        }
        self.delay = delay
        self.calls: list[RecognitionMode] = []

    async def recognize(self, source: Path | bytes, mode: RecognitionMode) -> str:
        self.calls.append(mode)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses[mode]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_recognizer() -> Callable[..., FakeRecognizer]:
    """Factory for OCR doubles, e.g. ``fake_recognizer(whitelist="DL NO ...")``."""
    return FakeRecognizer


@pytest.fixture
def dl_config() -> ExtractionConfig:
    """Default driving license rule table."""
    return driving_license_config()


@pytest.fixture
def rc_config() -> ExtractionConfig:
    """Default vehicle registration rule table."""
    return vehicle_registration_config()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
