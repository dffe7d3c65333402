"""Engine entry point and per-upload extraction sessions.

``extract_identifier`` wraps the full retry state machine for one file.
``ExtractionSession`` gives a form component one cancellable extraction
per uploaded file: removing the file or closing the dialog cancels the
session, and its in-flight OCR result is never applied.
"""

import asyncio
import uuid
from pathlib import Path

from idextract.extraction.document_types import DocumentType
from idextract.extraction.engine import IdentifierExtractor
from idextract.extraction.matcher import NOT_FOUND, ExtractionResult
from idextract.ocr.tesseract_engine import OCRRecognizer, TesseractEngine
from idextract.retry.controller import (
    CancellationToken,
    ExtractionOutcome,
    RetryController,
    RetryState,
)
from idextract.utils.config import AppConfig, load_config
from idextract.utils.logger import get_session_logger


def build_controller(
    document_type: DocumentType,
    config: AppConfig,
    recognizer: OCRRecognizer | None = None,
) -> RetryController:
    """Assemble a retry controller for one document type.

    Args:
        document_type: Document being uploaded.
        config: Application configuration.
        recognizer: OCR collaborator. Defaults to Tesseract built from
            ``config.ocr``.

    Returns:
        Ready-to-run retry controller.
    """
    extractor = IdentifierExtractor(document_type, config.documents[document_type])
    return RetryController(
        recognizer=recognizer or TesseractEngine.from_config(config.ocr),
        extractor=extractor,
        min_text_length=config.retry.min_text_length,
    )


async def run_extraction(
    source: Path | bytes,
    document_type: DocumentType,
    *,
    recognizer: OCRRecognizer | None = None,
    config: AppConfig | None = None,
    token: CancellationToken | None = None,
) -> ExtractionOutcome:
    """Run the retry state machine and return the full outcome."""
    controller = build_controller(document_type, config or load_config(), recognizer)
    return await controller.run(source, token)


async def extract_identifier(
    source: Path | bytes,
    document_type: DocumentType,
    *,
    recognizer: OCRRecognizer | None = None,
    config: AppConfig | None = None,
    token: CancellationToken | None = None,
) -> ExtractionResult:
    """Extract a document identifier from an uploaded image or PDF.

    Never raises for recognition or extraction problems: every failure
    path resolves to a result whose ``identifier`` is ``None``, which the
    caller treats as "ask the user to type it".

    Args:
        source: Path to the uploaded document, or its raw bytes.
        document_type: Document the upload claims to be.
        recognizer: OCR collaborator. Defaults to Tesseract.
        config: Application configuration. Defaults to ``load_config()``.
        token: Cancellation signal of the owning upload.

    Returns:
        Extraction result.
    """
    outcome = await run_extraction(
        source, document_type, recognizer=recognizer, config=config, token=token
    )
    return outcome.result


class ExtractionSession:
    """One upload's extraction, with its own cancellation token.

    Args:
        document_type: Document being uploaded.
        recognizer: OCR collaborator. Defaults to Tesseract.
        config: Application configuration. Defaults to ``load_config()``.
        session_id: Identifier used in log records. Generated if omitted.
    """

    def __init__(
        self,
        document_type: DocumentType,
        recognizer: OCRRecognizer | None = None,
        config: AppConfig | None = None,
        session_id: str | None = None,
    ) -> None:
        self.document_type = document_type
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.token = CancellationToken()
        self._controller = build_controller(
            document_type, config or load_config(), recognizer
        )
        self._task: asyncio.Task[ExtractionOutcome] | None = None
        self._logger = get_session_logger(__name__, self.session_id)

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def start(self, source: Path | bytes) -> "asyncio.Task[ExtractionOutcome]":
        """Begin extraction in the background on the running event loop.

        Raises:
            RuntimeError: If the session was already started.
        """
        if self._task is not None:
            raise RuntimeError(f"Session {self.session_id} already started")
        self._logger.info("Starting %s extraction", self.document_type)
        self._task = asyncio.ensure_future(self._controller.run(source, self.token))
        return self._task

    def cancel(self) -> None:
        """Abandon the extraction; a late OCR result will be discarded."""
        if not self.token.cancelled:
            self._logger.info("Cancelling extraction")
        self.token.cancel()

    async def outcome(self) -> ExtractionOutcome:
        """Wait for the run to reach a terminal state.

        Raises:
            RuntimeError: If the session was never started.
        """
        if self._task is None:
            raise RuntimeError(f"Session {self.session_id} was not started")
        outcome = await self._task
        if outcome.state == RetryState.CANCELLED:
            self._logger.info("Extraction discarded after cancellation")
        else:
            self._logger.info(
                "Extraction %s: identifier=%s", outcome.state, outcome.result.identifier
            )
        return outcome

    async def result(self) -> ExtractionResult:
        """Wait for the extraction result; cancelled sessions find nothing."""
        outcome = await self.outcome()
        if outcome.state == RetryState.CANCELLED:
            return NOT_FOUND
        return outcome.result
