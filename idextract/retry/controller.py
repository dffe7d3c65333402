"""Two-pass OCR retry state machine.

The first pass restricts Tesseract to the identifier alphabet. A second,
unrestricted pass is only worth its cost when the first one found nothing
and produced suspiciously little text, which usually means a poor image
or the wrong recognition mode.
"""

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from idextract.extraction.engine import IdentifierExtractor
from idextract.extraction.matcher import NOT_FOUND, ExtractionResult, MatchSource
from idextract.ocr.tesseract_engine import OCRRecognizer, RecognitionMode
from idextract.utils.logger import get_logger

logger = get_logger(__name__)


class RetryState(StrEnum):
    """States of one extraction run."""

    IDLE = "idle"
    ATTEMPT_1 = "attempt_1"
    NEEDS_RETRY = "needs_retry"
    ATTEMPT_2 = "attempt_2"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({RetryState.SUCCESS, RetryState.FAILED, RetryState.CANCELLED})


class CancellationToken:
    """Signals that the upload owning an extraction has gone away."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass(frozen=True)
class AttemptRecord:
    """What one OCR pass produced."""

    mode: RecognitionMode
    raw_text_length: int
    source: MatchSource
    error: str | None = None


@dataclass
class ExtractionOutcome:
    """Final result of a run with the path the state machine took."""

    result: ExtractionResult
    state: RetryState
    attempts: list[AttemptRecord] = field(default_factory=list)
    history: list[RetryState] = field(default_factory=list)

    def transition(self, state: RetryState) -> None:
        self.state = state
        self.history.append(state)


class _Cancelled(Exception):
    """Raised internally when the token fires during an OCR pass."""


def should_retry(result: ExtractionResult, raw_text: str, min_text_length: int) -> bool:
    """Decide whether a failed first pass earns a second OCR pass.

    Args:
        result: Extraction result of the first pass.
        raw_text: Raw OCR text of the first pass.
        min_text_length: Below this many characters the text is
            considered too thin to trust.

    Returns:
        ``True`` when nothing was found and the text is short.
    """
    return not result.found and len(raw_text) < min_text_length


class RetryController:
    """Runs up to two OCR passes and extracts an identifier from each.

    Args:
        recognizer: OCR collaborator.
        extractor: Engine for the document type being uploaded.
        min_text_length: Raw-text length below which a failed first pass
            is retried without the character whitelist.
    """

    def __init__(
        self,
        recognizer: OCRRecognizer,
        extractor: IdentifierExtractor,
        min_text_length: int = 50,
    ) -> None:
        self.recognizer = recognizer
        self.extractor = extractor
        self.min_text_length = min_text_length

    async def run(
        self, source: Path | bytes, token: CancellationToken | None = None
    ) -> ExtractionOutcome:
        """Drive the state machine to a terminal state.

        Never raises for OCR or extraction failures; those end in
        ``FAILED``. A fired ``token`` ends the run in ``CANCELLED`` and
        discards whatever the in-flight OCR call eventually returns.

        Args:
            source: Path to the uploaded document, or its raw bytes.
            token: Cancellation signal of the owning upload session.

        Returns:
            The outcome with the final result and every attempt made.
        """
        token = token or CancellationToken()
        outcome = ExtractionOutcome(
            result=NOT_FOUND, state=RetryState.IDLE, history=[RetryState.IDLE]
        )

        try:
            outcome.transition(RetryState.ATTEMPT_1)
            raw_text, result = await self._attempt(
                source, RecognitionMode.WHITELIST, token, outcome
            )
            if result.found:
                outcome.transition(RetryState.SUCCESS)
            elif should_retry(result, raw_text, self.min_text_length):
                outcome.transition(RetryState.NEEDS_RETRY)
                logger.info(
                    "First pass found nothing in %d characters, retrying unrestricted",
                    len(raw_text),
                )
                outcome.transition(RetryState.ATTEMPT_2)
                _, result = await self._attempt(
                    source, RecognitionMode.UNRESTRICTED, token, outcome
                )
                outcome.transition(
                    RetryState.SUCCESS if result.found else RetryState.FAILED
                )
            else:
                outcome.transition(RetryState.FAILED)
            outcome.result = result
        except _Cancelled:
            outcome.transition(RetryState.CANCELLED)
            outcome.result = NOT_FOUND
            logger.info("Extraction cancelled after %d attempt(s)", len(outcome.attempts))
            return outcome

        logger.info(
            "Extraction finished in state %s after %d attempt(s) via %s",
            outcome.state,
            len(outcome.attempts),
            outcome.result.source,
        )
        return outcome

    async def _attempt(
        self,
        source: Path | bytes,
        mode: RecognitionMode,
        token: CancellationToken,
        outcome: ExtractionOutcome,
    ) -> tuple[str, ExtractionResult]:
        """Run one OCR pass and extract from its text.

        OCR failures count as an empty recognition so the retry predicate
        can still ask for a second pass.
        """
        error: str | None = None
        try:
            raw_text = await self._recognize(source, mode, token)
        except _Cancelled:
            raise
        except Exception as exc:
            logger.warning("OCR pass (%s) failed: %s", mode, exc)
            raw_text = ""
            error = str(exc) or type(exc).__name__

        result = self.extractor.extract(raw_text) if raw_text else NOT_FOUND
        outcome.attempts.append(
            AttemptRecord(
                mode=mode,
                raw_text_length=len(raw_text),
                source=result.source,
                error=error,
            )
        )
        return raw_text, result

    async def _recognize(
        self, source: Path | bytes, mode: RecognitionMode, token: CancellationToken
    ) -> str:
        """Race the OCR call against the cancellation token."""
        if token.cancelled:
            raise _Cancelled

        ocr_task = asyncio.ensure_future(self.recognizer.recognize(source, mode))
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait(
                {ocr_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()
            if not ocr_task.done():
                ocr_task.cancel()

        if token.cancelled:
            if ocr_task.done() and not ocr_task.cancelled():
                # Late result is discarded; retrieve it so asyncio does not warn.
                ocr_task.exception()
            raise _Cancelled
        return ocr_task.result()
