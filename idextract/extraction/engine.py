"""Identifier extraction engine for a single OCR text.

Wires the normalizer, confusion corrector, keyword locator and pattern
matcher together for one document type. The engine is pure and holds no
per-call state, so one instance can serve concurrent uploads.
"""

from idextract.utils.logger import get_logger

from .corrector import correct_text
from .document_types import DocumentType, ExtractionConfig, default_document_configs
from .locator import locate_keyword
from .matcher import ExtractionResult, PatternMatcher
from .normalizer import normalize_text

logger = get_logger(__name__)


class IdentifierExtractor:
    """Extracts a document identifier from raw OCR text.

    Args:
        document_type: Document the text was read from.
        config: Rule table to use. Defaults to the built-in table for
            ``document_type``.
    """

    def __init__(
        self,
        document_type: DocumentType,
        config: ExtractionConfig | None = None,
    ) -> None:
        self.document_type = document_type
        self.config = config or default_document_configs()[document_type]
        self.matcher = PatternMatcher(self.config)

    def extract(self, raw_text: str) -> ExtractionResult:
        """Run normalization, correction, anchoring and matching.

        Args:
            raw_text: Text exactly as returned by the OCR engine.

        Returns:
            Extraction result; ``identifier`` is ``None`` when nothing
            passed validation.
        """
        corrected = correct_text(normalize_text(raw_text))
        anchor = locate_keyword(corrected, self.config.keywords, self.config.window_size)
        result = self.matcher.match(corrected, anchor)

        if result.found:
            logger.info(
                "Extracted %s identifier %s via %s (keyword=%s, pattern=%s)",
                self.document_type,
                result.identifier,
                result.source,
                result.keyword,
                result.pattern,
            )
        else:
            logger.info(
                "No %s identifier found in %d characters of text",
                self.document_type,
                len(raw_text),
            )
        return result
