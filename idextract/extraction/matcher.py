"""Tiered pattern matching of identifier candidates.

Candidates are looked for in the keyword window first. When that yields
nothing valid, the whole text is scanned token by token against the
strict shape, and finally with the loosest pattern.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

from idextract.utils.logger import get_logger

from .document_types import ExtractionConfig
from .locator import KeywordAnchor
from .normalizer import normalize_text
from .validator import validate_candidate

logger = get_logger(__name__)


class MatchSource(StrEnum):
    """Which tier produced an extraction result."""

    KEYWORD_ANCHOR = "keyword_anchor"
    WORD_TOKEN_SCAN = "word_token_scan"
    GLOBAL_REGEX_SCAN = "global_regex_scan"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one extraction over one OCR text."""

    identifier: str | None
    source: MatchSource
    keyword: str | None = None
    pattern: str | None = None

    @property
    def found(self) -> bool:
        return self.identifier is not None


NOT_FOUND = ExtractionResult(identifier=None, source=MatchSource.NOT_FOUND)


def mask_anchor(text: str, anchor: KeywordAnchor) -> str:
    """Blank out the anchor keyword so its letters cannot start a candidate.

    The keyword is replaced by the same number of spaces, which keeps
    every other position in ``text`` unchanged.
    """
    length = len(normalize_text(anchor.keyword))
    end = anchor.position + length
    return text[: anchor.position] + " " * length + text[end:]


class PatternMatcher:
    """Applies a document type's ordered patterns to corrected text.

    Args:
        config: Rule table of the document type.
    """

    def __init__(self, config: ExtractionConfig) -> None:
        self.config = config
        self._patterns = [
            (rule.name, re.compile(rule.regex, re.IGNORECASE))
            for rule in config.patterns
        ]
        self._token_re = re.compile(config.token_pattern, re.IGNORECASE)
        self._global_re = re.compile(config.global_pattern, re.IGNORECASE)

    def match(self, text: str, anchor: KeywordAnchor | None) -> ExtractionResult:
        """Run the anchored tier, then the fallback tiers.

        Args:
            text: Full corrected OCR text.
            anchor: Keyword anchor found in ``text``, if any.

        Returns:
            The first validated result, or a ``NOT_FOUND`` result.
        """
        if anchor is not None:
            result = self.match_anchored(anchor)
            if result is not None:
                return result
            logger.debug("No valid candidate near %r, falling back", anchor.keyword)
            text = mask_anchor(text, anchor)
        return self.match_fallback(text)

    def match_anchored(self, anchor: KeywordAnchor) -> ExtractionResult | None:
        """Try each pattern, in order, against the keyword window."""
        for name, pattern in self._patterns:
            match = pattern.search(anchor.window)
            if match is None:
                continue
            identifier = validate_candidate(match.group(0), self.config)
            if identifier is not None:
                return ExtractionResult(
                    identifier=identifier,
                    source=MatchSource.KEYWORD_ANCHOR,
                    keyword=anchor.keyword,
                    pattern=name,
                )
        return None

    def match_fallback(self, text: str) -> ExtractionResult:
        """Scan the whole text: whole tokens first, then the loose pattern."""
        for token in text.split():
            if not self._token_re.fullmatch(token):
                continue
            identifier = validate_candidate(token, self.config)
            if identifier is not None:
                return ExtractionResult(
                    identifier=identifier,
                    source=MatchSource.WORD_TOKEN_SCAN,
                    pattern="token",
                )

        match = self._global_re.search(text)
        if match is not None:
            identifier = validate_candidate(match.group(0), self.config)
            if identifier is not None:
                return ExtractionResult(
                    identifier=identifier,
                    source=MatchSource.GLOBAL_REGEX_SCAN,
                    pattern="global",
                )

        return NOT_FOUND
