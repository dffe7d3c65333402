"""Canonical form and length policy for identifier candidates."""

import re

from idextract.utils.logger import get_logger

from .document_types import ExtractionConfig

logger = get_logger(__name__)

_SEPARATOR_RE = re.compile(r"[\s\-]+")
_CANONICAL_RE = re.compile(r"[A-Z0-9]+")


def canonicalize(candidate: str) -> str:
    """Strip whitespace and hyphens from a candidate and upper-case it."""
    return _SEPARATOR_RE.sub("", candidate).upper()


def validate_candidate(candidate: str, config: ExtractionConfig) -> str | None:
    """Accept a candidate only if its canonical form fits the document type.

    Args:
        candidate: Raw text matched by one of the pattern tiers.
        config: Rule table of the active document type.

    Returns:
        The canonical identifier, or ``None`` if it is rejected.
    """
    identifier = canonicalize(candidate)

    if not _CANONICAL_RE.fullmatch(identifier):
        logger.debug("Rejected candidate %r: not alphanumeric", candidate)
        return None

    if not config.min_length <= len(identifier) <= config.max_length:
        logger.debug(
            "Rejected candidate %r: length %d outside [%d, %d]",
            identifier,
            len(identifier),
            config.min_length,
            config.max_length,
        )
        return None

    return identifier
