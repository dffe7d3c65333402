"""Keyword-anchored search windows over corrected OCR text."""

import re
from dataclasses import dataclass

from idextract.utils.logger import get_logger

from .normalizer import normalize_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class KeywordAnchor:
    """A label found in the text and the text that trails it."""

    keyword: str
    position: int
    window: str


def locate_keyword(
    text: str, keywords: list[str], window_size: int
) -> KeywordAnchor | None:
    """Find the highest-priority keyword present in the text.

    Keywords are tried in list order and the first one that occurs
    anywhere wins, even when a lower-priority keyword appears earlier in
    the text. Matching ignores case; the returned window keeps the case
    of ``text``.

    Args:
        text: Corrected OCR text.
        keywords: Anchor labels, most specific first. They are normalized
            the same way as OCR text, so ``"DL. NO"`` matches ``"DL NO"``.
        window_size: Number of characters to return, counted from the
            end of the keyword rather than from its start. The keyword
            itself is never part of the window.

    Returns:
        The anchor, or ``None`` if no keyword occurs in the text.
    """
    for keyword in keywords:
        needle = normalize_text(keyword)
        if not needle:
            continue
        match = re.search(re.escape(needle), text, re.IGNORECASE)
        if match is None:
            continue
        window = text[match.end() : match.end() + window_size]
        logger.debug("Found keyword %r at %d, window: %r", keyword, match.start(), window)
        return KeywordAnchor(keyword=keyword, position=match.start(), window=window)

    logger.debug("No anchor keyword found")
    return None
