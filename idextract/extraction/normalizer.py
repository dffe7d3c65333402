"""Whitespace and punctuation cleanup for raw OCR text."""

import re

_NOISE_RE = re.compile(r"[^A-Za-z0-9\-]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Replace non-alphanumeric noise with spaces and collapse whitespace.

    Hyphens survive because they separate identifier groups
    (``MH-14``); any other punctuation becomes a space so that tokens on
    either side of it never fuse.

    Args:
        text: Raw text returned by the OCR engine.

    Returns:
        Single-spaced, trimmed text containing only ASCII letters,
        digits, hyphens and spaces.
    """
    spaced = _NOISE_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", spaced).strip()
