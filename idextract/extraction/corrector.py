"""Context-sensitive repair of OCR letter/digit confusions.

Only letters that sit next to digits are rewritten, so ordinary words in
the surrounding text (``BOOK``, ``ISSUED``) are left alone.
"""

import re
from dataclasses import dataclass

from idextract.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CorrectionRule:
    """A single one-character-for-one-character substitution."""

    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def _adjacent_to_digit(letter: str) -> re.Pattern[str]:
    return re.compile(rf"(?<=\d){letter}|{letter}(?=\d)", re.IGNORECASE)


def _between_digits(letter: str) -> re.Pattern[str]:
    return re.compile(rf"(?<=\d){letter}(?=\d)", re.IGNORECASE)


# Order matters: O and I are the most frequent misreads and also the only
# ones trusted with a single neighbouring digit.
CORRECTION_RULES: tuple[CorrectionRule, ...] = (
    CorrectionRule("letter_o_as_zero", _adjacent_to_digit("O"), "0"),
    CorrectionRule("letter_i_as_one", _adjacent_to_digit("I"), "1"),
    CorrectionRule("letter_s_as_five", _between_digits("S"), "5"),
    CorrectionRule("letter_b_as_eight", _between_digits("B"), "8"),
    CorrectionRule("letter_z_as_two", _between_digits("Z"), "2"),
    CorrectionRule("letter_g_as_six", _between_digits("G"), "6"),
)


def correct_text(
    text: str, rules: tuple[CorrectionRule, ...] = CORRECTION_RULES
) -> str:
    """Apply the confusion rules in order until the text stops changing.

    A substitution can create new digit context for a neighbour
    (``1OO`` only becomes ``100`` on a second sweep), so the whole rule
    sequence is repeated to a fixed point. Every rule turns a letter into
    a digit, which bounds the number of sweeps by the text length.

    Args:
        text: Normalized OCR text.
        rules: Ordered correction rules.

    Returns:
        Corrected text of the same length as ``text``.
    """
    corrected = text
    while True:
        previous = corrected
        for rule in rules:
            corrected = rule.apply(corrected)
        if corrected == previous:
            break

    if corrected != text:
        logger.debug("OCR corrections applied: %r -> %r", text, corrected)
    return corrected
