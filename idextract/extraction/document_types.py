"""Supported identity documents and their extraction rule tables.

Each document type maps to an ``ExtractionConfig`` that drives the generic
extraction engine: anchor keywords, window size, ordered patterns, the
fallback shapes and the accepted identifier length.
"""

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DocumentType(StrEnum):
    """Identity documents the engine knows how to read."""

    DRIVING_LICENSE = "driving_license"
    VEHICLE_REGISTRATION = "vehicle_registration"


def _check_regex(value: str) -> str:
    try:
        re.compile(value)
    except re.error as exc:
        raise ValueError(f"Invalid regular expression {value!r}: {exc}") from exc
    return value


class PatternRule(BaseModel):
    """A named identifier pattern tried against a keyword window."""

    model_config = ConfigDict(frozen=True)

    name: str
    regex: str

    @field_validator("regex")
    @classmethod
    def check_regex(cls, value: str) -> str:
        return _check_regex(value)


class ExtractionConfig(BaseModel):
    """Rule table for extracting one document type's identifier."""

    keywords: list[str]
    window_size: int = Field(gt=0)
    patterns: list[PatternRule]
    token_pattern: str
    global_pattern: str
    min_length: int = Field(gt=0)
    max_length: int = Field(gt=0)

    @field_validator("token_pattern", "global_pattern")
    @classmethod
    def check_regex(cls, value: str) -> str:
        return _check_regex(value)

    @model_validator(mode="after")
    def check_length_bounds(self) -> "ExtractionConfig":
        if self.min_length > self.max_length:
            raise ValueError(
                f"min_length ({self.min_length}) exceeds max_length ({self.max_length})"
            )
        return self


# State code + RTO code + year + 7 digit serial, e.g. MH14 2011 0012345.
_DRIVING_LICENSE_KEYWORDS: list[str] = [
    "DL NO",
    "DLNO",
    "DL NUMBER",
    "DLNUMBER",
    "DL. NO",
    "LICENCE NO",
    "LICENSE NO",
    "LICENCE NUMBER",
    "LICENSE NUMBER",
    "DRIVING LICENCE NO",
    "DRIVING LICENSE NO",
    "DRIVING LICENCE NUMBER",
    "DRIVING LICENSE NUMBER",
    "L.NO",
    "LIC NO",
    "LNO",
    "DATE OF FIRST ISSUE",
    "DOI",
]

# A state code only counts at the start of a token, never mid-word.
_DRIVING_LICENSE_PATTERNS: list[PatternRule] = [
    PatternRule(
        name="state_rto_year_serial",
        regex=r"(?<![A-Z])[A-Z]{2}[\s-]?\d{2}[\s-]?\d{4}[\s-]?\d{7}(?!\d)",
    ),
    PatternRule(name="state_fourteen_digits", regex=r"(?<![A-Z])[A-Z]{2}\d{14}(?!\d)"),
    PatternRule(
        name="state_spaced_digits", regex=r"(?<![A-Z])[A-Z]{2}[\s-]?\d{13,15}(?!\d)"
    ),
    PatternRule(name="state_digit_run", regex=r"(?<![A-Z])[A-Z]{2}[0-9]{13,15}(?!\d)"),
    PatternRule(name="state_relaxed_run", regex=r"(?<![A-Z])[A-Z]{2}[0-9\s-]{13,20}"),
]

# State code + RTO code + series + serial, e.g. KL07AB1234 or AN01J8844.
_VEHICLE_REGISTRATION_KEYWORDS: list[str] = [
    "REG. NO",
    "REG NO",
    "REGN NO",
    "REGISTRATION NO",
    "REGISTRATION NUMBER",
    "CHASIS NUMBER",
    "CHASSIS NUMBER",
    "CHASIS NO",
    "CHASSIS NO",
    "VEHICLE NUMBER",
    "VEHICLE NO",
    "ENGINE NUMBER",
    "ENGINE NO",
    "REGISTRATION MARK",
]

_VEHICLE_REGISTRATION_PATTERNS: list[PatternRule] = [
    PatternRule(
        name="state_rto_series_serial",
        regex=r"(?<![A-Z])[A-Z]{2}[\s-]?\d{2}[\s-]?[A-Z]{1,2}[\s-]?\d{4,7}(?!\d)",
    ),
    PatternRule(
        name="state_short_rto_series_serial",
        regex=r"(?<![A-Z])[A-Z]{2}\d[A-Z]\d{4,7}(?!\d)",
    ),
]


def driving_license_config() -> ExtractionConfig:
    """Default rule table for driving license numbers."""
    return ExtractionConfig(
        keywords=list(_DRIVING_LICENSE_KEYWORDS),
        window_size=300,
        patterns=list(_DRIVING_LICENSE_PATTERNS),
        token_pattern=r"[A-Z]{2}[0-9]{13,15}",
        global_pattern=r"(?<![A-Z])[A-Z]{2}[0-9\s-]{13,20}",
        min_length=15,
        max_length=17,
    )


def vehicle_registration_config() -> ExtractionConfig:
    """Default rule table for registration certificate numbers."""
    return ExtractionConfig(
        keywords=list(_VEHICLE_REGISTRATION_KEYWORDS),
        window_size=150,
        patterns=list(_VEHICLE_REGISTRATION_PATTERNS),
        token_pattern=r"[A-Z]{2}\d{1,2}[A-Z]{1,2}\d{4,7}",
        global_pattern=(
            r"(?<![A-Z])[A-Z]{2}[\s-]?\d{1,2}[\s-]?[A-Z]{1,2}[\s-]?\d{4,7}(?!\d)"
        ),
        min_length=8,
        max_length=13,
    )


def default_document_configs() -> dict[DocumentType, ExtractionConfig]:
    """Build a fresh mapping of every document type to its default rules."""
    return {
        DocumentType.DRIVING_LICENSE: driving_license_config(),
        DocumentType.VEHICLE_REGISTRATION: vehicle_registration_config(),
    }
