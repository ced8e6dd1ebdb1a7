"""Shared normalizers for catalog values.

Used by the query engine, the facet aggregator and the offline enrichment
script, so that every path compares measurements the same way.

Catalog values arrive as loosely typed JSON: numbers, strings with units
("4,1 mm"), German decimal commas, empty strings and nulls. Everything here
returns None (or "") instead of raising.
"""

import math
import re
from typing import Any

from .config import MEASURE_TOLERANCE_MM


# =============================================================================
# PRE-COMPILED REGEX PATTERNS
# =============================================================================

_NON_NUMERIC_PATTERN = re.compile(r"[^\d.]")
_LEADING_FLOAT_PATTERN = re.compile(r"\d*\.?\d*")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_PLATFORM_CODE_PATTERN = re.compile(r"^P?(\d{1,2})$")
_ROTATION_WITH_PATTERN = re.compile(r"\b(with|mit|ja|yes|rotation|r-?schutz)\b", re.IGNORECASE)
_ROTATION_WITHOUT_PATTERN = re.compile(r"\b(without|ohne|nein|no)\b", re.IGNORECASE)


# =============================================================================
# TEXT
# =============================================================================


def clean_text(value: Any) -> str:
    """None -> '', everything else stringified and stripped."""
    if value is None:
        return ""
    return str(value).strip()


def lower_text(value: Any) -> str:
    return clean_text(value).lower()


# =============================================================================
# NUMBERS
# =============================================================================


def to_number(value: Any) -> float | None:
    """Parse a loosely formatted number: '4,1 mm' -> 4.1, 'Ø 5.0' -> 5.0, 12 -> 12.0

    Only the first comma is treated as a decimal separator. Every character
    that is not a digit or a dot is dropped, then the leading float prefix is
    parsed ('4.1.2' -> 4.1). Signs are dropped along with the other characters,
    and numeric input drops its sign too so -15 and "-15" compare equal.

    Returns:
        The parsed float, or None if nothing numeric remains.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = abs(float(value))
        return number if math.isfinite(number) else None

    s = _NON_NUMERIC_PATTERN.sub("", str(value).replace(",", ".", 1))
    match = _LEADING_FLOAT_PATTERN.match(s)
    prefix = match.group(0) if match else ""
    if not any(ch.isdigit() for ch in prefix):
        return None
    number = float(prefix)
    return number if math.isfinite(number) else None


def approx_equal(a: Any, b: Any, epsilon: float = MEASURE_TOLERANCE_MM) -> bool:
    """True if both values parse and differ by less than epsilon.

    The default tolerance (0.11 mm) is what the whole service treats as
    "the same measurement".
    """
    na = to_number(a)
    nb = to_number(b)
    if na is None or nb is None:
        return False
    return abs(na - nb) < epsilon


# =============================================================================
# PLATFORM
# =============================================================================


def normalize_platform(value: Any) -> str | None:
    """Canonicalize a platform code: '6' -> 'P06', 'p 7' -> 'P07', 'NobelActive' -> 'NOBELACTIVE'

    Returns None for empty input. Strings that are not a short numeric code
    pass through uppercased and without whitespace.
    """
    s = _WHITESPACE_PATTERN.sub("", clean_text(value).upper())
    match = _PLATFORM_CODE_PATTERN.match(s)
    if match:
        return f"P{int(match.group(1)):02d}"
    return s or None


# =============================================================================
# ROTATION PROTECTION
# =============================================================================


def classify_rotation_protection(text: Any) -> str:
    """Classify a rotation-protection query value.

    Returns:
        "with", "without", or "" when the text carries no recognizable keyword.
        "" must never be used to exclude records.
    """
    s = lower_text(text)
    if not s:
        return ""
    if _ROTATION_WITH_PATTERN.search(s):
        return "with"
    if _ROTATION_WITHOUT_PATTERN.search(s):
        return "without"
    return ""


def rotation_protection_matches(field: Any, wanted: str) -> bool:
    """Check a record's rotationsschutz text against a classified query value.

    Record text often names the feature while negating it ("ohne
    Rotationsschutz", "ohne R-Schutz"), so a negation keyword wins over a
    with-keyword on the record side.
    """
    if not wanted:
        return True
    s = lower_text(field)
    negated = bool(_ROTATION_WITHOUT_PATTERN.search(s))
    if wanted == "without":
        return negated
    return not negated and bool(_ROTATION_WITH_PATTERN.search(s))
