"""Implant connection size derivation for prosthetic parts.

Most catalog records carry no explicit connection size; it has to be read out
of product names like "Abutment Certain (Ext Hex, 4,1 mm), Ø 5,0 mm", where the
connector, the part's own diameter and the gingiva height all show up as
"<n> mm". Each stage below is a plain function so it can be checked in
isolation; derive_connection_mm() chains them.

Shared by the query engine and scripts/enrich_connections.py.
"""

import math
import re
from typing import Any

from .config import CONNECTION_RANGE_MM
from .parsers import approx_equal, clean_text, normalize_platform, to_number

# Platforms whose family fixes the connection size.
# Only add a code once the whole family has been verified against the catalog.
PLATFORM_CONNECTION_DEFAULTS: dict[str, float] = {
    "P06": 4.1,  # Certain 4.1 family
    "P07": 5.0,  # Certain 5.0 family
}

# Connector sizes that actually exist on the market
KNOWN_CONNECTION_SIZES = frozenset({3.3, 3.4, 3.5, 3.75, 4.1, 4.5, 4.8, 5.0, 5.5, 5.7})

# Explicit connection fields, most authoritative first.
# The Prothetikdurchmesser variants come from older vendor exports.
EXPLICIT_CONNECTION_FIELDS = (
    "connection_mm",
    "Platfform_Prothetikdurchmesser",
    "plattform_prothetikdurchmesser",
    "platform_prothetikdurchmesser",
)

NAME_FIELDS = ("name_de", "name_long_de", "Artikel_Name", "Artikel_Name_long")
NAME_SEPARATOR = " | "

NOMINAL_3_75 = 3.75
NOMINAL_3_75_TOLERANCE = 0.06

_PARENTHESIZED_PATTERN = re.compile(r"\(([^)]+)\)")
_INTERFACE_KEYWORD_PATTERN = re.compile(
    r"(ext\s*hex|certain|internal|external|eztetic|tsx|platform|hex|connection)",
    re.IGNORECASE,
)
_MM_VALUE_PATTERN = re.compile(r"(\d+[.,]\d+|\d+)\s*mm", re.IGNORECASE)


def part_diameter(record: dict[str, Any]) -> float | None:
    """The part's own prosthetic diameter, from diameter_mm or diameter_text."""
    value = record.get("diameter_mm")
    if value is not None and value != "":
        return to_number(value)
    if record.get("diameter_text"):
        return to_number(record["diameter_text"])
    return None


def explicit_connection(record: dict[str, Any]) -> tuple[bool, float | None]:
    """Look for an explicit connection field.

    Returns:
        (found, value). connection_mm counts as found whenever it is non-empty,
        even if it does not parse. Legacy fields only count when they parse to
        a non-zero number.
    """
    value = record.get("connection_mm")
    if value is not None and value != "":
        return True, to_number(value)
    for field in EXPLICIT_CONNECTION_FIELDS[1:]:
        number = to_number(record.get(field))
        if number:
            return True, number
    return False, None


def platform_default(record: dict[str, Any]) -> float | None:
    platform = normalize_platform(record.get("platform"))
    if platform is None:
        return None
    return PLATFORM_CONNECTION_DEFAULTS.get(platform)


def name_text(record: dict[str, Any]) -> str:
    """All available name fields joined into one search text."""
    names = [clean_text(record.get(field)) for field in NAME_FIELDS]
    return NAME_SEPARATOR.join(name for name in names if name)


def extract_mm_values(text: str) -> list[float]:
    """Every '<number> mm' in text, in order: '4,1 mm ... 5.0mm' -> [4.1, 5.0]"""
    values = []
    for match in _MM_VALUE_PATTERN.finditer(text):
        number = to_number(match.group(1))
        if number is not None:
            values.append(number)
    return values


def extract_candidates(text: str) -> list[float]:
    """Collect connection candidates from a name text.

    Priority:
    1. Parenthesized segments that mention an interface keyword (Ext Hex, Certain, ...)
    2. Any parenthesized segments
    3. The whole text
    Falls back to scanning the whole text if the chosen segments hold no mm value.
    """
    segments = _PARENTHESIZED_PATTERN.findall(text)
    keyed = [seg for seg in segments if _INTERFACE_KEYWORD_PATTERN.search(seg)]
    pool = keyed or segments or [text]

    candidates = [value for seg in pool for value in extract_mm_values(seg)]
    if not candidates:
        candidates = extract_mm_values(text)
    return candidates


def _is_excluded(value: float, diameter: float | None, hint: float | None) -> bool:
    if diameter is not None and approx_equal(value, diameter):
        return True
    return hint is not None and approx_equal(value, hint)


def in_connection_range(value: float) -> bool:
    low, high = CONNECTION_RANGE_MM
    return low <= value <= high


def exclude_candidates(
    candidates: list[float],
    diameter: float | None = None,
    hint: float | None = None,
) -> list[float]:
    """Drop the part's own diameter, the hint (usually gingiva height) and out-of-range values."""
    return [
        value for value in candidates
        if not _is_excluded(value, diameter, hint) and in_connection_range(value)
    ]


def snap_connection(value: float) -> float:
    """Within 0.06 of 3.75 -> 3.75 (nominal size stored with rounding noise), else nearest 0.1 (half up)."""
    if abs(value - NOMINAL_3_75) < NOMINAL_3_75_TOLERANCE:
        return NOMINAL_3_75
    return math.floor(value * 10 + 0.5) / 10


def is_known_connection(value: float) -> bool:
    return round(value, 2) in KNOWN_CONNECTION_SIZES


def derive_connection_mm(record: dict[str, Any], hint: Any = None) -> float | None:
    """Best-effort implant connection diameter (mm) for a catalog record.

    Priority order (first success wins):
    1. Explicit connection field (authoritative, no heuristics applied)
    2. Platform default for platforms that fix the connection size
    3. Name text: keyword-scoped parentheses, then any parentheses, then the
       whole text; candidates are filtered, snapped and whitelisted

    Args:
        record: Catalog record
        hint: Optional measurement known NOT to be the connection (e.g. the
              gingiva height being filtered on)

    Returns:
        Connection size in mm, or None when nothing trustworthy was found.
        A wrong but plausible number is worse than None here.
    """
    found, explicit = explicit_connection(record)
    if found:
        return explicit

    default = platform_default(record)
    if default is not None:
        return default

    diameter = part_diameter(record)
    hint_value = to_number(hint)
    candidates = exclude_candidates(extract_candidates(name_text(record)), diameter, hint_value)

    # Tie-break: first valid candidate in document order
    for value in candidates:
        snapped = snap_connection(value)
        if is_known_connection(snapped) and not _is_excluded(snapped, diameter, hint_value):
            return snapped
    return None


def format_connection(value: float) -> str:
    """Facet key for a connection size: 3.75 -> '3.75', 4.1 -> '4.1'"""
    if value == NOMINAL_3_75:
        return "3.75"
    return f"{value:.1f}"
