"""Facet aggregation over a filtered part list."""

from collections import Counter
from collections.abc import Callable, Iterable
from typing import Any

from ..config import MAX_FACET_VALUES
from ..connection import derive_connection_mm, format_connection, in_connection_range
from ..parsers import approx_equal, clean_text, to_number
from .filters import has_platform
from .query import MEASURE_PARAMS, PartQuery

ENUM_FACETS = (
    "platform",
    "group",
    "product_group",
    "abformung",
    "ausfuehrung",
    "rotationsschutz",
    "color",
)


def count_values(values: Iterable[str | None], max_values: int = MAX_FACET_VALUES) -> list[dict[str, Any]]:
    """Histogram of non-empty values, highest count first, ties in first-seen order."""
    counts = Counter(value for value in values if value)
    return [{"value": value, "count": count} for value, count in counts.most_common(max_values)]


def _numeric_key(value: Any) -> str | None:
    number = to_number(value)
    return f"{number:.1f}" if number is not None else None


def enum_facet(records: list[dict[str, Any]], field: str) -> list[dict[str, Any]]:
    return count_values(clean_text(r.get(field)) for r in records)


def numeric_facet(records: list[dict[str, Any]], field: str) -> list[dict[str, Any]]:
    return count_values(_numeric_key(r.get(field)) for r in records)


def platform_scope_facet(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    with_platform = sum(1 for r in records if has_platform(r))
    buckets = [
        {"value": "platform", "count": with_platform},
        {"value": "universal", "count": len(records) - with_platform},
    ]
    return sorted(buckets, key=lambda b: b["count"], reverse=True)


def connection_facet(
    records: list[dict[str, Any]],
    diameter_values: list[dict[str, Any]],
    gingiva_hint: float | None = None,
    derive: Callable[..., float | None] = derive_connection_mm,
) -> list[dict[str, Any]]:
    """Connection-size histogram with extraction noise removed.

    Drops buckets within tolerance of the gingiva hint and buckets whose key
    is exactly a surfaced part-diameter key (both are regularly misread as
    connection sizes), keeps the plausible connector range, and drops
    singletons once more than one value remains.
    """
    derived = (derive(r, gingiva_hint) for r in records)
    buckets = count_values(format_connection(v) for v in derived if v is not None)

    # Exact key match: a 4.0 diameter must not hide a 4.1 connection
    diameters = {b["value"] for b in diameter_values}
    cleaned = []
    for bucket in buckets:
        value = float(bucket["value"])
        if gingiva_hint is not None and approx_equal(value, gingiva_hint):
            continue
        if bucket["value"] in diameters:
            continue
        if not in_connection_range(value):
            continue
        cleaned.append(bucket)

    if len(cleaned) > 1:
        cleaned = [b for b in cleaned if b["count"] > 1]
    return cleaned


def compute_facets(records: list[dict[str, Any]], query: PartQuery) -> dict[str, dict[str, Any]]:
    """Facets for an already-filtered record list.

    Args:
        records: Output of filter_parts() for the same query
        query: Parsed query; gingiva_mm doubles as the connection hint

    Returns:
        {field: {"values": [{"value": ..., "count": ...}, ...]}}
    """
    measures = {field: numeric_facet(records, field) for field in MEASURE_PARAMS}

    facets: dict[str, dict[str, Any]] = {
        "platform": {"values": enum_facet(records, "platform")},
        "platform_scope": {"values": platform_scope_facet(records)},
        "product_group": {"values": enum_facet(records, "product_group")},
        "group": {"values": enum_facet(records, "group")},
    }
    for field, values in measures.items():
        facets[field] = {"values": values}
    facets["connection_mm"] = {
        "values": connection_facet(records, measures["diameter_mm"], query.gingiva_mm),
    }
    for field in ENUM_FACETS:
        if field not in facets:
            facets[field] = {"values": enum_facet(records, field)}
    return facets
