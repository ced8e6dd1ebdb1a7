"""Filter engine for catalog part queries.

Every predicate looks only at its own query parameter and the record, so
filters compose: filtering by {A, B} equals filtering by A, then by B.
"""

from collections.abc import Iterable
from typing import Any

from ..connection import derive_connection_mm
from ..parsers import approx_equal, clean_text, lower_text, rotation_protection_matches
from .query import MEASURE_PARAMS, UNIVERSAL_PLATFORM, PartQuery


def search_text(record: dict[str, Any]) -> str:
    """Haystack for free-text q: SKU, manufacturer code and both German names."""
    return " ".join(
        clean_text(record.get(field))
        for field in ("sku", "mfg_code", "name_de", "name_long_de")
    ).lower()


def variant_text(record: dict[str, Any]) -> str:
    return " ".join(
        lower_text(record.get(field))
        for field in ("ausfuehrung", "rotationsschutz", "zubehoer")
    )


def has_platform(record: dict[str, Any]) -> bool:
    return bool(record.get("platform"))


def matches_platform(record: dict[str, Any], platform: str) -> bool:
    if platform == UNIVERSAL_PLATFORM:
        return not has_platform(record)
    return clean_text(record.get("platform")).upper() == platform


def matches(record: dict[str, Any], query: PartQuery) -> bool:
    """True if the record satisfies every parameter set on the query."""
    if query.q and query.q not in search_text(record):
        return False
    if query.platform and not matches_platform(record, query.platform):
        return False
    if query.group and lower_text(record.get("group")) != query.group:
        return False
    if query.product_group and lower_text(record.get("product_group")) != query.product_group:
        return False

    for param in MEASURE_PARAMS:
        wanted = getattr(query, param)
        if wanted is not None and not approx_equal(record.get(param), wanted):
            return False

    # Compared against the derived size, not a stored field
    if query.connection_mm is not None:
        if not approx_equal(derive_connection_mm(record), query.connection_mm):
            return False

    if query.abformung and lower_text(record.get("abformung")) != query.abformung:
        return False
    if query.color and lower_text(record.get("color")) != query.color:
        return False
    if query.rotation and not rotation_protection_matches(record.get("rotationsschutz"), query.rotation):
        return False
    if query.variant and query.variant not in variant_text(record):
        return False
    return True


def filter_parts(records: Iterable[dict[str, Any]], query: PartQuery) -> list[dict[str, Any]]:
    """Records matching all query predicates, in source order."""
    return [record for record in records if matches(record, query)]
