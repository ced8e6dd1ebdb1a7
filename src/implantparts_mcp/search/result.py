"""Result transformation for part search."""

from typing import Any

from ..connection import derive_connection_mm


def _or_none(value: Any) -> Any:
    return value if value not in (None, "") else None


def part_to_dict(record: dict[str, Any]) -> dict[str, Any]:
    """Convert a catalog record to the public part format.

    connection_mm is always the derived value; platform_scope is synthesized
    from the presence of a platform.
    """
    platform = _or_none(record.get("platform"))
    return {
        "sku": record.get("sku"),
        "mfg_code": _or_none(record.get("mfg_code")),
        "name_de": _or_none(record.get("name_de")),
        "platform": platform,
        "platform_scope": "platform" if platform else "universal",
        "product_group": _or_none(record.get("product_group")),
        "group": _or_none(record.get("group")),
        # Part geometry
        "diameter_mm": record.get("diameter_mm"),
        "length_mm": record.get("length_mm"),
        "gingiva_mm": record.get("gingiva_mm"),
        "angulation_deg": record.get("angulation_deg"),
        # Implant interface
        "connection_mm": derive_connection_mm(record),
        # Variants
        "abformung": _or_none(record.get("abformung")),
        "ausfuehrung": _or_none(record.get("ausfuehrung")),
        "rotationsschutz": _or_none(record.get("rotationsschutz")),
        "color": _or_none(record.get("color")),
    }
