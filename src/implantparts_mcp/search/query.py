"""Query parameter parsing for part search and facets."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..config import DEFAULT_LIMIT, MAX_LIMIT
from ..parsers import classify_rotation_protection, lower_text, normalize_platform, to_number

UNIVERSAL_PLATFORM = "universal"

# Numeric filters on the part's own geometry
MEASURE_PARAMS = ("diameter_mm", "length_mm", "gingiva_mm", "angulation_deg")

# Older clients send the connection size under this name
CONNECTION_PARAM_ALIASES = ("connection_mm", "prothetik_diameter_mm")


def _first_present(params: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = params.get(name)
        if value not in (None, ""):
            return value
    return None


def parse_limit(value: Any) -> int:
    """Clamp a result limit to [1, MAX_LIMIT]; unparseable -> DEFAULT_LIMIT."""
    if value is None or value == "":
        return DEFAULT_LIMIT
    try:
        limit = int(str(value).strip())
    except ValueError:
        number = to_number(value)
        if number is None:
            return DEFAULT_LIMIT
        limit = int(number)
    return max(1, min(MAX_LIMIT, limit))


@dataclass(frozen=True)
class PartQuery:
    """Parsed search/facet parameters.

    Empty strings and unparseable numbers are stored as None / "" and impose
    no constraint.

    Examples:
        PartQuery.from_params({"platform": "6", "connection_mm": "4,1"})
        PartQuery.from_params({"platform": "universal", "product_group": "Abutment"})
    """
    q: str = ""
    platform: str | None = None
    group: str = ""
    product_group: str = ""
    diameter_mm: float | None = None
    length_mm: float | None = None
    gingiva_mm: float | None = None
    angulation_deg: float | None = None
    connection_mm: float | None = None
    abformung: str = ""
    color: str = ""
    rotation: str = ""
    variant: str = ""
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "PartQuery":
        platform_in = params.get("platform")
        if lower_text(platform_in) == UNIVERSAL_PLATFORM:
            platform = UNIVERSAL_PLATFORM
        else:
            platform = normalize_platform(platform_in)

        return cls(
            q=lower_text(params.get("q")),
            platform=platform,
            group=lower_text(params.get("group")),
            product_group=lower_text(params.get("product_group")),
            diameter_mm=to_number(params.get("diameter_mm")),
            length_mm=to_number(params.get("length_mm")),
            gingiva_mm=to_number(params.get("gingiva_mm")),
            angulation_deg=to_number(params.get("angulation_deg")),
            connection_mm=to_number(_first_present(params, CONNECTION_PARAM_ALIASES)),
            abformung=lower_text(params.get("abformung")),
            color=lower_text(params.get("color")),
            rotation=classify_rotation_protection(params.get("rotationsschutz")),
            variant=lower_text(params.get("variant")),
            limit=parse_limit(params.get("limit")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Active filters only (limit excluded)."""
        active = {
            "q": self.q,
            "platform": self.platform,
            "group": self.group,
            "product_group": self.product_group,
            "diameter_mm": self.diameter_mm,
            "length_mm": self.length_mm,
            "gingiva_mm": self.gingiva_mm,
            "angulation_deg": self.angulation_deg,
            "connection_mm": self.connection_mm,
            "abformung": self.abformung,
            "color": self.color,
            "rotationsschutz": self.rotation,
            "variant": self.variant,
        }
        return {name: value for name, value in active.items() if value not in (None, "")}
