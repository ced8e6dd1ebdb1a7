"""Search package for faceted part queries.

This package provides the filter engine, facet aggregation and result
shaping used by both the HTTP routes and the MCP tools.
"""

from .engine import SearchEngine
from .facets import compute_facets, count_values
from .filters import filter_parts, matches
from .query import PartQuery, UNIVERSAL_PLATFORM, parse_limit
from .result import part_to_dict

__all__ = [
    "SearchEngine",
    "PartQuery",
    "UNIVERSAL_PLATFORM",
    "compute_facets",
    "count_values",
    "filter_parts",
    "matches",
    "parse_limit",
    "part_to_dict",
]
