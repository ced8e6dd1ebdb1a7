"""Search engine for faceted part queries."""

import logging
from collections.abc import Mapping
from typing import Any

from ..catalog import CatalogSnapshot
from .facets import compute_facets
from .filters import filter_parts
from .query import PartQuery
from .result import part_to_dict

logger = logging.getLogger(__name__)


class SearchEngine:
    """Runs search and facet queries against one catalog snapshot.

    Cheap to construct; build one per request from the snapshot the caller
    holds so a concurrent reload never changes results mid-query.
    """

    def __init__(self, snapshot: CatalogSnapshot):
        self._snapshot = snapshot

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    def search(self, params: Mapping[str, Any] | PartQuery) -> dict[str, Any]:
        """Filter the catalog and return at most query.limit shaped parts.

        Returns:
            {"items": [...]} in catalog order
        """
        query = params if isinstance(params, PartQuery) else PartQuery.from_params(params)
        matched = filter_parts(self._snapshot.records, query)
        logger.debug(f"search {query.to_dict()} matched {len(matched)} parts")
        return {"items": [part_to_dict(r) for r in matched[:query.limit]]}

    def facets(self, params: Mapping[str, Any] | PartQuery) -> dict[str, Any]:
        """Value counts per attribute over the parts matching the query.

        Returns:
            {"facets": {field: {"values": [{"value", "count"}, ...]}}}
        """
        query = params if isinstance(params, PartQuery) else PartQuery.from_params(params)
        matched = filter_parts(self._snapshot.records, query)
        return {"facets": compute_facets(matched, query)}
