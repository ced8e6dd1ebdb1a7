"""Implant Parts MCP Server - Faceted search over dental-implant prosthetic parts."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from . import __version__
from .catalog import CatalogLoadError, CatalogSource
from .config import DEFAULT_LIMIT, HTTP_PORT, MAX_QUERY_LENGTH, RATE_LIMIT_REQUESTS
from .search import SearchEngine

logger = logging.getLogger(__name__)

# Global state
_source: CatalogSource | None = None


def set_catalog_source(source: CatalogSource) -> None:
    """Point the MCP tools at a catalog source (create_app does this)."""
    global _source
    _source = source


def _get_source() -> CatalogSource:
    global _source
    if _source is None:
        _source = CatalogSource.from_location()
    return _source


@asynccontextmanager
async def lifespan(app):
    """Load the catalog on startup (not on first request)."""
    source = _get_source()
    try:
        snapshot = source.snapshot()
        logger.info(f"Catalog ready: {len(snapshot)} parts")
    except CatalogLoadError as e:
        # Keep serving; every query reports the load failure until it succeeds
        logger.error(f"Catalog not available at startup: {e}")
    yield


# Create MCP server
mcp = FastMCP(
    name="implantparts",
    instructions="Dental implant prosthetic parts search. Use search_parts to find parts by platform, connection size, part geometry and variant; use part_facets to see which values remain available for the current filters. connection_mm is the implant connection size, diameter_mm is the part's own diameter.",
    lifespan=lifespan,
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP sliding-window rate limit for the query endpoints."""

    MAX_TRACKED_IPS = 10_000

    def __init__(self, app, requests_per_minute: int = RATE_LIMIT_REQUESTS):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.request_counts: dict[str, list[float]] = {}

    def _get_client_ip(self, request) -> str:
        """Rightmost X-Forwarded-For entry (set by our proxy), else the peer address."""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            ips = [ip.strip() for ip in forwarded.split(",")]
            return ips[-1] if ips else "unknown"
        return request.client.host if request.client else "unknown"

    def _check_rate_limit(self, client_ip: str) -> bool:
        now = time.time()
        window_start = now - 60

        if client_ip not in self.request_counts and len(self.request_counts) >= self.MAX_TRACKED_IPS:
            self.request_counts = {
                ip: stamps for ip, stamps in self.request_counts.items()
                if stamps and stamps[-1] >= window_start
            }
            if len(self.request_counts) >= self.MAX_TRACKED_IPS:
                return True

        recent = [t for t in self.request_counts.get(client_ip, []) if t > window_start]
        if len(recent) >= self.requests_per_minute:
            self.request_counts[client_ip] = recent
            return True
        recent.append(now)
        self.request_counts[client_ip] = recent
        return False

    async def dispatch(self, request, call_next):
        if request.url.path == "/health":
            return await call_next(request)

        if self._check_rate_limit(self._get_client_ip(request)):
            return JSONResponse(
                status_code=429,
                content={"error": "Rate limit exceeded", "retry_after": 60},
                headers={"Retry-After": "60"},
            )
        return await call_next(request)


def run_query(source: CatalogSource, kind: str, params: dict[str, Any]) -> tuple[dict[str, Any], int]:
    """Run a search or facet query and return (payload, HTTP status)."""
    q = params.get("q")
    if q and len(str(q)) > MAX_QUERY_LENGTH:
        return {"error": f"Query too long (max {MAX_QUERY_LENGTH} characters)"}, 400

    try:
        engine = SearchEngine(source.snapshot())
    except CatalogLoadError as e:
        return {"error": str(e)}, 500

    try:
        if kind == "facets":
            return engine.facets(params), 200
        return engine.search(params), 200
    except Exception as e:
        logger.error(f"{kind} query failed: {type(e).__name__}: {e}")
        return {"error": f"{kind.capitalize()} query failed. Check server logs for details."}, 500


def _tool_params(**kwargs: Any) -> dict[str, Any]:
    """Drop unset tool arguments so they behave like absent query parameters."""
    return {name: value for name, value in kwargs.items() if value is not None}


# Tools

@mcp.tool(
    annotations=ToolAnnotations(
        title="Search Implant Parts",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def search_parts(
    q: str | None = None,
    platform: str | None = None,
    group: str | None = None,
    product_group: str | None = None,
    diameter_mm: str | float | None = None,
    length_mm: str | float | None = None,
    gingiva_mm: str | float | None = None,
    angulation_deg: str | float | None = None,
    connection_mm: str | float | None = None,
    abformung: str | None = None,
    color: str | None = None,
    rotationsschutz: str | None = None,
    variant: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> dict:
    """Search the implant parts catalog. All filters combine with AND.

    Args:
        q: Free text matched against SKU, manufacturer code and names
        platform: Platform code (e.g., "P06", "6") or "universal" for parts without platform
        group: Category (e.g., "Prothetik")
        product_group: Product group (e.g., "Abutment", "Gingivaformer", "Abformpfosten")
        diameter_mm: Part's own prosthetic diameter, +-0.1mm (e.g., "5,0")
        length_mm: Part length, +-0.1mm
        gingiva_mm: Gingiva height, +-0.1mm
        angulation_deg: Angulation in degrees
        connection_mm: Implant connection size, +-0.1mm (e.g., "4.1", "3.75")
        abformung: Impression technique ("open" or "closed")
        color: Color
        rotationsschutz: "mit"/"with" or "ohne"/"without" rotation protection
        variant: Free text matched against execution, rotation protection and accessories
        limit: Max results (default 10, max 50)

    Returns:
        items: Matching parts in catalog order, with derived connection_mm and platform_scope
    """
    params = _tool_params(
        q=q, platform=platform, group=group, product_group=product_group,
        diameter_mm=diameter_mm, length_mm=length_mm, gingiva_mm=gingiva_mm,
        angulation_deg=angulation_deg, connection_mm=connection_mm,
        abformung=abformung, color=color, rotationsschutz=rotationsschutz,
        variant=variant, limit=limit,
    )
    payload, _ = run_query(_get_source(), "search", params)
    return payload


@mcp.tool(
    annotations=ToolAnnotations(
        title="Part Facets",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def part_facets(
    q: str | None = None,
    platform: str | None = None,
    group: str | None = None,
    product_group: str | None = None,
    diameter_mm: str | float | None = None,
    length_mm: str | float | None = None,
    gingiva_mm: str | float | None = None,
    angulation_deg: str | float | None = None,
    connection_mm: str | float | None = None,
    abformung: str | None = None,
    color: str | None = None,
    rotationsschutz: str | None = None,
    variant: str | None = None,
) -> dict:
    """Value counts per attribute for the parts matching the given filters.

    Takes the same filters as search_parts (no limit). Use it to discover
    which platforms, connection sizes, diameters, etc. are still available.

    Returns:
        facets: {field: {values: [{value, count}]}}, top 50 per field by count
    """
    params = _tool_params(
        q=q, platform=platform, group=group, product_group=product_group,
        diameter_mm=diameter_mm, length_mm=length_mm, gingiva_mm=gingiva_mm,
        angulation_deg=angulation_deg, connection_mm=connection_mm,
        abformung=abformung, color=color, rotationsschutz=rotationsschutz,
        variant=variant,
    )
    payload, _ = run_query(_get_source(), "facets", params)
    return payload


# HTTP endpoints

def api_search(request: Request) -> JSONResponse:
    payload, status = run_query(request.app.state.catalog, "search", dict(request.query_params))
    return JSONResponse(payload, status_code=status)


def api_facets(request: Request) -> JSONResponse:
    payload, status = run_query(request.app.state.catalog, "facets", dict(request.query_params))
    return JSONResponse(payload, status_code=status)


def health(request: Request) -> JSONResponse:
    source = request.app.state.catalog
    return JSONResponse({
        "status": "healthy" if source.loaded else "degraded",
        "service": "implantparts-mcp",
        "version": __version__,
        "parts": len(source.snapshot()) if source.loaded else 0,
    })


def api_routes() -> list[Route]:
    return [
        Route("/api/search", api_search, methods=["GET"]),
        Route("/api/facets", api_facets, methods=["GET"]),
        Route("/health", health, methods=["GET"]),
    ]


# Create ASGI app
def create_app(source: CatalogSource | None = None):
    """Create the ASGI application.

    Args:
        source: Catalog source; defaults to CatalogSource.from_location()
    """
    source = source or CatalogSource.from_location()
    set_catalog_source(source)

    middleware = [
        Middleware(RateLimitMiddleware, requests_per_minute=RATE_LIMIT_REQUESTS),
    ]

    app = mcp.http_app(
        path="/mcp",
        middleware=middleware,
        transport="streamable-http",
        stateless_http=True,
    )
    app.state.catalog = source
    app.routes.extend(api_routes())

    return app


class _HealthFilterLog(logging.Filter):
    """Suppress noisy /health access logs from Docker healthchecks."""

    def filter(self, record: logging.LogRecord) -> bool:
        return "/health" not in record.getMessage()


def main():
    """Run the server."""
    import uvicorn

    logging.getLogger("uvicorn.access").addFilter(_HealthFilterLog())

    uvicorn.run(
        create_app(),
        host="0.0.0.0",
        port=HTTP_PORT,
        lifespan="on",
    )


if __name__ == "__main__":
    main()
