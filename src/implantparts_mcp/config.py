"""Configuration for Implant Parts MCP server."""

import os
from pathlib import Path

# Server settings
HTTP_PORT = int(os.getenv("HTTP_PORT", "8080"))
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))

# Catalog source - local .jsonl / .jsonl.gz path or http(s) URL
_PACKAGE_DATA_DIR = Path(__file__).parent.parent.parent / "data"
CATALOG_LOCATION = os.getenv("IMPLANT_CATALOG", str(_PACKAGE_DATA_DIR / "products.jsonl"))
CATALOG_REQUEST_TIMEOUT = float(os.getenv("CATALOG_REQUEST_TIMEOUT", "10.0"))

# Result limits
DEFAULT_LIMIT = 10
MAX_LIMIT = 50
MAX_FACET_VALUES = 50
MAX_QUERY_LENGTH = 500

# Measurement tolerances (mm)
MEASURE_TOLERANCE_MM = 0.11  # Two measurements closer than this are "the same"
CONNECTION_RANGE_MM = (3.0, 6.5)  # Physically plausible implant connection sizes
