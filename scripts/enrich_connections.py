#!/usr/bin/env python3
"""
Write an explicit connection_mm into every catalog record where one can be derived.

Reads a JSONL catalog, runs the same connection-size derivation the search
API uses, and writes a new JSONL file. Records that already carry
connection_mm keep it; lines that do not decode to a JSON object are dropped.

Usage:
    python scripts/enrich_connections.py [--input PATH] [--output PATH]
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any

# Add parent directory to path for imports when running as script
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from implantparts_mcp.catalog import parse_jsonl
from implantparts_mcp.connection import derive_connection_mm


def enrich_catalog(src: Path, out: Path, verbose: bool = False) -> dict[str, Any]:
    """Enrich src into out.

    Returns:
        Stats dict with total records written and how many got a connection size
    """
    start_time = time.time()
    total = 0
    enriched = 0

    out.parent.mkdir(parents=True, exist_ok=True)
    with open(src, "rb") as fin, open(out, "w", encoding="utf-8") as fout:
        for line in fin:
            records, _ = parse_jsonl([line])
            if not records:
                continue
            record = records[0]
            total += 1

            connection = derive_connection_mm(record)
            if connection is not None:
                record["connection_mm"] = connection
                enriched += 1

            fout.write(json.dumps(record, ensure_ascii=False) + "\n")

    stats = {
        "total": total,
        "enriched": enriched,
        "elapsed_seconds": round(time.time() - start_time, 2),
    }

    if verbose:
        print(f"Enriched {enriched:,}/{total:,} items. Wrote -> {out}")

    return stats


def main():
    parser = argparse.ArgumentParser(description="Derive connection_mm for catalog records")
    parser.add_argument(
        "--input", "-i",
        type=Path,
        default=Path("data/products.jsonl"),
        help="Source catalog (default: data/products.jsonl)",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=Path("data/products.enriched.jsonl"),
        help="Output catalog (default: data/products.enriched.jsonl)",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress output",
    )
    args = parser.parse_args()

    if not args.input.exists():
        print(f"Error: File not found: {args.input}")
        return 1

    enrich_catalog(args.input, args.output, verbose=not args.quiet)
    return 0


if __name__ == "__main__":
    exit(main())
