"""Catalog data source for the part search engine.

The catalog is a newline-delimited JSON file (optionally gzipped) or a URL
serving one. A CatalogSource owns the current immutable snapshot; reload()
builds a fresh snapshot and swaps the reference. Callers keep using whatever
snapshot they already hold.
"""

import gzip
import json
import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from .config import CATALOG_LOCATION, CATALOG_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

__all__ = [
    "CatalogLoadError",
    "CatalogSnapshot",
    "CatalogSource",
    "parse_jsonl",
    "file_loader",
    "url_loader",
]


class CatalogLoadError(RuntimeError):
    """The catalog could not be read, or held no parseable records."""


@dataclass(frozen=True)
class CatalogSnapshot:
    """One loaded catalog. Records are never mutated after load."""
    records: tuple[dict[str, Any], ...]
    location: str
    loaded_at: float
    skipped_lines: int = 0

    def __len__(self) -> int:
        return len(self.records)


def parse_jsonl(lines: Iterable[str | bytes]) -> tuple[list[dict[str, Any]], int]:
    """Parse JSONL, skipping blank, non-object and undecodable lines.

    Byte lines are decoded one at a time, so a single record with invalid
    UTF-8 is skipped instead of failing the whole catalog.

    Returns:
        (records, skipped) where skipped counts non-blank lines that were dropped
    """
    records: list[dict[str, Any]] = []
    skipped = 0
    for line in lines:
        if isinstance(line, bytes):
            if not line.strip():
                continue
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.debug(f"Skipping catalog line with invalid UTF-8: {e}")
                skipped += 1
                continue
        s = line.strip()
        if not s:
            continue
        if not s.startswith("{"):
            skipped += 1
            continue
        try:
            obj = json.loads(s)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping undecodable catalog line: {e}")
            skipped += 1
            continue
        if isinstance(obj, dict):
            records.append(obj)
        else:
            skipped += 1
    return records, skipped


# Returns the raw catalog; bytes are decoded line by line
Loader = Callable[[], str | bytes]


def file_loader(path: str | Path) -> Loader:
    """Loader reading a local .jsonl or .jsonl.gz file as raw bytes."""
    path = Path(path)

    def load() -> bytes:
        if not path.exists():
            raise CatalogLoadError(f"Catalog file not found: {path}")
        try:
            if path.suffix == ".gz":
                with gzip.open(path, "rb") as f:
                    return f.read()
            return path.read_bytes()
        except (OSError, EOFError) as e:
            # Unreadable file, corrupt or truncated gzip
            raise CatalogLoadError(f"Failed to read catalog file {path}: {type(e).__name__}") from e

    return load


def url_loader(url: str, timeout: float = CATALOG_REQUEST_TIMEOUT) -> Loader:
    """Loader fetching the catalog over HTTP as raw bytes."""

    def load() -> bytes:
        try:
            response = httpx.get(url, timeout=timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            raise CatalogLoadError(f"Failed to fetch catalog from {url}: {type(e).__name__}") from e
        if response.status_code >= 400:
            raise CatalogLoadError(f"Failed to load catalog ({response.status_code})")
        return response.content

    return load


class CatalogSource:
    """Owns the current catalog snapshot.

    Thread safety: the first load and every reload run under _lock; reading
    the snapshot reference afterwards needs no lock.
    """

    def __init__(self, loader: Loader, location: str = "<memory>"):
        self._loader = loader
        self.location = location
        self._snapshot: CatalogSnapshot | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_location(cls, location: str | Path | None = None) -> "CatalogSource":
        """Build a source for a file path or http(s) URL (default: CATALOG_LOCATION)."""
        location = str(location or CATALOG_LOCATION)
        if location.startswith(("http://", "https://")):
            return cls(url_loader(location), location)
        return cls(file_loader(location), location)

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "CatalogSource":
        """Source over in-memory records (tests, embedding)."""
        text = "\n".join(json.dumps(r) for r in records)
        return cls(lambda: text)

    def _load(self) -> CatalogSnapshot:
        start = time.time()
        try:
            raw = self._loader()
        except CatalogLoadError:
            logger.error(f"Catalog load failed for {self.location}")
            raise
        except OSError as e:
            logger.error(f"Catalog load failed for {self.location}: {type(e).__name__}: {e}")
            raise CatalogLoadError(f"Failed to read catalog: {type(e).__name__}") from e
        records, skipped = parse_jsonl(raw.splitlines())
        if not records:
            logger.error(f"No parts parsed from {self.location}")
            raise CatalogLoadError("No products parsed")

        snapshot = CatalogSnapshot(
            records=tuple(records),
            location=self.location,
            loaded_at=time.time(),
            skipped_lines=skipped,
        )
        logger.info(
            f"Catalog loaded: {len(records)} parts from {self.location} "
            f"({skipped} lines skipped, {time.time() - start:.2f}s)"
        )
        return snapshot

    def snapshot(self) -> CatalogSnapshot:
        """Current snapshot, loading it on first use.

        Raises:
            CatalogLoadError: if the catalog cannot be loaded
        """
        if self._snapshot is not None:
            return self._snapshot

        with self._lock:
            # Double-check after acquiring lock
            if self._snapshot is None:
                self._snapshot = self._load()
            return self._snapshot

    def reload(self) -> CatalogSnapshot:
        """Load a fresh snapshot and make it current.

        On failure the previous snapshot stays current.
        """
        with self._lock:
            self._snapshot = self._load()
            return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None
