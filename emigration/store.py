"""Record store boundary: every fetched document becomes a YearRecord here."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

import pandas as pd

from emigration.cache import RecordCache
from emigration.records import YEAR_FIELD, YearRecord, parse_documents

logger = logging.getLogger(__name__)


class RecordStoreError(RuntimeError):
    """A collection could not be fetched."""


class RecordStore(Protocol):
    def fetch(self, collection_path: str) -> List[YearRecord]:
        """Return the collection's records ordered by year ascending."""
        ...


def collection_dimension(collection_path: str) -> str:
    """``emigrantData/age/years`` -> ``age``."""
    parts = [p for p in collection_path.strip("/").split("/") if p]
    if len(parts) >= 2 and parts[-1] == "years":
        return parts[-2]
    return parts[-1] if parts else ""


class FileRecordStore:
    """Reads one wide CSV per collection: a ``Year`` column plus one column per category."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, collection_path: str) -> Path:
        return self.data_dir / f"{collection_dimension(collection_path)}.csv"

    def fetch(self, collection_path: str) -> List[YearRecord]:
        path = self.path_for(collection_path)
        if not path.exists():
            raise RecordStoreError(f"No data file for {collection_path} at {path}")
        try:
            df = pd.read_csv(path, thousands=",")
        except Exception as exc:
            raise RecordStoreError(f"Could not read {path}: {exc}") from exc
        df.columns = [str(c).strip() for c in df.columns]
        if YEAR_FIELD not in df.columns:
            logger.warning("%s has no %s column; returning no records", path.name, YEAR_FIELD)
            return []
        records = parse_documents(df.to_dict(orient="records"))
        logger.info("Loaded %d records for %s from %s", len(records), collection_path, path.name)
        return records


class FirestoreRecordStore:
    """Queries a Firestore collection ordered by ``Year``."""

    def __init__(self, client: Any = None, *, project: Optional[str] = None) -> None:
        if client is None:
            from google.cloud import firestore

            client = firestore.Client(project=project)
        self._client = client

    def fetch(self, collection_path: str) -> List[YearRecord]:
        try:
            docs = self._client.collection(collection_path).order_by(YEAR_FIELD).stream()
            raw = [doc.to_dict() or {} for doc in docs]
        except Exception as exc:
            raise RecordStoreError(f"Firestore fetch failed for {collection_path}: {exc}") from exc
        records = parse_documents(raw)
        dropped = len(raw) - len(records)
        if dropped:
            logger.warning("Dropped %d documents without a usable %s in %s", dropped, YEAR_FIELD, collection_path)
        logger.info("Fetched %d records for %s", len(records), collection_path)
        return records


class CachedRecordStore:
    """Wraps a store with an injected RecordCache and clock."""

    def __init__(
        self,
        store: RecordStore,
        cache: RecordCache,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self.cache = cache
        self._clock = clock

    def fetch(self, collection_path: str) -> List[YearRecord]:
        now = self._clock()
        cached = self.cache.get(collection_path, now)
        if cached is not None:
            logger.debug("Using cached data for %s", collection_path)
            return list(cached)
        logger.debug("Fetching fresh data for %s", collection_path)
        records = self._store.fetch(collection_path)
        self.cache.set(collection_path, records, now)
        return records


def fetch_collections(
    store: RecordStore,
    collection_paths: Iterable[str],
    *,
    max_workers: Optional[int] = None,
) -> Dict[str, List[YearRecord]]:
    """Fetch independent collections concurrently and join them.

    The first failure propagates once every submitted fetch has finished.
    """
    paths = list(dict.fromkeys(collection_paths))
    if not paths:
        return {}
    workers = max(1, min(max_workers or len(paths), len(paths)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {path: pool.submit(store.fetch, path) for path in paths}
        return {path: fut.result() for path, fut in futures.items()}
