"""Time-bounded cache for fetched collection records."""

from __future__ import annotations

from typing import Dict, Hashable, List, Optional, Tuple

from emigration.records import YearRecord

DEFAULT_TTL_SECONDS = 5 * 60


class RecordCache:
    """Raw records keyed by collection path, each stamped with its fetch time.

    Timestamps come from the caller (``now``) so the cache never reads a
    clock itself.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative")
        self._ttl = float(ttl_seconds)
        self._store: Dict[Hashable, Tuple[float, List[YearRecord]]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def is_stale(self, key: Hashable, now: float) -> bool:
        """True when `key` is missing or its entry is at least ``ttl`` old."""
        entry = self._store.get(key)
        if entry is None:
            return True
        stamped, _ = entry
        return (now - stamped) >= self._ttl

    def get(self, key: Hashable, now: float) -> Optional[List[YearRecord]]:
        """Return the cached records for `key` when still fresh, else None."""
        if self.is_stale(key, now):
            return None
        return self._store[key][1]

    def set(self, key: Hashable, records: List[YearRecord], now: float) -> None:
        self._store[key] = (now, list(records))

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._store)
