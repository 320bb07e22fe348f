"""Tests for the record cache, stores and settings."""

from __future__ import annotations

from pathlib import Path
import sys
import threading
from typing import Any, Dict, List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from emigration.cache import RecordCache
from emigration.config import Settings, build_store, load_settings
from emigration.records import YearRecord
from emigration.store import (
    CachedRecordStore,
    FileRecordStore,
    FirestoreRecordStore,
    RecordStoreError,
    collection_dimension,
    fetch_collections,
)


# ---------------------------------------------------------------------------
# Fakes


class CountingStore:
    def __init__(self, data: Dict[str, List[YearRecord]]) -> None:
        self.data = data
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch(self, collection_path: str) -> List[YearRecord]:
        with self._lock:
            self.calls.append(collection_path)
        if collection_path not in self.data:
            raise RecordStoreError(f"missing {collection_path}")
        return list(self.data[collection_path])


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeDoc:
    def __init__(self, payload: Dict[str, Any]) -> None:
        self._payload = payload

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._payload)


class FakeQuery:
    def __init__(self, docs: List[Dict[str, Any]]) -> None:
        self._docs = docs
        self.ordered_by: List[str] = []

    def order_by(self, field: str) -> "FakeQuery":
        self.ordered_by.append(field)
        return self

    def stream(self):
        return iter(FakeDoc(d) for d in sorted(self._docs, key=lambda d: d.get("Year", 0)))


class FakeFirestoreClient:
    def __init__(self, collections: Dict[str, List[Dict[str, Any]]]) -> None:
        self.collections = collections
        self.queries: Dict[str, FakeQuery] = {}

    def collection(self, path: str) -> FakeQuery:
        if path not in self.collections:
            raise KeyError(path)
        query = FakeQuery(self.collections[path])
        self.queries[path] = query
        return query


def _records(year: int, **values: float) -> List[YearRecord]:
    return [YearRecord(year=year, values=values)]


# ---------------------------------------------------------------------------
# RecordCache


def test_record_cache_staleness_boundary() -> None:
    cache = RecordCache(ttl_seconds=300)
    assert cache.is_stale("a", now=0)
    cache.set("a", _records(2020, USA=1), now=100)
    assert not cache.is_stale("a", now=399.9)
    assert cache.get("a", now=399.9) == _records(2020, USA=1)
    assert cache.is_stale("a", now=400)
    assert cache.get("a", now=400) is None


def test_record_cache_clear_and_validation() -> None:
    cache = RecordCache()
    cache.set("a", [], now=0)
    cache.clear()
    assert cache.get("a", now=0) is None
    with pytest.raises(ValueError):
        RecordCache(ttl_seconds=-1)


# ---------------------------------------------------------------------------
# CachedRecordStore


def test_cached_store_reuses_fresh_entries_and_refetches_expired() -> None:
    base = CountingStore({"emigrantData/age/years": _records(2020, **{"15-19": 5})})
    clock = FakeClock()
    store = CachedRecordStore(base, RecordCache(ttl_seconds=300), clock=clock)

    first = store.fetch("emigrantData/age/years")
    clock.now = 299
    second = store.fetch("emigrantData/age/years")
    assert first == second
    assert base.calls == ["emigrantData/age/years"]

    clock.now = 300
    store.fetch("emigrantData/age/years")
    assert len(base.calls) == 2


def test_cached_store_does_not_cache_failures() -> None:
    base = CountingStore({})
    store = CachedRecordStore(base, RecordCache(), clock=FakeClock())
    with pytest.raises(RecordStoreError):
        store.fetch("emigrantData/sex/years")
    assert store.cache.is_stale("emigrantData/sex/years", now=0)


# ---------------------------------------------------------------------------
# fetch_collections


def test_fetch_collections_joins_every_path() -> None:
    base = CountingStore(
        {
            "emigrantData/age/years": _records(2020, A=1),
            "emigrantData/sex/years": _records(2020, MALE=1),
            "emigrantData/education/years": _records(2020, E=1),
        }
    )
    paths = ["emigrantData/age/years", "emigrantData/sex/years", "emigrantData/education/years", "emigrantData/age/years"]
    fetched = fetch_collections(base, paths, max_workers=3)
    assert list(fetched) == paths[:3]
    assert sorted(base.calls) == sorted(paths[:3])
    assert fetch_collections(base, []) == {}


def test_fetch_collections_propagates_failure() -> None:
    base = CountingStore({"emigrantData/age/years": []})
    with pytest.raises(RecordStoreError):
        fetch_collections(base, ["emigrantData/age/years", "emigrantData/missing/years"])


# ---------------------------------------------------------------------------
# Concrete stores


def test_collection_dimension() -> None:
    assert collection_dimension("emigrantData/allDestination/years") == "allDestination"
    assert collection_dimension("/emigrantData/age/years/") == "age"
    assert collection_dimension("province") == "province"


def test_file_store_reads_wide_csv(tmp_path: Path) -> None:
    (tmp_path / "allDestination.csv").write_text(
        "Year,USA,Canada,Notes\n2020,\"1,200\",40,n/a\n2019,100,,x\n",
        encoding="utf-8",
    )
    store = FileRecordStore(tmp_path)
    records = store.fetch("emigrantData/allDestination/years")
    assert [r.year for r in records] == [2019, 2020]
    assert records[0].values == {"USA": 100.0}
    assert records[1].values == {"USA": 1200.0, "Canada": 40.0}


def test_file_store_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(RecordStoreError):
        FileRecordStore(tmp_path).fetch("emigrantData/age/years")


def test_firestore_store_orders_by_year_and_parses() -> None:
    client = FakeFirestoreClient(
        {"emigrantData/sex/years": [{"Year": 2021, "MALE": 7, "FEMALE": 9}, {"Year": 2020, "MALE": 5}, {"MALE": 1}]}
    )
    store = FirestoreRecordStore(client)
    records = store.fetch("emigrantData/sex/years")
    assert client.queries["emigrantData/sex/years"].ordered_by == ["Year"]
    assert [r.year for r in records] == [2020, 2021]
    assert records[1].values == {"MALE": 7.0, "FEMALE": 9.0}


def test_firestore_store_wraps_client_errors() -> None:
    store = FirestoreRecordStore(FakeFirestoreClient({}))
    with pytest.raises(RecordStoreError):
        store.fetch("emigrantData/age/years")


# ---------------------------------------------------------------------------
# Settings


def test_load_settings_from_environment(tmp_path: Path) -> None:
    settings = load_settings(
        {
            "EMIGRATION_STORE": "FILE",
            "EMIGRATION_DATA_DIR": str(tmp_path),
            "EMIGRATION_CACHE_TTL": "60",
            "EMIGRATION_FETCH_WORKERS": "99",
            "EMIGRATION_CORS_ORIGINS": "https://a.example, https://b.example",
        }
    )
    assert settings.store_backend == "file"
    assert settings.data_dir == tmp_path
    assert settings.cache_ttl_seconds == 60.0
    assert settings.fetch_workers == 32
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_load_settings_falls_back_on_bad_values() -> None:
    settings = load_settings({"EMIGRATION_STORE": "mongo", "EMIGRATION_CACHE_TTL": "soon"})
    assert settings == Settings()


def test_build_store_wraps_file_store_in_fresh_cache(tmp_path: Path) -> None:
    a = build_store(Settings(data_dir=tmp_path, cache_ttl_seconds=10))
    b = build_store(Settings(data_dir=tmp_path, cache_ttl_seconds=10))
    assert isinstance(a, CachedRecordStore)
    assert a.cache is not b.cache
    assert a.cache.ttl_seconds == 10
