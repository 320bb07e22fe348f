from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Mapping, Optional

from emigration.cache import DEFAULT_TTL_SECONDS, RecordCache
from emigration.store import CachedRecordStore, FileRecordStore, FirestoreRecordStore, RecordStore

StoreBackend = Literal["file", "firestore"]

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


@dataclass(frozen=True)
class Settings:
    store_backend: StoreBackend = "file"
    data_dir: Path = DATA_DIR
    firestore_project: Optional[str] = None
    cache_ttl_seconds: float = float(DEFAULT_TTL_SECONDS)
    fetch_workers: int = 6
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    backend = (env.get("EMIGRATION_STORE") or "file").strip().lower()
    if backend not in {"file", "firestore"}:
        backend = "file"

    try:
        ttl = max(0.0, float(env.get("EMIGRATION_CACHE_TTL", DEFAULT_TTL_SECONDS)))
    except Exception:
        ttl = float(DEFAULT_TTL_SECONDS)

    try:
        workers = int(env.get("EMIGRATION_FETCH_WORKERS", 6))
    except Exception:
        workers = 6
    workers = max(1, min(32, workers))

    origins = [o.strip() for o in (env.get("EMIGRATION_CORS_ORIGINS") or "").split(",") if o.strip()]

    return Settings(
        store_backend=backend,  # type: ignore[arg-type]
        data_dir=Path(env.get("EMIGRATION_DATA_DIR") or DATA_DIR),
        firestore_project=(env.get("EMIGRATION_FIRESTORE_PROJECT") or "").strip() or None,
        cache_ttl_seconds=ttl,
        fetch_workers=workers,
        log_level=(env.get("EMIGRATION_LOG_LEVEL") or "INFO").strip().upper(),
        cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_store(settings: Settings) -> RecordStore:
    """Backend store wrapped in a fresh cache; one per app, never module-global."""
    if settings.store_backend == "firestore":
        base: RecordStore = FirestoreRecordStore(project=settings.firestore_project)
    else:
        base = FileRecordStore(settings.data_dir)
    return CachedRecordStore(base, RecordCache(settings.cache_ttl_seconds))
