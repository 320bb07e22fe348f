from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional, Union

from emigration.aggregation import EmptyResult, available_years, totals_by_category
from emigration.filters import DashboardFilters, normalize_filters
from emigration.records import YearRecord
from emigration.store import RecordStore, fetch_collections

logger = logging.getLogger(__name__)

COLLECTION_ROOT = "emigrantData"

DESTINATION = "allDestination"
AGE = "age"
SEX = "sex"
EDUCATION = "education"
CIVIL_STATUS = "civilStatus"
PROVINCE = "province"

DIMENSIONS = (DESTINATION, AGE, SEX, EDUCATION, CIVIL_STATUS, PROVINCE)

PAGE_DIMENSIONS: Dict[str, tuple] = {
    "overview": (DESTINATION, PROVINCE),
    "comparison": (DESTINATION,),
    "composition": (DESTINATION, AGE, CIVIL_STATUS),
    "trends": (DESTINATION, AGE),
    "distribution": (DESTINATION,),
    "heatmap": (AGE, SEX),
    "relationships": (AGE, EDUCATION, DESTINATION),
    "radar": (DESTINATION, AGE, EDUCATION),
    "flows": (DESTINATION, AGE, EDUCATION),
    "geographic": (PROVINCE, DESTINATION),
}


def collection_path(dimension: str) -> str:
    return f"{COLLECTION_ROOT}/{dimension}/years"


def load_dashboard_data(
    store: RecordStore,
    dimensions: Iterable[str] = DIMENSIONS,
    *,
    max_workers: Optional[int] = None,
) -> Dict[str, object]:
    """Fetch the requested collections in parallel and index them by dimension."""
    dims = [d for d in dict.fromkeys(dimensions) if d in DIMENSIONS]
    paths = {dim: collection_path(dim) for dim in dims}
    fetched = fetch_collections(store, paths.values(), max_workers=max_workers)
    records: Dict[str, List[YearRecord]] = {dim: fetched.get(path, []) for dim, path in paths.items()}
    years = available_years(*records.values())
    logger.debug("Loaded %s covering %d years", ", ".join(dims), len(years))
    return {
        "collections": list(paths.values()),
        "years": years,
        "records": records,
    }


def prepare_context(filters: Union[dict, DashboardFilters], data_ctx: Dict[str, object]) -> Dict[str, Any]:
    years: List[int] = list(data_ctx.get("years") or [])  # type: ignore[arg-type]
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters, available_years=years)
    records: Dict[str, List[YearRecord]] = dict(data_ctx.get("records") or {})  # type: ignore[arg-type]

    totals = {dim: totals_by_category(recs, filt.selected_year) for dim, recs in records.items()}
    empty = {
        dim: EmptyResult(reason=f"No records in {collection_path(dim)}")
        for dim, recs in records.items()
        if not recs
    }
    return {
        "filters": filt,
        "years": years,
        "records": records,
        "totals": totals,
        "empty": empty,
    }


def empty_payload(ctx: Dict[str, Any], *dimensions: str) -> Optional[Dict[str, str]]:
    """Serialized EmptyResult when every listed dimension has no records."""
    empty: Dict[str, EmptyResult] = ctx.get("empty", {}) or {}
    if dimensions and all(d in empty for d in dimensions):
        return asdict(empty[dimensions[0]])
    return None
