from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional, Union

FlowKind = Literal["destination-age", "destination-education", "age-education"]
RelationshipMetric = Literal["age-income", "education-income", "distance-emigrants"]

FLOW_KINDS = ("destination-age", "destination-education", "age-education")
RELATIONSHIP_METRICS = ("age-income", "education-income", "distance-emigrants")
ALL_YEARS = "all"


@dataclass(frozen=True)
class Thresholds:
    min_flow: float = 10.0
    bin_count: int = 6
    country_limit: int = 8
    category_limit: int = 8


@dataclass(frozen=True)
class DashboardFilters:
    selected_year: Union[int, str] = ALL_YEARS
    selected_country: Optional[str] = None
    excluded_countries: List[str] = field(default_factory=list)
    top_n: int = 10
    flow: FlowKind = "destination-age"
    metric: RelationshipMetric = "age-income"
    seed: int = 0
    thresholds: Thresholds = field(default_factory=Thresholds)


def _as_year(value: object, available_years: List[int]) -> Union[int, str]:
    if value is None or str(value).strip().lower() in {"", "all", "all years"}:
        return ALL_YEARS
    try:
        year = int(value)  # type: ignore[arg-type]
    except Exception:
        return ALL_YEARS
    if available_years and year not in available_years:
        return ALL_YEARS
    return year


def _as_str_list(values: Optional[Union[str, Iterable[object]]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = values.split(",")
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


def _clamped_int(value: object, default: int, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(lo, min(hi, out))


def normalize_filters(raw: dict, *, available_years: Optional[List[int]] = None) -> DashboardFilters:
    available_years = sorted(available_years or [])

    selected_year = _as_year(raw.get("selected_year"), available_years)

    selected_country = (raw.get("selected_country") or "").strip() or None
    if selected_country in {"All Countries", "all"}:
        selected_country = None
    excluded_countries = _as_str_list(raw.get("excluded_countries"))

    top_n = _clamped_int(raw.get("top_n", 10), 10, 1, 200)

    flow = raw.get("flow") or "destination-age"
    if flow not in FLOW_KINDS:
        flow = "destination-age"
    metric = raw.get("metric") or "age-income"
    if metric not in RELATIONSHIP_METRICS:
        metric = "age-income"
    seed = _clamped_int(raw.get("seed", 0), 0, 0, 2**32 - 1)

    t = raw.get("thresholds") or {}
    try:
        min_flow = max(0.0, float(t.get("min_flow", 10.0)))
    except Exception:
        min_flow = 10.0
    thresholds = Thresholds(
        min_flow=min_flow,
        bin_count=_clamped_int(t.get("bin_count", 6), 6, 1, 50),
        country_limit=_clamped_int(t.get("country_limit", 8), 8, 1, 50),
        category_limit=_clamped_int(t.get("category_limit", 8), 8, 1, 50),
    )

    return DashboardFilters(
        selected_year=selected_year,
        selected_country=selected_country,
        excluded_countries=excluded_countries,
        top_n=top_n,
        flow=flow,
        metric=metric,
        seed=seed,
        thresholds=thresholds,
    )
