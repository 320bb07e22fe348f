from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from emigration.aggregation import round_half_up, series_by_key_over_time, top_n
from emigration.data import DESTINATION, empty_payload
from emigration.filters import DashboardFilters
from emigration.metrics_trends import series_line_chart, series_payload

DISTRIBUTION_SERIES = 5


def distribution_statistics(values: Iterable[float]) -> Dict[str, Optional[float]]:
    """Mean, median, sample standard deviation and range of per-country totals.

    Standard deviation is None with fewer than two values.
    """
    s = pd.Series(list(values), dtype=float)
    if s.empty:
        return {"count": 0, "mean": None, "median": None, "standard_deviation": None, "range": None}
    std = s.std()
    return {
        "count": int(s.size),
        "mean": round_half_up(s.mean(), 2),
        "median": round_half_up(s.median(), 2),
        "standard_deviation": round_half_up(std, 2) if pd.notna(std) else None,
        "range": round_half_up(s.max() - s.min(), 2),
    }


def compute_distribution(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records = (ctx.get("records", {}) or {}).get(DESTINATION, [])
    totals = (ctx.get("totals", {}) or {}).get(DESTINATION, {})
    excluded = set(filters.excluded_countries)

    series = [s for s in series_by_key_over_time(records) if s.id not in excluded][:DISTRIBUTION_SERIES]
    ranked = top_n(totals, len(totals), filters.excluded_countries)
    table = [{"country": t.category, "emigrants": t.total} for t in ranked]

    charts: Dict[str, Any] = {}
    line = series_line_chart(series, "Country")
    if line is not None:
        charts["country_distribution"] = line

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "series": series_payload(series),
        "statistics": distribution_statistics(t.total for t in ranked),
        "table": table,
        "charts": charts,
        "empty": empty_payload(ctx, DESTINATION),
    }
