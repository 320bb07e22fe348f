from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt
import pandas as pd

from emigration.aggregation import top_n
from emigration.charts import emigrants_axis, to_vega_spec
from emigration.data import DESTINATION, PROVINCE, empty_payload
from emigration.filters import DashboardFilters
from emigration.geo import province_totals, value_domain

TOP_DESTINATIONS = 4


def compute_geographic(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    totals = ctx.get("totals", {}) or {}
    provinces = province_totals(totals.get(PROVINCE, {}))
    lo, hi = value_domain(provinces)
    data = sorted(
        ({"id": name, "value": value, "total": value} for name, value in provinces.items()),
        key=lambda row: row["value"],
        reverse=True,
    )
    top_destinations = [asdict(t) for t in top_n(totals.get(DESTINATION, {}), TOP_DESTINATIONS, filters.excluded_countries)]

    charts: Dict[str, Any] = {}
    if data:
        df = pd.DataFrame(data[: filters.top_n])
        bar = (
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X("value:Q", title="Emigrants", axis=emigrants_axis()),
                y=alt.Y("id:N", title="Province", sort="-x"),
                color=alt.Color("value:Q", legend=None, scale=alt.Scale(domain=[lo, hi], scheme="blues")),
                tooltip=[alt.Tooltip("id:N", title="Province"), alt.Tooltip("value:Q", title="Emigrants", format=",.0f")],
            )
        )
        charts["top_provinces"] = to_vega_spec(bar)

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "provinces": data,
        "domain": {"min": lo, "max": hi},
        "top_destinations": top_destinations,
        "table": data,
        "charts": charts,
        "empty": empty_payload(ctx, PROVINCE),
    }
