from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt
import pandas as pd

from emigration.aggregation import EmptyResult, top_n
from emigration.charts import to_vega_spec
from emigration.data import AGE, DESTINATION, EDUCATION
from emigration.filters import DashboardFilters

RADAR_SIZE = 5


def compute_radar(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    totals = ctx.get("totals", {}) or {}
    countries = top_n(totals.get(DESTINATION, {}), RADAR_SIZE, filters.excluded_countries)
    radar = [{"category": t.category, "Total Emigrants": t.total} for t in countries]
    rankings = {
        "destination": [asdict(t) for t in countries],
        "age": [asdict(t) for t in top_n(totals.get(AGE, {}), RADAR_SIZE)],
        "education": [asdict(t) for t in top_n(totals.get(EDUCATION, {}), RADAR_SIZE)],
    }

    empty = None
    charts: Dict[str, Any] = {}
    if not radar:
        empty = asdict(EmptyResult(reason="No destination totals for the selected year"))
    else:
        # equal angular slices, radius carries the total
        df = pd.DataFrame([asdict(t) for t in countries]).assign(slice=1)
        base = alt.Chart(df).encode(
            theta=alt.Theta("slice:Q", stack=True),
            radius=alt.Radius("total:Q", scale=alt.Scale(type="sqrt", zero=True)),
            color=alt.Color("category:N", title="Destination"),
            tooltip=[alt.Tooltip("category:N", title="Country"), alt.Tooltip("total:Q", title="Emigrants", format=",")],
        )
        charts["top_destinations"] = to_vega_spec(base.mark_arc(innerRadius=20, stroke="#fff"))

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "radar": radar,
        "rankings": rankings,
        "table": rankings["destination"],
        "charts": charts,
        "empty": empty,
    }
