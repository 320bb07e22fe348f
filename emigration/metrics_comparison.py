from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt
import pandas as pd

from emigration.aggregation import top_n
from emigration.charts import emigrants_axis, hover, to_vega_spec
from emigration.data import DESTINATION, empty_payload
from emigration.filters import DashboardFilters


def compute_comparison(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    totals = (ctx.get("totals", {}) or {}).get(DESTINATION, {})
    top = top_n(totals, filters.top_n, filters.excluded_countries)
    rows = [{"rank": i + 1, "country": t.category, "emigrants": t.total} for i, t in enumerate(top)]

    summary = {
        "countries_shown": len(rows),
        "total_emigrants": float(sum(r["emigrants"] for r in rows)),
        "top_country": rows[0]["country"] if rows else None,
    }

    charts: Dict[str, Any] = {}
    if rows:
        df = pd.DataFrame(rows)
        highlight = hover("country")
        bar = (
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X("country:N", title="Destination", sort="-y", axis=alt.Axis(grid=False)),
                y=alt.Y("emigrants:Q", title="Emigrants", axis=emigrants_axis()),
                color=alt.Color("country:N", legend=None),
                opacity=alt.condition(highlight, alt.value(1), alt.value(0.6)),
                tooltip=[alt.Tooltip("country:N", title="Country"), alt.Tooltip("emigrants:Q", title="Emigrants", format=",")],
            )
            .add_params(highlight)
        )
        charts["top_destinations"] = to_vega_spec(bar)

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "top": rows,
        "summary": summary,
        "table": rows,
        "charts": charts,
        "empty": empty_payload(ctx, DESTINATION),
    }
