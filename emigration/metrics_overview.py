from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt

from emigration.aggregation import available_years, records_frame, round_half_up
from emigration.charts import emigrants_axis, to_vega_spec
from emigration.data import DESTINATION, PROVINCE, empty_payload
from emigration.filters import DashboardFilters

VISUALIZATION_TYPES = 7


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records = ctx.get("records", {}) or {}
    dest = records_frame(records.get(DESTINATION, []))
    prov = records_frame(records.get(PROVINCE, []))

    # documents carrying only a Year still count toward the range
    years = available_years(records.get(DESTINATION, []))
    year_range = f"{years[0]}-{years[-1]}" if years else "No data"
    total = float(dest["value"].sum()) if not dest.empty else 0.0

    stats = {
        "total_countries": int(dest["category"].nunique()) if not dest.empty else 0,
        "total_provinces": int(prov["category"].nunique()) if not prov.empty else 0,
        "data_years": year_range,
        "total_emigrants_millions": round_half_up(total / 1_000_000, 2),
        "visualization_types": VISUALIZATION_TYPES,
    }

    yearly = []
    charts: Dict[str, Any] = {}
    if not dest.empty:
        by_year = dest.groupby("year")["value"].sum().reset_index().rename(columns={"value": "emigrants"})
        by_year["year"] = by_year["year"].astype(int)
        yearly = by_year.to_dict(orient="records")
        line = (
            alt.Chart(by_year)
            .mark_line(point={"filled": True, "size": 60})
            .encode(
                x=alt.X("year:O", title="Year", axis=alt.Axis(grid=False)),
                y=alt.Y("emigrants:Q", title="Emigrants", axis=emigrants_axis()),
                tooltip=[alt.Tooltip("year:O", title="Year"), alt.Tooltip("emigrants:Q", title="Emigrants", format=",")],
            )
            .properties(height=260)
        )
        charts["yearly_total"] = to_vega_spec(line)

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "stats": stats,
        "table": yearly,
        "charts": charts,
        "empty": empty_payload(ctx, DESTINATION, PROVINCE),
    }
