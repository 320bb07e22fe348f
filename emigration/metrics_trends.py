from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from emigration.aggregation import Series, records_frame, series_by_key_over_time, sort_categories
from emigration.charts import emigrants_axis, hover, to_vega_spec
from emigration.data import AGE, DESTINATION, empty_payload
from emigration.filters import DashboardFilters


def series_payload(series: List[Series]) -> List[Dict[str, Any]]:
    return [{"id": s.id, "data": [asdict(p) for p in s.points]} for s in series]


def series_frame(series: List[Series]) -> pd.DataFrame:
    rows = [{"id": s.id, "year": p.x, "value": p.y} for s in series for p in s.points]
    return pd.DataFrame(rows, columns=["id", "year", "value"])


def series_line_chart(series: List[Series], color_title: str) -> Optional[Dict[str, Any]]:
    df = series_frame(series)
    if df.empty:
        return None
    highlight = hover("id")
    line = (
        alt.Chart(df)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("year:O", title="Year", axis=alt.Axis(grid=False)),
            y=alt.Y("value:Q", title="Emigrants", axis=emigrants_axis()),
            color=alt.Color("id:N", title=color_title),
            opacity=alt.condition(highlight, alt.value(1), alt.value(0.2)),
            tooltip=[
                alt.Tooltip("year:O", title="Year"),
                alt.Tooltip("id:N", title=color_title),
                alt.Tooltip("value:Q", title="Emigrants", format=","),
            ],
        )
        .add_params(highlight)
    )
    return to_vega_spec(line)


def compute_trends(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records = ctx.get("records", {}) or {}
    dest_records = records.get(DESTINATION, [])
    age_records = records.get(AGE, [])

    country_trends = series_by_key_over_time(dest_records, filters.selected_country)
    age_trends = series_by_key_over_time(age_records)

    dest = records_frame(dest_records)
    ages = records_frame(age_records)
    countries = sorted(dest.loc[dest["value"] > 0, "category"].unique().tolist()) if not dest.empty else []
    age_groups = sort_categories(sorted(ages.loc[ages["value"] > 0, "category"].unique().tolist())) if not ages.empty else []

    charts: Dict[str, Any] = {}
    # Without a selected country the line chart only shows the leading series.
    shown = country_trends if filters.selected_country else country_trends[: filters.top_n]
    country_chart = series_line_chart(shown, "Country")
    if country_chart is not None:
        charts["country_trends"] = country_chart
    age_chart = series_line_chart(age_trends, "Age Group")
    if age_chart is not None:
        charts["age_trends"] = age_chart

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "country_trends": series_payload(country_trends),
        "age_trends": series_payload(age_trends),
        "countries": countries,
        "age_groups": age_groups,
        "table": series_frame(country_trends).to_dict(orient="records"),
        "charts": charts,
        "empty": empty_payload(ctx, DESTINATION, AGE),
    }
