from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from emigration.aggregation import CategoryTotal, top_n
from emigration.charts import hover, to_vega_spec
from emigration.data import AGE, CIVIL_STATUS, DESTINATION, empty_payload
from emigration.filters import DashboardFilters

DESTINATION_SLICES = 8


def _slices(ranked: List[CategoryTotal]) -> List[Dict[str, Any]]:
    return [{"id": t.category, "label": t.category, "value": t.total} for t in ranked]


def _pie(rows: List[Dict[str, Any]], title: str) -> Optional[Dict[str, Any]]:
    if not rows:
        return None
    df = pd.DataFrame(rows)
    highlight = hover("label")
    arc = (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color("label:N", title=None, sort=alt.SortField("value", order="descending")),
            opacity=alt.condition(highlight, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip("label:N", title="Group"), alt.Tooltip("value:Q", title="Emigrants", format=",")],
        )
        .add_params(highlight)
    )
    return to_vega_spec(arc)


def compute_composition(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    totals = ctx.get("totals", {}) or {}
    destination = _slices(top_n(totals.get(DESTINATION, {}), DESTINATION_SLICES, filters.excluded_countries))
    age = _slices(top_n(totals.get(AGE, {}), len(totals.get(AGE, {}))))
    civil_status = _slices(top_n(totals.get(CIVIL_STATUS, {}), len(totals.get(CIVIL_STATUS, {}))))

    charts: Dict[str, Any] = {}
    for key, rows, title in [
        ("destination", destination, "Top Destinations"),
        ("age", age, "Age Groups"),
        ("civil_status", civil_status, "Civil Status"),
    ]:
        spec = _pie(rows, title)
        if spec is not None:
            charts[key] = spec

    table = [{"dimension": dim, **row} for dim, rows in [("destination", destination), ("age", age), ("civil_status", civil_status)] for row in rows]
    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "destination": destination,
        "age": age,
        "civil_status": civil_status,
        "table": table,
        "charts": charts,
        "empty": empty_payload(ctx, DESTINATION, AGE, CIVIL_STATUS),
    }
