from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from emigration.aggregation import percentage_split, round_half_up, sort_categories
from emigration.charts import to_vega_spec
from emigration.data import AGE, SEX, empty_payload
from emigration.filters import DashboardFilters

SEX_KEYS = ["male", "female"]
SEX_LABELS = {"male": "Male", "female": "Female"}


def compute_heatmap(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Age group x sex grid.

    There is no joint age/sex data, so each age total is allocated by the
    overall sex split. Cells are estimates and flagged as such.
    """
    totals = ctx.get("totals", {}) or {}
    age_totals: Dict[str, float] = totals.get(AGE, {})
    split = percentage_split(totals.get(SEX, {}), SEX_KEYS)
    age_groups = sort_categories(age_totals.keys())

    cells: List[Dict[str, Any]] = []
    for key in SEX_KEYS:
        for age in age_groups:
            cells.append(
                {
                    "sex": SEX_LABELS[key],
                    "age_group": age,
                    "value": round_half_up(age_totals[age] * split[key]),
                    "estimated": True,
                }
            )

    series = [
        {"id": SEX_LABELS[key], "data": [{"x": c["age_group"], "y": c["value"]} for c in cells if c["sex"] == SEX_LABELS[key]]}
        for key in SEX_KEYS
    ]
    values = [c["value"] for c in cells]
    scale = {"min": min(values), "max": max(values)} if values else {"min": None, "max": None}

    charts: Dict[str, Any] = {}
    if cells:
        df = pd.DataFrame(cells)
        rect = (
            alt.Chart(df)
            .mark_rect()
            .encode(
                x=alt.X("age_group:O", title="Age Group", sort=age_groups),
                y=alt.Y("sex:N", title="Sex"),
                color=alt.Color("value:Q", title="Emigrants (est.)", scale=alt.Scale(scheme="yelloworangered")),
                tooltip=[
                    alt.Tooltip("sex:N", title="Sex"),
                    alt.Tooltip("age_group:O", title="Age Group"),
                    alt.Tooltip("value:Q", title="Estimated", format=","),
                ],
            )
        )
        charts["age_sex"] = to_vega_spec(rect)

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "sex_split": split,
        "series": series,
        "scale": scale,
        "estimated": True,
        "table": cells,
        "charts": charts,
        "empty": empty_payload(ctx, AGE),
    }
