from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt
import pandas as pd

from emigration.aggregation import binned_heatmap
from emigration.charts import to_vega_spec
from emigration.data import AGE, DESTINATION, EDUCATION, empty_payload
from emigration.filters import DashboardFilters
from emigration.synthetic import SYNTHETIC_NOTE, correlation, relationship_points, strength_label

TITLES = {
    "age-income": ("Age vs Income", "Age", "Income"),
    "education-income": ("Education vs Income", "Education Level", "Income"),
    "distance-emigrants": ("Distance vs Emigrants", "Distance (km)", "Emigrants"),
}


def compute_relationships(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    totals = ctx.get("totals", {}) or {}
    points = relationship_points(
        totals.get(AGE, {}),
        totals.get(EDUCATION, {}),
        totals.get(DESTINATION, {}),
        seed=filters.seed,
    )

    series = {
        metric: {"id": TITLES[metric][0], "data": [asdict(p) for p in pts]}
        for metric, pts in points.items()
    }
    correlations = []
    for metric, pts in points.items():
        r = correlation(pts)
        correlations.append({"metric": TITLES[metric][0], "correlation": r, "strength": strength_label(r)})

    selected = points[filters.metric]
    bins, cells = binned_heatmap([(p.x, p.y) for p in selected], filters.thresholds.bin_count)
    heatmap = {
        "keys": [b.label for b in bins],
        "cells": [asdict(c) for c in cells],
    }

    charts: Dict[str, Any] = {}
    if cells:
        title, x_title, y_title = TITLES[filters.metric]
        df = pd.DataFrame([asdict(c) for c in cells])
        rect = (
            alt.Chart(df, title=title)
            .mark_rect()
            .encode(
                x=alt.X("bin_label:O", title=f"{y_title} range", sort=[b.label for b in bins]),
                y=alt.Y("x:O", title=x_title),
                color=alt.Color("count:Q", title="Points", scale=alt.Scale(scheme="reds", domainMin=0)),
                tooltip=[
                    alt.Tooltip("x:O", title=x_title),
                    alt.Tooltip("bin_label:O", title=y_title),
                    alt.Tooltip("count:Q", title="Points"),
                ],
            )
        )
        charts["relationship_heatmap"] = to_vega_spec(rect)

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "synthetic": True,
        "note": SYNTHETIC_NOTE,
        "series": series,
        "correlations": correlations,
        "heatmap": heatmap,
        "table": [asdict(p) for p in selected],
        "charts": charts,
        "empty": empty_payload(ctx, AGE, EDUCATION, DESTINATION),
    }
