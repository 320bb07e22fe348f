from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()


def emigrants_axis() -> alt.Axis:
    """Quantitative axis for emigrant counts (SI-abbreviated ticks, dashed grid)."""
    return alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)


def hover(field: str) -> alt.Parameter:
    return alt.selection_point(fields=[field], on="mouseover", empty="all")


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Vega-Lite dict for the client to render; data rows are inlined."""
    return chart.to_dict()
