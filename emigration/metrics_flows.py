from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Tuple

from emigration.aggregation import EmptyResult, proportional_cross_tab, round_half_up, top_n
from emigration.data import AGE, DESTINATION, EDUCATION
from emigration.filters import DashboardFilters

NODE_COLORS = {
    DESTINATION: "#e74c3c",
    AGE: "#3498db",
    EDUCATION: "#2ecc71",
}
NODE_PREFIX = {
    DESTINATION: "dest",
    AGE: "age",
    EDUCATION: "edu",
}
FLOW_DIMENSIONS: Dict[str, Tuple[str, str]] = {
    "destination-age": (DESTINATION, AGE),
    "destination-education": (DESTINATION, EDUCATION),
    "age-education": (AGE, EDUCATION),
}
NOTE = "Flow values are estimated by proportional distribution of the two marginal totals."


def _node_id(dimension: str, category: str) -> str:
    return f"{NODE_PREFIX[dimension]}-{category}"


def compute_flows(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Sankey nodes and links between two dimensions.

    Links are proportional cross-tab estimates; those under
    ``thresholds.min_flow`` are left out to keep the diagram legible.
    """
    totals = ctx.get("totals", {}) or {}
    source_dim, target_dim = FLOW_DIMENSIONS[filters.flow]
    t = filters.thresholds

    if source_dim == DESTINATION:
        sources = top_n(totals.get(DESTINATION, {}), t.country_limit, filters.excluded_countries)
    else:
        sources = top_n(totals.get(source_dim, {}), t.category_limit)
    targets = top_n(totals.get(target_dim, {}), t.category_limit)

    nodes: List[Dict[str, str]] = [
        {"id": _node_id(dim, ct.category), "nodeColor": NODE_COLORS[dim]}
        for dim, ranked in [(source_dim, sources), (target_dim, targets)]
        for ct in ranked
    ]
    estimates = proportional_cross_tab(sources, targets, t.min_flow)
    links = [
        {
            "source": _node_id(source_dim, e.row_key),
            "target": _node_id(target_dim, e.col_key),
            "value": round_half_up(e.value),
            "estimated": e.estimated,
        }
        for e in estimates
    ]

    empty = None
    if not links:
        empty = asdict(EmptyResult(reason=f"No {filters.flow} flows at or above {t.min_flow:g}"))
        nodes = []

    return {
        "filters": asdict(filters),
        "years": ctx.get("years", []),
        "flow": filters.flow,
        "nodes": nodes,
        "links": links,
        "total_flow": float(sum(link["value"] for link in links)),
        "note": NOTE,
        "table": links,
        "empty": empty,
    }
