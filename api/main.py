from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import pandas as pd
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.encoding import json_response
from api.schemas import DashboardFiltersModel
from emigration.aggregation import records_frame, sort_categories
from emigration.config import build_store, configure_logging, load_settings
from emigration.data import AGE, DIMENSIONS, PAGE_DIMENSIONS, load_dashboard_data, prepare_context
from emigration.filters import DashboardFilters, normalize_filters
from emigration.metrics_comparison import compute_comparison
from emigration.metrics_composition import compute_composition
from emigration.metrics_distribution import compute_distribution
from emigration.metrics_flows import compute_flows
from emigration.metrics_geographic import compute_geographic
from emigration.metrics_heatmap import compute_heatmap
from emigration.metrics_overview import compute_overview
from emigration.metrics_radar import compute_radar
from emigration.metrics_relationships import compute_relationships
from emigration.metrics_trends import compute_trends
from emigration.store import RecordStore

settings = load_settings()
configure_logging(settings)

app = FastAPI(title="Emigrant Dashboard API", version="0.1.0")
app.state.settings = settings
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

PAGE_COMPUTE: Dict[str, Callable[[DashboardFilters, Dict[str, Any]], Dict[str, Any]]] = {
    "overview": compute_overview,
    "comparison": compute_comparison,
    "composition": compute_composition,
    "trends": compute_trends,
    "distribution": compute_distribution,
    "heatmap": compute_heatmap,
    "relationships": compute_relationships,
    "radar": compute_radar,
    "flows": compute_flows,
    "geographic": compute_geographic,
}


def get_store(request: Request) -> RecordStore:
    """The app's record store, built on first use. Tests override this dependency."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = build_store(request.app.state.settings)
        request.app.state.store = store
    return store


def _filters_from_model(model: DashboardFiltersModel, *, available_years: list[int]) -> DashboardFilters:
    raw = model.model_dump()
    return normalize_filters(raw, available_years=available_years)


def _error(exc: Exception) -> JSONResponse:
    return json_response({"error": str(exc), "type": type(exc).__name__}, status_code=500)


def _compute_page(page: str, filters: DashboardFiltersModel, store: RecordStore) -> Dict[str, Any]:
    data_ctx = load_dashboard_data(store, PAGE_DIMENSIONS[page], max_workers=app.state.settings.fetch_workers)
    f = _filters_from_model(filters, available_years=data_ctx.get("years", []))
    ctx = prepare_context(f, data_ctx)
    return PAGE_COMPUTE[page](f, ctx)


def _page_response(page: str, filters: DashboardFiltersModel, store: RecordStore) -> JSONResponse:
    try:
        return json_response(_compute_page(page, filters, store))
    except Exception as exc:
        logger.exception("%s failed", page)
        return _error(exc)


@app.get("/meta/years")
def meta_years(dimension: Optional[str] = Query(default=None), store: RecordStore = Depends(get_store)):
    try:
        dims = [dimension] if dimension in DIMENSIONS else list(DIMENSIONS)
        data_ctx = load_dashboard_data(store, dims, max_workers=app.state.settings.fetch_workers)
        return json_response({"years": data_ctx.get("years", [])})
    except Exception as exc:
        logger.exception("meta_years failed")
        return _error(exc)


@app.get("/meta/categories")
def meta_categories(dimension: str = Query(default="allDestination"), store: RecordStore = Depends(get_store)):
    try:
        if dimension not in DIMENSIONS:
            return json_response({"categories": []})
        data_ctx = load_dashboard_data(store, [dimension])
        frame = records_frame(data_ctx["records"].get(dimension, []))
        if frame.empty:
            return json_response({"categories": []})
        cats = sorted(str(x) for x in frame.loc[frame["value"] > 0, "category"].unique().tolist())
        if dimension == AGE:
            cats = sort_categories(cats)
        return json_response({"categories": cats})
    except Exception as exc:
        logger.exception("meta_categories failed")
        return _error(exc)


@app.post("/overview")
def overview(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("overview", filters, store)


@app.post("/comparison")
def comparison(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("comparison", filters, store)


@app.post("/composition")
def composition(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("composition", filters, store)


@app.post("/trends")
def trends(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("trends", filters, store)


@app.post("/distribution")
def distribution(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("distribution", filters, store)


@app.post("/heatmap")
def heatmap(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("heatmap", filters, store)


@app.post("/relationships")
def relationships(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("relationships", filters, store)


@app.post("/radar")
def radar(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("radar", filters, store)


@app.post("/flows")
def flows(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("flows", filters, store)


@app.post("/geographic")
def geographic(filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    return _page_response("geographic", filters, store)


@app.post("/export/{page}")
def export_page(page: str, filters: DashboardFiltersModel, store: RecordStore = Depends(get_store)):
    export_df = pd.DataFrame()
    filename = f"{page}.csv"
    if page in PAGE_COMPUTE:
        try:
            payload = _compute_page(page, filters, store)
        except Exception as exc:
            logger.exception("export %s failed", page)
            return _error(exc)
        export_df = pd.DataFrame(payload.get("table") or [])
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
