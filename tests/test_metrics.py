"""Tests for the per-page compute functions on a small fixed dataset."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Any, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from emigration.data import (
    AGE,
    CIVIL_STATUS,
    DESTINATION,
    EDUCATION,
    PAGE_DIMENSIONS,
    PROVINCE,
    SEX,
    collection_path,
    load_dashboard_data,
    prepare_context,
)
from emigration.filters import normalize_filters
from emigration.geo import EMPTY_DOMAIN, normalize_province_name, province_totals
from emigration.metrics_comparison import compute_comparison
from emigration.metrics_composition import compute_composition
from emigration.metrics_distribution import compute_distribution, distribution_statistics
from emigration.metrics_flows import compute_flows
from emigration.metrics_geographic import compute_geographic
from emigration.metrics_heatmap import compute_heatmap
from emigration.metrics_overview import compute_overview
from emigration.metrics_radar import compute_radar
from emigration.metrics_relationships import compute_relationships
from emigration.metrics_trends import compute_trends
from emigration.records import YearRecord, parse_documents
from emigration.synthetic import ScatterPoint, correlation, education_level, relationship_points, strength_label


SAMPLE: Dict[str, List[Dict[str, Any]]] = {
    DESTINATION: [
        {"Year": 2019, "USA": 100, "Canada": 50, "Japan": 10},
        {"Year": 2020, "USA": 120, "Canada": 40, "Japan": 5},
    ],
    AGE: [
        {"Year": 2019, "15-19": 20, "20-24": 50},
        {"Year": 2020, "15-19": 10, "20-24": 20},
    ],
    SEX: [{"Year": 2019, "MALE": 60, "FEMALE": 40}],
    EDUCATION: [{"Year": 2019, "Bachelor's Degree": 80, "High School": 20}],
    CIVIL_STATUS: [{"Year": 2019, "Single": 70, "Married": 30}],
    PROVINCE: [{"Year": 2019, "Region IV-A - CALABARZON": 500, "NATIONAL CAPITAL REGION": 90}],
}


class MemoryStore:
    def __init__(self, docs: Dict[str, List[Dict[str, Any]]]) -> None:
        self.docs = {collection_path(dim): rows for dim, rows in docs.items()}

    def fetch(self, collection_path: str) -> List[YearRecord]:
        return parse_documents(self.docs.get(collection_path, []))


def _make_ctx(page: str, raw_filters: Optional[Dict[str, Any]] = None, docs=None):
    store = MemoryStore(SAMPLE if docs is None else docs)
    data_ctx = load_dashboard_data(store, PAGE_DIMENSIONS[page])
    filters = normalize_filters(raw_filters or {}, available_years=data_ctx["years"])
    return filters, prepare_context(filters, data_ctx)


# ---------------------------------------------------------------------------
# Overview and comparison


def test_overview_stats_and_yearly_table() -> None:
    filters, ctx = _make_ctx("overview")
    out = compute_overview(filters, ctx)
    assert out["stats"]["total_countries"] == 3
    assert out["stats"]["total_provinces"] == 2
    assert out["stats"]["data_years"] == "2019-2020"
    assert out["stats"]["visualization_types"] == 7
    assert out["table"] == [{"year": 2019, "emigrants": 160.0}, {"year": 2020, "emigrants": 165.0}]
    assert "yearly_total" in out["charts"]
    assert out["empty"] is None


def test_overview_without_records() -> None:
    filters, ctx = _make_ctx("overview", docs={})
    out = compute_overview(filters, ctx)
    assert out["stats"]["data_years"] == "No data"
    assert out["stats"]["total_emigrants_millions"] == 0.0
    assert out["charts"] == {}
    assert out["empty"]["reason"].startswith("No records")


def test_comparison_respects_exclusions_and_top_n() -> None:
    filters, ctx = _make_ctx("comparison", {"top_n": 2, "excluded_countries": ["USA"]})
    out = compute_comparison(filters, ctx)
    assert out["top"] == [
        {"rank": 1, "country": "Canada", "emigrants": 90.0},
        {"rank": 2, "country": "Japan", "emigrants": 15.0},
    ]
    assert out["summary"] == {"countries_shown": 2, "total_emigrants": 105.0, "top_country": "Canada"}
    assert "top_destinations" in out["charts"]


def test_comparison_single_year() -> None:
    filters, ctx = _make_ctx("comparison", {"selected_year": 2020, "top_n": 1})
    out = compute_comparison(filters, ctx)
    assert out["top"] == [{"rank": 1, "country": "USA", "emigrants": 120.0}]
    assert out["filters"]["selected_year"] == 2020


# ---------------------------------------------------------------------------
# Composition and trends


def test_composition_slices() -> None:
    filters, ctx = _make_ctx("composition")
    out = compute_composition(filters, ctx)
    assert [s["id"] for s in out["destination"]] == ["USA", "Canada", "Japan"]
    assert out["age"] == [
        {"id": "20-24", "label": "20-24", "value": 70.0},
        {"id": "15-19", "label": "15-19", "value": 30.0},
    ]
    assert [s["id"] for s in out["civil_status"]] == ["Single", "Married"]
    assert set(out["charts"]) == {"destination", "age", "civil_status"}


def test_trends_series_and_country_filter() -> None:
    filters, ctx = _make_ctx("trends")
    out = compute_trends(filters, ctx)
    assert [s["id"] for s in out["country_trends"]] == ["USA", "Canada", "Japan"]
    assert out["country_trends"][0]["data"] == [{"x": 2019, "y": 100.0}, {"x": 2020, "y": 120.0}]
    assert out["countries"] == ["Canada", "Japan", "USA"]
    assert out["age_groups"] == ["15-19", "20-24"]

    filters, ctx = _make_ctx("trends", {"selected_country": "Canada"})
    out = compute_trends(filters, ctx)
    assert [s["id"] for s in out["country_trends"]] == ["Canada"]


# ---------------------------------------------------------------------------
# Heatmap


def test_heatmap_allocates_age_totals_by_sex_split() -> None:
    filters, ctx = _make_ctx("heatmap")
    out = compute_heatmap(filters, ctx)
    grid = {(c["sex"], c["age_group"]): c["value"] for c in out["table"]}
    assert grid == {
        ("Male", "15-19"): 18.0,
        ("Male", "20-24"): 42.0,
        ("Female", "15-19"): 12.0,
        ("Female", "20-24"): 28.0,
    }
    assert all(c["estimated"] for c in out["table"])
    assert out["scale"] == {"min": 12.0, "max": 42.0}
    assert out["sex_split"] == {"male": pytest.approx(0.6), "female": pytest.approx(0.4)}


def test_heatmap_year_without_sex_data_splits_evenly() -> None:
    filters, ctx = _make_ctx("heatmap", {"selected_year": 2020})
    out = compute_heatmap(filters, ctx)
    assert out["sex_split"] == {"male": 0.5, "female": 0.5}
    assert sorted(c["value"] for c in out["table"]) == [5.0, 5.0, 10.0, 10.0]


# ---------------------------------------------------------------------------
# Relationships


def test_relationships_are_seeded_and_flagged_synthetic() -> None:
    filters, ctx = _make_ctx("relationships", {"seed": 7})
    first = compute_relationships(filters, ctx)
    second = compute_relationships(filters, ctx)
    assert first["series"] == second["series"]
    assert first["synthetic"] is True
    assert first["note"]

    other_filters, other_ctx = _make_ctx("relationships", {"seed": 8})
    other = compute_relationships(other_filters, other_ctx)
    assert other["series"]["age-income"] != first["series"]["age-income"]
    assert other["series"]["distance-emigrants"] == first["series"]["distance-emigrants"]


def test_relationships_heatmap_uses_bin_count() -> None:
    filters, ctx = _make_ctx("relationships", {"metric": "distance-emigrants", "thresholds": {"bin_count": 4}})
    out = compute_relationships(filters, ctx)
    assert len(out["heatmap"]["keys"]) == 4
    assert sum(c["count"] for c in out["heatmap"]["cells"]) == 3
    assert {p["label"] for p in out["table"]} == {"USA", "Canada", "Japan"}
    assert [c["metric"] for c in out["correlations"]] == ["Age vs Income", "Education vs Income", "Distance vs Emigrants"]


def test_synthetic_helpers() -> None:
    assert education_level("Bachelor's Degree") == 3
    assert education_level("Vocational") == 1
    assert correlation([ScatterPoint("a", 1, 1, 1)]) is None
    assert correlation([ScatterPoint("a", 1, 1, 1), ScatterPoint("b", 1, 2, 1)]) is None
    assert correlation([ScatterPoint("a", 1, 1, 1), ScatterPoint("b", 2, 2, 1)]) == pytest.approx(1.0)
    assert strength_label(-0.75) == "Strong"
    assert strength_label(0.5) == "Moderate"
    assert strength_label(0.1) == "Weak"
    assert strength_label(None) == "Undefined"
    pts = relationship_points({"Below 14": 5, "25-29": 10}, {}, {}, seed=1)
    assert [p.x for p in pts["age-income"]] == [27.0]


# ---------------------------------------------------------------------------
# Radar and flows


def test_radar_rankings_and_empty() -> None:
    filters, ctx = _make_ctx("radar")
    out = compute_radar(filters, ctx)
    assert out["radar"][0] == {"category": "USA", "Total Emigrants": 220.0}
    assert [r["category"] for r in out["rankings"]["education"]] == ["Bachelor's Degree", "High School"]
    assert out["empty"] is None

    filters, ctx = _make_ctx("radar", docs={AGE: SAMPLE[AGE]})
    out = compute_radar(filters, ctx)
    assert out["radar"] == []
    assert out["empty"] is not None
    assert out["charts"] == {}


def test_flows_destination_age_links() -> None:
    filters, ctx = _make_ctx("flows")
    out = compute_flows(filters, ctx)
    links = {(l["source"], l["target"]): l["value"] for l in out["links"]}
    assert links == {
        ("dest-USA", "age-20-24"): 154.0,
        ("dest-USA", "age-15-19"): 66.0,
        ("dest-Canada", "age-20-24"): 63.0,
        ("dest-Canada", "age-15-19"): 27.0,
        ("dest-Japan", "age-20-24"): 11.0,
    }
    assert out["total_flow"] == 321.0
    assert all(l["estimated"] for l in out["links"])
    assert {n["id"] for n in out["nodes"]} == {"dest-USA", "dest-Canada", "dest-Japan", "age-20-24", "age-15-19"}


def test_flows_limits_and_threshold() -> None:
    filters, ctx = _make_ctx("flows", {"flow": "age-education", "thresholds": {"category_limit": 1, "min_flow": 0}})
    out = compute_flows(filters, ctx)
    assert [(l["source"], l["target"]) for l in out["links"]] == [("age-20-24", "edu-Bachelor's Degree")]

    filters, ctx = _make_ctx("flows", {"thresholds": {"min_flow": 1000}})
    out = compute_flows(filters, ctx)
    assert out["links"] == []
    assert out["nodes"] == []
    assert out["empty"] is not None


# ---------------------------------------------------------------------------
# Geographic


def test_province_totals_spreads_regions_evenly() -> None:
    out = province_totals({"Region IV-A - CALABARZON": 500, "Cebu": 7})
    assert out["CAVITE"] == pytest.approx(100.0)
    assert out["CEBU"] == 7.0
    assert len(out) == 6
    assert normalize_province_name(" Region  XIII (Caraga) ") == "REGION XIII CARAGA"


def test_geographic_payload() -> None:
    filters, ctx = _make_ctx("geographic")
    out = compute_geographic(filters, ctx)
    assert len(out["provinces"]) == 6
    assert out["provinces"][-1] == {"id": "METRO MANILA", "value": 90.0, "total": 90.0}
    assert out["domain"] == {"min": 90.0, "max": 100.0}
    assert [d["category"] for d in out["top_destinations"]] == ["USA", "Canada", "Japan"]


def test_geographic_without_province_data() -> None:
    filters, ctx = _make_ctx("geographic", docs={DESTINATION: SAMPLE[DESTINATION]})
    out = compute_geographic(filters, ctx)
    assert out["provinces"] == []
    assert (out["domain"]["min"], out["domain"]["max"]) == EMPTY_DOMAIN
    assert out["empty"] is not None


def test_overview_year_range_counts_documents_without_values() -> None:
    docs = {DESTINATION: [{"Year": 2017}, {"Year": 2020, "USA": 5}]}
    filters, ctx = _make_ctx("overview", docs=docs)
    out = compute_overview(filters, ctx)
    assert out["stats"]["data_years"] == "2017-2020"
    assert out["stats"]["total_countries"] == 1


# ---------------------------------------------------------------------------
# Distribution


def test_distribution_series_and_statistics() -> None:
    filters, ctx = _make_ctx("distribution")
    out = compute_distribution(filters, ctx)
    assert [s["id"] for s in out["series"]] == ["USA", "Canada", "Japan"]
    stats = out["statistics"]
    assert stats["count"] == 3
    assert stats["mean"] == 108.33
    assert stats["median"] == 90.0
    assert stats["standard_deviation"] == pytest.approx(103.72, abs=0.01)
    assert stats["range"] == 205.0
    assert out["table"][0] == {"country": "USA", "emigrants": 220.0}
    assert "country_distribution" in out["charts"]


def test_distribution_respects_year_and_exclusions() -> None:
    filters, ctx = _make_ctx("distribution", {"selected_year": 2020})
    assert compute_distribution(filters, ctx)["statistics"]["range"] == 115.0

    filters, ctx = _make_ctx("distribution", {"excluded_countries": ["USA"]})
    out = compute_distribution(filters, ctx)
    assert [s["id"] for s in out["series"]] == ["Canada", "Japan"]
    assert out["statistics"]["mean"] == 52.5
    assert out["statistics"]["standard_deviation"] == pytest.approx(53.03, abs=0.01)


def test_distribution_without_records() -> None:
    filters, ctx = _make_ctx("distribution", docs={})
    out = compute_distribution(filters, ctx)
    assert out["series"] == []
    assert out["statistics"] == {"count": 0, "mean": None, "median": None, "standard_deviation": None, "range": None}
    assert out["empty"] is not None
    assert distribution_statistics([42.0])["standard_deviation"] is None
