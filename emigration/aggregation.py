"""Aggregation and reshaping of year-keyed category records.

Every function here is pure: inputs are never mutated and malformed or empty
input degrades to an empty (or evenly split) result instead of raising.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from emigration.records import RecordLike, coerce_records, parse_count, parse_year


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: float


@dataclass(frozen=True)
class SeriesPoint:
    x: Any
    y: float


@dataclass(frozen=True)
class Series:
    id: str
    points: List[SeriesPoint] = field(default_factory=list)


@dataclass(frozen=True)
class CrossTabEstimate:
    """Joint value estimated as ``row_total * col_total / sum(col_totals)``.

    This assumes the two dimensions are independent. It is not observed
    joint data, and ``estimated`` is always True so payloads say so.
    """

    row_key: str
    col_key: str
    value: float
    estimated: bool = True


@dataclass(frozen=True)
class Bin:
    index: int
    label: str
    start: float
    end: float
    count: int = 0
    value: float = 0.0


@dataclass(frozen=True)
class BinResult:
    bins: List[Bin] = field(default_factory=list)
    # index per input point; None for non-finite inputs
    assignment: List[Optional[int]] = field(default_factory=list)


@dataclass(frozen=True)
class HeatmapCell:
    x: Any
    bin_index: int
    bin_label: str
    count: int


@dataclass(frozen=True)
class EmptyResult:
    """Marks "no data" so callers never confuse it with all-zero data."""

    reason: str


Totals = Union[Mapping[str, Any], Iterable[CategoryTotal], Iterable[Tuple[str, Any]]]

NO_DIGITS_RANK = 999
UNMATCHED_YEAR = -1


# ---------------- Helpers ----------------
def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    d = Decimal(str(value))
    if not d.is_finite():
        return float(d)
    q = Decimal(10) ** -ndigits
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the kept decimals
        ctx.prec = max(ctx.prec, d.adjusted() + ndigits + 2)
        return float(d.quantize(q, rounding=ROUND_HALF_UP))


def category_rank(label: str) -> int:
    """Sort rank for bucket labels such as "Below 14", "15-19" or "No Response"."""
    s = str(label)
    if "below" in s.lower():
        return 0
    match = re.search(r"\d+", s)
    return int(match.group(0)) if match else NO_DIGITS_RANK


def sort_categories(labels: Iterable[str]) -> List[str]:
    return sorted(labels, key=category_rank)


def _year_filter_value(year_filter: object) -> Optional[int]:
    """None means every year; an unparseable year becomes one no record has."""
    if year_filter is None:
        return None
    if isinstance(year_filter, str) and year_filter.strip().lower() == "all":
        return None
    year = parse_year(year_filter)
    return UNMATCHED_YEAR if year is None else year


def _as_pairs(totals: Optional[Totals]) -> List[Tuple[str, float]]:
    if not totals:
        return []
    items: Iterable[Any] = totals.items() if isinstance(totals, Mapping) else totals
    out: List[Tuple[str, float]] = []
    for item in items:
        if isinstance(item, CategoryTotal):
            key, raw = item.category, item.total
        else:
            key, raw = item
        value = parse_count(raw)
        if value is None:
            continue
        out.append((str(key), value))
    return out


def _finite(value: object) -> Optional[float]:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def records_frame(records: Optional[Iterable[RecordLike]]) -> pd.DataFrame:
    """Long-format frame (year, category, value) in encounter order."""
    rows = [
        (rec.year, category, value)
        for rec in coerce_records(records)
        for category, value in rec.values.items()
    ]
    return pd.DataFrame(rows, columns=["year", "category", "value"])


def available_years(*record_sets: Optional[Iterable[RecordLike]]) -> List[int]:
    years = {rec.year for records in record_sets for rec in coerce_records(records)}
    return sorted(years)


# ---------------- Operations ----------------
def totals_by_category(records: Optional[Iterable[RecordLike]], year_filter: object = "all") -> Dict[str, float]:
    """Sum each category's positive counts over the records passing ``year_filter``.

    ``year_filter`` is ``"all"`` (or None) or a specific year; a year that
    cannot be parsed matches no records. The ``Year`` field is never a
    category.
    """
    frame = records_frame(records)
    year = _year_filter_value(year_filter)
    if year is not None:
        frame = frame[frame["year"] == year]
    frame = frame[frame["value"] > 0]
    if frame.empty:
        return {}
    totals = frame.groupby("category", sort=False)["value"].sum()
    return {str(k): float(v) for k, v in totals.items()}


def top_n(totals: Optional[Totals], n: int, excluded: Optional[Iterable[str]] = None) -> List[CategoryTotal]:
    """Highest totals first; ties keep their encounter order."""
    if isinstance(excluded, str):
        excluded = [excluded]
    skip = set(excluded or ())
    pairs = [(k, v) for k, v in _as_pairs(totals) if k not in skip]
    if n <= 0:
        return []
    # sorted() is stable, including with reverse=True
    ranked = sorted(pairs, key=lambda kv: kv[1], reverse=True)
    return [CategoryTotal(category=k, total=v) for k, v in ranked[:n]]


def normalize_key(raw: str, canonical: Sequence[str]) -> Optional[str]:
    """Map a raw field name onto a canonical key by case-insensitive substring.

    The longest matching canonical key wins, so "FEMALE" resolves to
    "female" even though it also contains "male".
    """
    upper = str(raw).upper()
    matches = [k for k in canonical if str(k).upper() in upper]
    if not matches:
        return None
    return max(matches, key=lambda k: len(str(k)))


def percentage_split(totals: Optional[Totals], keys: Sequence[str]) -> Dict[str, float]:
    keys = list(dict.fromkeys(keys))
    if not keys:
        return {}
    sums = {k: 0.0 for k in keys}
    for raw, value in _as_pairs(totals):
        canon = normalize_key(raw, keys)
        if canon is not None:
            sums[canon] += value
    grand = sum(sums.values())
    if grand <= 0:
        return {k: 1.0 / len(keys) for k in keys}
    return {k: sums[k] / grand for k in keys}


def proportional_cross_tab(
    row_totals: Optional[Totals],
    col_totals: Optional[Totals],
    min_threshold: float = 10.0,
) -> List[CrossTabEstimate]:
    """Estimate joint values from two marginals under independence.

    Pairs below ``min_threshold`` are dropped to keep charts readable; the
    threshold controls display density only.
    """
    rows = _as_pairs(row_totals)
    cols = _as_pairs(col_totals)
    col_sum = sum(v for _, v in cols)
    if col_sum <= 0:
        return []
    out: List[CrossTabEstimate] = []
    for row_key, row_total in rows:
        for col_key, col_total in cols:
            value = (row_total * col_total) / col_sum
            if value < min_threshold:
                continue
            out.append(CrossTabEstimate(row_key=row_key, col_key=col_key, value=value))
    return out


def bin_by_value(
    values: Optional[Sequence[object]],
    bin_count: int = 6,
    weights: Optional[Sequence[float]] = None,
) -> BinResult:
    """Partition values into ``bin_count`` equal-width bins over [min, max].

    Each bin's ``value`` is its point count, or the sum of ``weights`` for
    its points when weights are given.
    """
    bin_count = max(1, int(bin_count))
    numeric = [_finite(v) for v in (values or [])]
    finite = [v for v in numeric if v is not None]
    if not finite:
        return BinResult(bins=[], assignment=[None] * len(numeric))

    lo, hi = min(finite), max(finite)
    width = (hi - lo) / bin_count or 1.0

    counts = [0] * bin_count
    sums = [0.0] * bin_count
    assignment: List[Optional[int]] = []
    for i, v in enumerate(numeric):
        if v is None:
            assignment.append(None)
            continue
        idx = min(max(int(math.floor((v - lo) / width)), 0), bin_count - 1)
        assignment.append(idx)
        counts[idx] += 1
        w = _finite(weights[i]) if weights is not None and i < len(weights) else None
        sums[idx] += (w or 0.0) if weights is not None else 1.0

    bins = []
    for i in range(bin_count):
        start = lo + i * width
        end = lo + (i + 1) * width
        label = f"{int(round_half_up(start))}-{int(round_half_up(end))}"
        bins.append(Bin(index=i, label=label, start=start, end=end, count=counts[i], value=sums[i]))
    return BinResult(bins=bins, assignment=assignment)


def binned_heatmap(points: Optional[Sequence[Tuple[Any, object]]], bin_count: int = 6) -> Tuple[List[Bin], List[HeatmapCell]]:
    """Cross-tabulate binned y values against distinct x values.

    Returns the bins and one cell per (x, bin) pair, x ascending, holding
    the number of points that fall in it.
    """
    pts = [(x, y) for x, y in (points or []) if _finite(y) is not None]
    if not pts:
        return [], []
    result = bin_by_value([y for _, y in pts], bin_count)
    x_labels = sorted({x for x, _ in pts})
    counts: Dict[Tuple[Any, int], int] = {}
    for (x, _), idx in zip(pts, result.assignment):
        if idx is None:
            continue
        counts[(x, idx)] = counts.get((x, idx), 0) + 1
    cells = [
        HeatmapCell(x=x, bin_index=b.index, bin_label=b.label, count=counts.get((x, b.index), 0))
        for x in x_labels
        for b in result.bins
    ]
    return result.bins, cells


def series_by_key_over_time(records: Optional[Iterable[RecordLike]], key_filter: Optional[str] = None) -> List[Series]:
    """One series per category with its value at each year, years ascending.

    Series are ordered by their most recent value, highest first (stable).
    """
    frame = records_frame(records)
    frame = frame[frame["value"] > 0]
    if key_filter:
        frame = frame[frame["category"] == key_filter]
    if frame.empty:
        return []
    per_year = frame.groupby(["category", "year"], sort=False)["value"].sum().reset_index()
    out: List[Series] = []
    for category, grp in per_year.groupby("category", sort=False):
        grp = grp.sort_values("year", kind="stable")
        points = [SeriesPoint(x=int(y), y=float(v)) for y, v in zip(grp["year"], grp["value"])]
        out.append(Series(id=str(category), points=points))
    return sorted(out, key=lambda s: s.points[-1].y, reverse=True)
