from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np

YEAR_FIELD = "Year"


@dataclass(frozen=True)
class YearRecord:
    """One document of category -> count values tagged with a year."""

    year: int
    values: Mapping[str, float] = field(default_factory=dict)


RecordLike = Union[YearRecord, Mapping[str, Any]]


def parse_year(value: object) -> Optional[int]:
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        value = float(value)
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    s = str(value).strip()
    if re.fullmatch(r"\d{4}", s):
        return int(s)
    return None


def parse_count(value: object) -> Optional[float]:
    """Return a finite, non-negative count or None for anything else."""
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if not isinstance(value, (int, float, np.integer, np.floating)):
        return None
    out = float(value)
    if not math.isfinite(out) or out < 0:
        return None
    return out


def parse_record(raw: Mapping[str, Any]) -> Optional[YearRecord]:
    """Build a YearRecord from a raw store document.

    Documents without a usable ``Year`` are dropped (None). Fields that are
    non-numeric, negative or non-finite are left out silently.
    """
    year = parse_year(raw.get(YEAR_FIELD))
    if year is None:
        return None
    values: Dict[str, float] = {}
    for key, value in raw.items():
        if key == YEAR_FIELD:
            continue
        count = parse_count(value)
        if count is None:
            continue
        values[str(key)] = count
    return YearRecord(year=year, values=values)


def coerce_records(records: Optional[Iterable[RecordLike]]) -> List[YearRecord]:
    if not records:
        return []
    out: List[YearRecord] = []
    for rec in records:
        if isinstance(rec, YearRecord):
            out.append(rec)
            continue
        if not isinstance(rec, Mapping):
            continue
        parsed = parse_record(rec)
        if parsed is not None:
            out.append(parsed)
    return out


def parse_documents(docs: Iterable[Mapping[str, Any]]) -> List[YearRecord]:
    """Parse raw documents and order them by year ascending (stable)."""
    return sorted(coerce_records(docs), key=lambda r: r.year)
