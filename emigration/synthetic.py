"""Seeded synthetic relationship data.

The store has no income or distance measurements, so the relationship views
pair real emigrant totals with simulated incomes and fixed approximate
distances. Everything produced here is flagged ``synthetic`` and must not
be read as a statistical estimate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from emigration.aggregation import normalize_key

SYNTHETIC_NOTE = "Income values are simulated from a seeded random generator, not observed data."

EDUCATION_LEVELS: Dict[str, int] = {
    "High School": 1,
    "Some College": 2,
    "Bachelor": 3,
    "Master": 4,
    "PhD": 5,
}
DEFAULT_EDUCATION_LEVEL = 1

# Approximate km from the Philippines.
DESTINATION_DISTANCE_KM: Dict[str, float] = {
    "USA": 10000.0,
    "Canada": 12000.0,
    "Australia": 5000.0,
    "Japan": 3000.0,
    "UK": 10000.0,
    "Italy": 9000.0,
    "South Korea": 2000.0,
    "Germany": 9500.0,
}
DEFAULT_DISTANCE_KM = 8000.0


@dataclass(frozen=True)
class ScatterPoint:
    label: str
    x: float
    y: float
    size: float


def age_midpoint(label: str) -> Optional[float]:
    match = re.search(r"(\d+)\s*-\s*(\d+)", str(label))
    if not match:
        return None
    return (int(match.group(1)) + int(match.group(2))) / 2


def education_level(label: str) -> int:
    key = normalize_key(label, list(EDUCATION_LEVELS))
    return EDUCATION_LEVELS[key] if key else DEFAULT_EDUCATION_LEVEL


def age_income_points(age_totals: Mapping[str, float], rng: np.random.Generator) -> List[ScatterPoint]:
    out: List[ScatterPoint] = []
    for label, total in age_totals.items():
        mid = age_midpoint(label)
        if mid is None or total <= 0:
            continue
        income = mid * 2000 + rng.uniform(0, 10000)
        out.append(ScatterPoint(label=label, x=mid, y=float(income), size=float(rng.uniform(10, 30))))
    return out


def education_income_points(education_totals: Mapping[str, float], rng: np.random.Generator) -> List[ScatterPoint]:
    out: List[ScatterPoint] = []
    for label, total in education_totals.items():
        if total <= 0:
            continue
        level = education_level(label)
        income = level * 15000 + rng.uniform(0, 5000)
        out.append(ScatterPoint(label=label, x=float(level), y=float(income), size=float(rng.uniform(10, 30))))
    return out


def distance_emigrant_points(destination_totals: Mapping[str, float]) -> List[ScatterPoint]:
    out: List[ScatterPoint] = []
    for country, total in destination_totals.items():
        if total <= 0:
            continue
        distance = DESTINATION_DISTANCE_KM.get(country, DEFAULT_DISTANCE_KM)
        out.append(ScatterPoint(label=country, x=distance, y=float(total), size=min(float(total) / 10000, 50.0)))
    return out


def correlation(points: Sequence[ScatterPoint]) -> Optional[float]:
    """Pearson r of x against y; None when undefined (fewer than 2 points or a constant axis)."""
    if len(points) < 2:
        return None
    xs = np.array([p.x for p in points], dtype=float)
    ys = np.array([p.y for p in points], dtype=float)
    if np.ptp(xs) == 0 or np.ptp(ys) == 0:
        return None
    return float(np.corrcoef(xs, ys)[0, 1])


def strength_label(r: Optional[float]) -> str:
    if r is None:
        return "Undefined"
    a = abs(r)
    if a >= 0.7:
        return "Strong"
    if a >= 0.4:
        return "Moderate"
    return "Weak"


def relationship_points(
    age_totals: Mapping[str, float],
    education_totals: Mapping[str, float],
    destination_totals: Mapping[str, float],
    *,
    seed: int = 0,
) -> Dict[str, List[ScatterPoint]]:
    """Same seed and totals always give the same points."""
    rng = np.random.default_rng(seed)
    return {
        "age-income": age_income_points(age_totals, rng),
        "education-income": education_income_points(education_totals, rng),
        "distance-emigrants": distance_emigrant_points(destination_totals),
    }
