"""Origin-region totals spread onto provinces for the choropleth."""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Tuple

REGION_TO_PROVINCES: Dict[str, List[str]] = {
    "REGION I ILOCOS REGION": ["Ilocos Norte", "Ilocos Sur", "La Union", "Pangasinan"],
    "REGION II CAGAYAN VALLEY": ["Batanes", "Cagayan", "Isabela", "Nueva Vizcaya", "Quirino"],
    "REGION III CENTRAL LUZON": ["Aurora", "Bataan", "Bulacan", "Nueva Ecija", "Pampanga", "Tarlac", "Zambales"],
    "REGION IV A CALABARZON": ["Batangas", "Cavite", "Laguna", "Quezon", "Rizal"],
    "REGION IV B MIMAROPA": ["Marinduque", "Occidental Mindoro", "Oriental Mindoro", "Palawan", "Romblon"],
    "REGION V BICOL REGION": ["Albay", "Camarines Norte", "Camarines Sur", "Catanduanes", "Masbate", "Sorsogon"],
    "REGION VI WESTERN VISAYAS": ["Aklan", "Antique", "Capiz", "Guimaras", "Iloilo", "Negros Occidental"],
    "REGION VII CENTRAL VISAYAS": ["Bohol", "Cebu", "Negros Oriental", "Siquijor"],
    "REGION VIII EASTERN VISAYAS": ["Biliran", "Eastern Samar", "Leyte", "Northern Samar", "Samar", "Southern Leyte"],
    "REGION IX ZAMBOANGA PENINSULA": ["Zamboanga del Norte", "Zamboanga del Sur", "Zamboanga Sibugay"],
    "REGION X NORTHERN MINDANAO": [
        "Bukidnon",
        "Camiguin",
        "Lanao del Norte",
        "Misamis Occidental",
        "Misamis Oriental",
    ],
    "REGION XI DAVAO REGION": ["Davao de Oro", "Davao del Norte", "Davao del Sur", "Davao Occidental", "Davao Oriental"],
    "REGION XII SOCCSKSARGEN": ["Cotabato", "Sarangani", "South Cotabato", "Sultan Kudarat"],
    "REGION XIII CARAGA": [
        "Agusan del Norte",
        "Agusan del Sur",
        "Dinagat Islands",
        "Surigao del Norte",
        "Surigao del Sur",
    ],
    "CORDILLERA ADMINISTRATIVE REGION": ["Abra", "Apayao", "Benguet", "Ifugao", "Kalinga", "Mountain Province"],
    "NATIONAL CAPITAL REGION": ["Metro Manila"],
    "AUTONOMOUS REGION IN MUSLIM MINDANAO": [
        "Basilan",
        "Lanao del Sur",
        "Maguindanao del Norte",
        "Maguindanao del Sur",
        "Sulu",
        "Tawi-Tawi",
    ],
}

# Colour domain used when there is nothing to scale.
EMPTY_DOMAIN = (0.0, 100.0)


def normalize_province_name(name: str) -> str:
    """Upper-case, punctuation to spaces, whitespace collapsed: "Region IV-A - CALABARZON" -> "REGION IV A CALABARZON"."""
    s = re.sub(r"[^0-9A-Za-z]+", " ", str(name))
    return re.sub(r"\s+", " ", s).strip().upper()


def province_totals(totals: Mapping[str, float]) -> Dict[str, float]:
    """Spread region totals evenly across their provinces.

    Keys that are not a known region are taken as province names.
    """
    out: Dict[str, float] = {}
    for key, value in totals.items():
        provinces = REGION_TO_PROVINCES.get(normalize_province_name(key))
        if provinces:
            share = float(value) / len(provinces)
            for province in provinces:
                pk = normalize_province_name(province)
                out[pk] = out.get(pk, 0.0) + share
        else:
            pk = normalize_province_name(key)
            out[pk] = out.get(pk, 0.0) + float(value)
    return out


def value_domain(values: Mapping[str, float]) -> Tuple[float, float]:
    if not values:
        return EMPTY_DOMAIN
    nums = list(values.values())
    return float(min(nums)), float(max(nums))
