from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class ThresholdsModel(BaseModel):
    min_flow: float = 10.0
    bin_count: int = 6
    country_limit: int = 8
    category_limit: int = 8


class DashboardFiltersModel(BaseModel):
    selected_year: Union[int, str] = "all"
    selected_country: Optional[str] = None
    excluded_countries: Union[List[str], str] = Field(default_factory=list)
    top_n: int = 10
    flow: str = "destination-age"
    metric: str = "age-income"
    seed: int = 0
    thresholds: ThresholdsModel = Field(default_factory=ThresholdsModel)
