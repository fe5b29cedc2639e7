from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from core.catalog import TREND_GROUPS, YEAR_ORDER


class ViewFiltersModel(BaseModel):
    mode: Literal["overview", "trends", "disparities"] = "overview"
    # Blank means the latest configured year present in the data.
    target_year: str = ""
    years: List[str] = Field(default_factory=lambda: list(YEAR_ORDER))
    trend_groups: List[str] = Field(default_factory=lambda: list(TREND_GROUPS))
    enforce_percent_range: bool = False
    include_charts: bool = True


class MetaYearsResponse(BaseModel):
    years: List[str]
    configured_years: List[str]


class CategoryGroups(BaseModel):
    key: str
    title: str
    groups: List[str]


class MetaGroupsResponse(BaseModel):
    baseline: str
    categories: List[CategoryGroups]
    trend_groups: List[str]
