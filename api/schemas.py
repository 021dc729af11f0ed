from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    selected_repos: List[str] = Field(default_factory=list)
    selected_packages: List[str] = Field(default_factory=list)
    selected_authors: List[str] = Field(default_factory=list)
    selected_change_types: List[str] = Field(default_factory=list)
    selected_months: List[str] = Field(default_factory=list)


class SelectionToggleRequest(BaseModel):
    filters: DashboardFiltersModel = Field(default_factory=DashboardFiltersModel)
    dimension: Literal["repo", "package", "author", "change_type", "month"]
    value: str


class SelectionResponse(BaseModel):
    filters: Dict[str, List[str]]
    page: int = 1
    chips: List[Dict[str, Any]] = Field(default_factory=list)


class MetaOptionsResponse(BaseModel):
    repos: List[str]
    packages: List[str]
    authors: List[str]
    months: List[str]
    change_types: List[str]
