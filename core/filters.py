from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

import pandas as pd


class ChangeType(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    OTHER_CHANGE = "other"
    PRERELEASE = "prerelease"
    STABLE = "stable"
    GENERAL_OTHER = "general_other"


CHANGE_TYPE_VALUES = frozenset(ct.value for ct in ChangeType)
CHANGE_COUNT_TYPES = (ChangeType.MAJOR, ChangeType.MINOR, ChangeType.PATCH, ChangeType.OTHER_CHANGE)

# selection dimension -> (filters field, releases column)
DIMENSIONS: Dict[str, tuple] = {
    "repo": ("selected_repos", "repo_name"),
    "package": ("selected_packages", "package"),
    "author": ("selected_authors", "author"),
    "change_type": ("selected_change_types", "change_types"),
    "month": ("selected_months", "year_month"),
}


@dataclass(frozen=True)
class DashboardFilters:
    selected_repos: FrozenSet[str] = field(default_factory=frozenset)
    selected_packages: FrozenSet[str] = field(default_factory=frozenset)
    selected_authors: FrozenSet[str] = field(default_factory=frozenset)
    selected_change_types: FrozenSet[str] = field(default_factory=frozenset)
    selected_months: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def any_active(self) -> bool:
        return any(getattr(self, attr) for attr, _ in DIMENSIONS.values())

    def as_dict(self) -> Dict[str, list]:
        """JSON-friendly view; sets become sorted lists."""
        return {attr: sorted(getattr(self, attr)) for attr, _ in DIMENSIONS.values()}


def _as_str_set(values: Optional[Iterable[object]]) -> FrozenSet[str]:
    if not values:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    out = set()
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s:
            out.add(s)
    return frozenset(out)


def normalize_filters(raw: Optional[dict]) -> DashboardFilters:
    raw = raw or {}
    change_types = _as_str_set(raw.get("selected_change_types"))
    return DashboardFilters(
        selected_repos=_as_str_set(raw.get("selected_repos")),
        selected_packages=_as_str_set(raw.get("selected_packages")),
        selected_authors=_as_str_set(raw.get("selected_authors")),
        selected_change_types=frozenset(ct for ct in change_types if ct in CHANGE_TYPE_VALUES),
        selected_months=_as_str_set(raw.get("selected_months")),
    )


def year_month_label(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    ts = pd.Timestamp(value)
    return f"{ts.year}-{ts.month:02d}"


def apply_filters(releases: pd.DataFrame, filters: DashboardFilters) -> pd.DataFrame:
    """Return the releases matching every active dimension, in their original order.

    Within a dimension any selected value matches; change types match when the
    release carries at least one selected tag. Releases without a parsed date
    never match an active month filter.
    """
    if releases.empty or not filters.any_active:
        return releases

    mask = pd.Series(True, index=releases.index)
    if filters.selected_repos:
        mask &= releases["repo_name"].isin(filters.selected_repos)
    if filters.selected_packages:
        mask &= releases["package"].isin(filters.selected_packages)
    if filters.selected_authors:
        mask &= releases["author"].isin(filters.selected_authors)
    if filters.selected_change_types:
        wanted = filters.selected_change_types
        mask &= releases["change_types"].apply(lambda tags: any(t in wanted for t in tags))
    if filters.selected_months:
        mask &= releases["year_month"].notna() & releases["year_month"].isin(filters.selected_months)
    return releases[mask]
