from __future__ import annotations

import hashlib
import json
import math
from dataclasses import dataclass, field, replace
from typing import Iterable, Tuple

import pandas as pd

from core.filters import CHANGE_TYPE_VALUES, DIMENSIONS, DashboardFilters, normalize_filters


ITEMS_PER_PAGE = 10


def _field_for(dimension: str) -> str:
    try:
        return DIMENSIONS[dimension][0]
    except KeyError:
        raise ValueError(f"Unknown selection dimension: {dimension!r}") from None


def _check_value(dimension: str, value: str) -> None:
    if dimension == "change_type" and value not in CHANGE_TYPE_VALUES:
        raise ValueError(f"Unknown change type: {value!r}")


def toggle_value(filters: DashboardFilters, dimension: str, value: str) -> DashboardFilters:
    """Add `value` to the dimension's selection, or remove it if already present."""
    attr = _field_for(dimension)
    value = str(value).strip()
    _check_value(dimension, value)
    current = getattr(filters, attr)
    updated = current - {value} if value in current else current | {value}
    return replace(filters, **{attr: frozenset(updated)})


def total_pages(row_count: int, page_size: int = ITEMS_PER_PAGE) -> int:
    return math.ceil(row_count / page_size) if page_size > 0 else 0


def paginate(df: pd.DataFrame, page: int, page_size: int = ITEMS_PER_PAGE) -> Tuple[pd.DataFrame, int, int]:
    """Slice one 1-based page out of `df`, clamping `page` into range."""
    pages = total_pages(len(df), page_size)
    page = max(1, min(int(page), max(pages, 1)))
    start = (page - 1) * page_size
    return df.iloc[start : start + page_size], page, pages


@dataclass
class SelectionState:
    """Mutable selection owned by a UI session.

    Every change to the filters sends the table back to page 1.
    """

    filters: DashboardFilters = field(default_factory=DashboardFilters)
    page: int = 1

    def toggle(self, dimension: str, value: str) -> DashboardFilters:
        self.filters = toggle_value(self.filters, dimension, value)
        self.page = 1
        return self.filters

    def replace(self, dimension: str, values: Iterable[str]) -> DashboardFilters:
        attr = _field_for(dimension)
        raw = self.filters.as_dict()
        raw[attr] = list(values)
        updated = normalize_filters(raw)
        if updated != self.filters:
            self.filters = updated
            self.page = 1
        return self.filters

    def clear(self) -> DashboardFilters:
        self.filters = DashboardFilters()
        self.page = 1
        return self.filters

    def set_page(self, page: int, pages: int) -> int:
        self.page = max(1, min(int(page), max(pages, 1)))
        return self.page

    def table_key(self, prefix: str = "release_table") -> str:
        """Widget key that changes with the page and with any filter change."""
        digest = hashlib.sha1(json.dumps(self.filters.as_dict(), sort_keys=True).encode("utf-8")).hexdigest()[:10]
        return f"{prefix}_{self.page}_{digest}"
