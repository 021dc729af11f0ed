from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.filters import DIMENSIONS, DashboardFilters
from core.selection import ITEMS_PER_PAGE, paginate


TABLE_COLUMNS = ["id", "repo_name", "package", "version", "published_date", "working_days", "author"]

CHIP_LABELS = {
    "repo": "Repository",
    "package": "Package",
    "author": "Author",
    "change_type": "Type",
    "month": "Month",
}


def format_filter_chips(filters: DashboardFilters) -> List[Dict[str, str]]:
    chips: List[Dict[str, str]] = []
    for dimension, (attr, _) in DIMENSIONS.items():
        for value in sorted(getattr(filters, attr)):
            chips.append({"dimension": dimension, "label": CHIP_LABELS[dimension], "value": value})
    return chips


def _format_date(value: object) -> str:
    if value is None or pd.isna(value):
        return ""
    return pd.Timestamp(value).strftime("%Y-%m-%d")


def compute_release_table(
    filters: DashboardFilters,
    ctx: Dict[str, Any],
    *,
    page: int = 1,
    page_size: int = ITEMS_PER_PAGE,
) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_releases", pd.DataFrame())
    page_size = max(1, int(page_size))
    page_df, page, pages = paginate(df, page, page_size)

    rows: List[Dict[str, Any]] = []
    if not page_df.empty:
        table = page_df[TABLE_COLUMNS].copy()
        table["published_date"] = table["published_date"].apply(_format_date)
        rows = table.to_dict(orient="records")

    return {
        "filters": filters.as_dict(),
        "page": page,
        "page_size": page_size,
        "total_pages": pages,
        "total_rows": int(len(df)),
        "rows": rows,
        "chips": format_filter_chips(filters),
    }
