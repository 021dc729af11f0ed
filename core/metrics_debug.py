from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from core.filters import DashboardFilters


def compute_debug(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    data_ctx: Dict[str, Any] = ctx.get("data_ctx", {}) or {}
    releases: pd.DataFrame = ctx.get("releases", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered_releases", pd.DataFrame())

    payload = {
        "filters": filters.as_dict(),
        "source": data_ctx.get("source"),
        "row_counts": {
            "raw_rows": int(data_ctx.get("raw_rows", 0) or 0),
            "releases": int(len(releases)),
            "filtered_releases": int(len(filtered)),
        },
        "cleaning_checks": {
            "dropped_without_publish_time": int(data_ctx.get("dropped_unpublished", 0) or 0),
            "unparsed_publish_times": int(data_ctx.get("unparsed_dates", 0) or 0),
            "drafts": 0,
            "zero_working_days": 0,
        },
        "option_counts": {
            "repos": len(data_ctx.get("repos", []) or []),
            "packages": len(data_ctx.get("packages", []) or []),
            "authors": len(data_ctx.get("authors", []) or []),
            "months": len(data_ctx.get("months", []) or []),
        },
        "undated_sample": [],
    }

    if not releases.empty:
        payload["cleaning_checks"]["drafts"] = int(releases["is_draft"].astype(bool).sum())
        working_days = pd.to_numeric(releases["working_days"], errors="coerce").fillna(0)
        payload["cleaning_checks"]["zero_working_days"] = int((working_days <= 0).sum())
        undated = releases[releases["published_date"].isna()]
        if not undated.empty:
            payload["undated_sample"] = undated[["id", "repo_name", "version", "published_at_kst"]].head(20).to_dict(orient="records")
    return payload
