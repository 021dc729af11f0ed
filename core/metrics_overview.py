from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.charts import (
    apply_theme,
    change_type_chart,
    monthly_frequency_chart,
    repo_working_days_chart,
    stability_chart,
    to_vega_spec,
)
from core.data import round_half_up
from core.filters import DashboardFilters
from core.metrics_activity import compute_monthly_frequency, compute_repo_working_days
from core.metrics_changes import compute_change_type_totals, compute_stability_distribution


NOT_APPLICABLE = "N/A"


def format_working_days(value: object) -> str:
    rounded = round_half_up(value, 1)
    if rounded is None:
        return NOT_APPLICABLE
    return f"{rounded:.1f} days"


def compute_kpis(df: pd.DataFrame) -> List[Dict[str, Any]]:
    total = int(len(df))
    repos = int(df["repo_name"].nunique()) if not df.empty else 0
    authors = int(df["author"].nunique()) if not df.empty else 0

    avg_working_days = None
    if not df.empty:
        working_days = pd.to_numeric(df["working_days"], errors="coerce")
        positive = working_days[working_days > 0]
        if not positive.empty:
            avg_working_days = float(positive.mean())

    return [
        {"key": "total_releases", "title": "Total releases", "value": total},
        {"key": "repositories", "title": "Repositories analyzed", "value": repos},
        {"key": "authors", "title": "Active authors", "value": authors},
        {"key": "avg_working_days", "title": "Avg working days", "value": format_working_days(avg_working_days)},
    ]


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any], *, theme: str = "light") -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_releases", pd.DataFrame())

    stability = compute_stability_distribution(df)
    monthly = compute_monthly_frequency(df)
    change_types = compute_change_type_totals(df)
    repo_working_days = compute_repo_working_days(df)

    charts: Dict[str, Any] = {}
    if stability:
        charts["stability"] = to_vega_spec(apply_theme(stability_chart(stability), theme))
    if monthly:
        charts["monthly_frequency"] = to_vega_spec(apply_theme(monthly_frequency_chart(monthly), theme))
    if change_types:
        charts["change_types"] = to_vega_spec(apply_theme(change_type_chart(change_types), theme))
    if repo_working_days:
        charts["repo_working_days"] = to_vega_spec(apply_theme(repo_working_days_chart(repo_working_days), theme))

    return {
        "filters": filters.as_dict(),
        "kpis": compute_kpis(df),
        "stability": stability,
        "monthly_frequency": monthly,
        "change_types": change_types,
        "repo_working_days": repo_working_days,
        "charts": charts,
    }
