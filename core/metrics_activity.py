from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.data import round_half_up


MAX_REPOS_TO_DISPLAY = 10


def compute_monthly_frequency(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    dated = df.dropna(subset=["year_month"])
    if dated.empty:
        return []
    counts = dated.groupby("year_month").size().sort_index()
    return [{"date": str(month), "count": int(n)} for month, n in counts.items()]


def compute_repo_working_days(df: pd.DataFrame, limit: int = MAX_REPOS_TO_DISPLAY) -> List[Dict[str, Any]]:
    """Average working days per repository, longest first.

    Only releases with a positive working-day count contribute. Ties keep the
    order in which repositories first appear.
    """
    if df.empty:
        return []
    worked = df[pd.to_numeric(df["working_days"], errors="coerce").fillna(0) > 0]
    if worked.empty:
        return []
    grouped = (
        worked.groupby("repo_name", sort=False)["working_days"]
        .agg(total="sum", releases="count")
        .reset_index()
    )
    grouped["avg_working_days"] = (grouped["total"] / grouped["releases"]).apply(lambda v: round_half_up(v, 1))
    grouped = grouped.sort_values("avg_working_days", ascending=False, kind="mergesort").head(max(0, int(limit)))
    return [
        {"name": str(r["repo_name"]), "releases": int(r["releases"]), "avg_working_days": float(r["avg_working_days"])}
        for r in grouped.to_dict(orient="records")
    ]
