from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.data import COUNT_COLUMNS
from core.filters import CHANGE_COUNT_TYPES, ChangeType


_COUNT_COLUMN_BY_TYPE = dict(zip((ct.value for ct in CHANGE_COUNT_TYPES), COUNT_COLUMNS.values()))


def compute_stability_distribution(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Stable vs prerelease counts, straight from the prerelease flag."""
    if df.empty:
        return []
    prerelease = int(df["is_prerelease"].astype(bool).sum())
    stable = int(len(df) - prerelease)
    out = [
        {"name": ChangeType.STABLE.value, "value": stable},
        {"name": ChangeType.PRERELEASE.value, "value": prerelease},
    ]
    return [item for item in out if item["value"] > 0]


def compute_change_type_totals(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Summed change counts in major, minor, patch, other order; zero totals omitted."""
    if df.empty:
        return []
    out: List[Dict[str, Any]] = []
    for name, col in _COUNT_COLUMN_BY_TYPE.items():
        total = int(pd.to_numeric(df[col], errors="coerce").fillna(0).sum())
        if total > 0:
            out.append({"name": name, "value": total})
    return out
