from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core.filters import ChangeType

alt.data_transformers.disable_max_rows()

CHART_HEIGHT = 280

TYPE_COLORS: Dict[str, str] = {
    ChangeType.MAJOR.value: "#EF4444",
    ChangeType.MINOR.value: "#F97316",
    ChangeType.PATCH.value: "#EAB308",
    ChangeType.OTHER_CHANGE.value: "#6366F1",
    ChangeType.PRERELEASE.value: "#A855F7",
    ChangeType.STABLE.value: "#22C55E",
    ChangeType.GENERAL_OTHER.value: "#6B7280",
}

THEME_COLORS: Dict[str, Dict[str, str]] = {
    "light": {"tick": "#475569", "grid": "#e2e8f0", "background": "#ffffff"},
    "dark": {"tick": "#94a3b8", "grid": "#334155", "background": "#1e293b"},
}

# selection parameter names; the UI reads clicks back under these keys
PICK_STABILITY = "pick_stability"
PICK_MONTH = "pick_month"
PICK_CHANGE_TYPE = "pick_change_type"
PICK_REPO = "pick_repo"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _color_scale(names: List[str]) -> alt.Scale:
    return alt.Scale(domain=names, range=[TYPE_COLORS.get(n, "#6B7280") for n in names])


def apply_theme(chart: alt.Chart, theme: str = "light") -> alt.Chart:
    colors = THEME_COLORS.get(theme, THEME_COLORS["light"])
    return (
        chart.configure(background=colors["background"])
        .configure_axis(labelColor=colors["tick"], titleColor=colors["tick"], gridColor=colors["grid"], gridDash=[3, 3])
        .configure_legend(labelColor=colors["tick"], titleColor=colors["tick"])
        .configure_view(strokeWidth=0)
    )


def stability_chart(data: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(data, columns=["name", "value"])
    pick = alt.selection_point(name=PICK_STABILITY, fields=["name"])
    return (
        alt.Chart(df)
        .mark_arc(outerRadius=80)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("name:N", title=None, scale=_color_scale(df["name"].tolist())),
            opacity=alt.condition(pick, alt.value(1), alt.value(0.5)),
            tooltip=[alt.Tooltip("name:N", title="Type"), alt.Tooltip("value:Q", title="Releases", format=",")],
        )
        .add_params(pick)
        .properties(height=CHART_HEIGHT)
    )


def monthly_frequency_chart(data: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(data, columns=["date", "count"])
    pick = alt.selection_point(name=PICK_MONTH, fields=["date"])
    return (
        alt.Chart(df)
        .mark_bar(color=TYPE_COLORS[ChangeType.STABLE.value], cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("date:O", title=None, sort=None),
            y=alt.Y("count:Q", title="Releases", axis=alt.Axis(format="d", tickMinStep=1)),
            opacity=alt.condition(pick, alt.value(1), alt.value(0.5)),
            tooltip=[alt.Tooltip("date:N", title="Month"), alt.Tooltip("count:Q", title="Releases", format=",")],
        )
        .add_params(pick)
        .properties(height=CHART_HEIGHT)
    )


def change_type_chart(data: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(data, columns=["name", "value"])
    pick = alt.selection_point(name=PICK_CHANGE_TYPE, fields=["name"])
    return (
        alt.Chart(df)
        .mark_bar(cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("name:N", title=None, sort=None),
            y=alt.Y("value:Q", title="Changes", axis=alt.Axis(format="d", tickMinStep=1)),
            color=alt.Color("name:N", legend=None, scale=_color_scale(df["name"].tolist())),
            opacity=alt.condition(pick, alt.value(1), alt.value(0.5)),
            tooltip=[alt.Tooltip("name:N", title="Type"), alt.Tooltip("value:Q", title="Changes", format=",")],
        )
        .add_params(pick)
        .properties(height=CHART_HEIGHT)
    )


def repo_working_days_chart(data: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(data, columns=["name", "releases", "avg_working_days"])
    df["releases_label"] = df["releases"].apply(lambda n: f"({n})")
    pick = alt.selection_point(name=PICK_REPO, fields=["name"])
    base = alt.Chart(df).encode(
        y=alt.Y("name:N", title=None, sort=None, axis=alt.Axis(labelLimit=120)),
        x=alt.X("avg_working_days:Q", title="Avg working days"),
    )
    bars = (
        base.mark_bar(color=TYPE_COLORS[ChangeType.MINOR.value])
        .encode(
            opacity=alt.condition(pick, alt.value(1), alt.value(0.5)),
            tooltip=[
                alt.Tooltip("name:N", title="Repository"),
                alt.Tooltip("avg_working_days:Q", title="Avg working days", format=".1f"),
                alt.Tooltip("releases:Q", title="Releases"),
            ],
        )
        .add_params(pick)
    )
    labels = base.mark_text(align="left", dx=4).encode(text="releases_label:N")
    return (bars + labels).properties(height=CHART_HEIGHT)
