import html
import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from core.charts import (
    PICK_CHANGE_TYPE,
    PICK_MONTH,
    PICK_REPO,
    PICK_STABILITY,
    apply_theme,
    change_type_chart,
    monthly_frequency_chart,
    repo_working_days_chart,
    stability_chart,
)
from core.data import RAW_COLUMNS, DataLoadError, load_dashboard_data, prepare_context, reload_dashboard_data, serialize_release_csv
from core.filters import ChangeType
from core.metrics_overview import compute_overview
from core.metrics_releases import compute_release_table
from core.selection import ITEMS_PER_PAGE, SelectionState
from core.theme import ThemeStore

logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles(theme: str):
    dark = theme == "dark"
    st.markdown(
        f"""
        <style>
        .app-top-bar {{padding: 6px 0 4px;border-bottom: 1px solid {"#334155" if dark else "#e5e7eb"};margin-bottom: 10px;}}
        .app-top-bar .page-title {{font-size: 1.6rem;font-weight: 700;color: {"#38bdf8" if dark else "#0284c7"};}}
        .app-top-bar .subtitle {{color: {"#94a3b8" if dark else "#475569"};font-size: 0.9rem;}}
        .card {{border: 1px solid {"#334155" if dark else "#e5e7eb"};border-radius: 12px;padding: 16px;
               background: {"#1e293b" if dark else "#ffffff"}; margin-bottom: 12px;}}
        .card-title {{font-weight: 600;font-size: 1.0rem;color: {"#38bdf8" if dark else "#0284c7"};margin-bottom: 8px;}}
        .chip-row {{display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}}
        .chip {{background: {"#0f172a" if dark else "#f3f4f6"};border: 1px solid {"#334155" if dark else "#e5e7eb"};
               border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: {"#e2e8f0" if dark else "#374151"};}}
        </style>
        """,
        unsafe_allow_html=True,
    )


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{html.escape(title)}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def format_chip_row(chips: List[Dict[str, str]]) -> str:
    return "".join([f"<span class='chip'>{c['label']}: {html.escape(c['value'])}</span>" for c in chips])


def selection() -> SelectionState:
    if "selection" not in st.session_state:
        st.session_state["selection"] = SelectionState()
    return st.session_state["selection"]


def handle_chart_click(event, param: str, field: str, dimension: str) -> None:
    """Toggle the clicked value once per distinct click."""
    picked = []
    if event:
        points = (event.get("selection") or {}).get(param) or []
        picked = sorted({str(p[field]) for p in points if isinstance(p, dict) and field in p})
    marker = f"_last_{param}"
    if picked and picked != st.session_state.get(marker):
        st.session_state[marker] = picked
        for value in picked:
            selection().toggle(dimension, value)
        st.rerun()
    if not picked:
        st.session_state[marker] = []


def render_chart(chart: alt.Chart, theme: str, key: str, param: str, field: str, dimension: str) -> None:
    event = st.altair_chart(apply_theme(chart, theme), use_container_width=True, on_select="rerun", key=key)
    handle_chart_click(event, param, field, dimension)


# ---------- UI setup ----------
st.set_page_config(page_title="Release Insights Dashboard", layout="wide")

theme_store = ThemeStore()
if "theme" not in st.session_state:
    st.session_state["theme"] = theme_store.load(prefers_dark=st.get_option("theme.base") == "dark")
theme: str = st.session_state["theme"]
inject_base_styles(theme)

try:
    data_ctx = load_dashboard_data()
except DataLoadError as exc:
    logger.exception("release data load failed")
    st.error(f"Error: {exc}")
    st.stop()

state = selection()

# ----- Sidebar: theme + filters -----
with st.sidebar:
    st.markdown("### Appearance")
    chosen = st.radio("Theme", ["light", "dark"], index=0 if theme == "light" else 1, horizontal=True)
    if chosen != theme:
        theme_store.save(chosen)
        st.session_state["theme"] = chosen
        st.rerun()

    st.markdown("---")
    st.markdown("### Filters")
    sidebar_dims = [
        ("repo", "Repository", data_ctx.get("repos", []), "selected_repos"),
        ("package", "Package", data_ctx.get("packages", []), "selected_packages"),
        ("author", "Author", data_ctx.get("authors", []), "selected_authors"),
        ("change_type", "Change type", [ct.value for ct in ChangeType], "selected_change_types"),
        ("month", "Month", data_ctx.get("months", []), "selected_months"),
    ]
    for dimension, label, options, attr in sidebar_dims:
        current = sorted(getattr(state.filters, attr))
        options = sorted(set(options) | set(current))
        picked = st.multiselect(label, options=options, default=current)
        if sorted(picked) != current:
            state.replace(dimension, picked)
            st.rerun()

    st.markdown("---")
    if st.button("Clear all filters", disabled=not state.filters.any_active):
        state.clear()
        st.rerun()
    if st.button("Reload data"):
        reload_dashboard_data()
        st.rerun()

ctx = prepare_context(state.filters, data_ctx)
overview = compute_overview(state.filters, ctx, theme=theme)

# ----- Header + KPIs -----
st.markdown(
    "<div class='app-top-bar'><div class='page-title'>Release Insights Dashboard</div>"
    "<div class='subtitle'>GitHub release data analysis and visualization</div></div>",
    unsafe_allow_html=True,
)

kpi_cols = st.columns(4)
for col, kpi in zip(kpi_cols, overview["kpis"]):
    col.metric(kpi["title"], f"{kpi['value']:,}" if isinstance(kpi["value"], int) else kpi["value"])

# ----- Charts -----
row1 = st.columns(2)
with row1[0]:
    with card("Release stability"):
        if overview["stability"]:
            render_chart(stability_chart(overview["stability"]), theme, "chart_stability", PICK_STABILITY, "name", "change_type")
        else:
            st.info("No releases match the current filters.")
with row1[1]:
    with card("Monthly release frequency"):
        if overview["monthly_frequency"]:
            render_chart(monthly_frequency_chart(overview["monthly_frequency"]), theme, "chart_monthly", PICK_MONTH, "date", "month")
        else:
            st.info("No dated releases match the current filters.")

row2 = st.columns(2)
with row2[0]:
    with card("Changes by type"):
        if overview["change_types"]:
            render_chart(change_type_chart(overview["change_types"]), theme, "chart_change_types", PICK_CHANGE_TYPE, "name", "change_type")
        else:
            st.info("No recorded changes for the current filters.")
with row2[1]:
    with card("Average working days by repository"):
        if overview["repo_working_days"]:
            render_chart(repo_working_days_chart(overview["repo_working_days"]), theme, "chart_repos", PICK_REPO, "name", "repo")
        else:
            st.info("No releases with working days recorded.")

# ----- Active filters + table -----
table = compute_release_table(state.filters, ctx, page=state.page, page_size=ITEMS_PER_PAGE)
if table["chips"]:
    with card("Active filters"):
        st.markdown(f"<div class='chip-row'>{format_chip_row(table['chips'])}</div>", unsafe_allow_html=True)
        if st.button("Clear all filters", key="clear_inline"):
            state.clear()
            st.rerun()

with card("Release details"):
    header_cols = st.columns([6, 2])
    header_cols[0].caption(f"{table['total_rows']:,} releases")
    export_df: Optional[pd.DataFrame] = ctx.get("filtered_releases")
    if export_df is not None and not export_df.empty:
        header_cols[1].download_button(
            "Export CSV",
            data=serialize_release_csv(export_df[RAW_COLUMNS].to_dict(orient="records")).encode("utf-8"),
            file_name="releases.csv",
            mime="text/csv",
        )

    display = pd.DataFrame(table["rows"])
    if display.empty:
        st.info("No releases match the current filters.")
    else:
        display = display.rename(
            columns={
                "repo_name": "Repository",
                "package": "Package",
                "version": "Version",
                "published_date": "Published",
                "working_days": "Working days",
                "author": "Author",
            }
        )
        picked_rows = st.dataframe(
            display.drop(columns=["id"]),
            use_container_width=True,
            hide_index=True,
            on_select="rerun",
            selection_mode="single-row",
            key=state.table_key(),
        )
        selected = (picked_rows.get("selection") or {}).get("rows") or [] if picked_rows else []
        if selected and 0 <= selected[0] < len(table["rows"]):
            row = table["rows"][selected[0]]
            action_cols = st.columns(2)
            if action_cols[0].button(f"Toggle repository: {row['repo_name']}"):
                state.toggle("repo", row["repo_name"])
                st.rerun()
            if action_cols[1].button(f"Toggle author: {row['author']}"):
                state.toggle("author", row["author"])
                st.rerun()

    if table["total_pages"] > 1:
        nav = st.columns([1, 2, 1])
        if nav[0].button("Previous", disabled=table["page"] <= 1):
            state.set_page(table["page"] - 1, table["total_pages"])
            st.rerun()
        nav[1].markdown(f"Page {table['page']} of {table['total_pages']}")
        if nav[2].button("Next", disabled=table["page"] >= table["total_pages"]):
            state.set_page(table["page"] + 1, table["total_pages"])
            st.rerun()
