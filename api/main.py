from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from api.schemas import DashboardFiltersModel, MetaOptionsResponse, SelectionResponse, SelectionToggleRequest
from core.data import ENRICHED_COLUMNS, RAW_COLUMNS, load_dashboard_data, prepare_context, serialize_release_csv
from core.filters import ChangeType, DashboardFilters, normalize_filters
from core.metrics_debug import compute_debug
from core.metrics_overview import compute_overview
from core.metrics_releases import compute_release_table, format_filter_chips
from core.selection import ITEMS_PER_PAGE, toggle_value


app = FastAPI(title="Release Insights API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel) -> DashboardFilters:
    return normalize_filters(model.model_dump())


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NaT): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


@app.get("/")
def dashboard(theme: Literal["light", "dark"] = Query(default="light")):
    try:
        data_ctx = load_dashboard_data()
        f = DashboardFilters()
        ctx = prepare_context(f, data_ctx)
        return _json(compute_overview(f, ctx, theme=theme))
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.get("/meta/options")
def meta_options():
    try:
        data_ctx = load_dashboard_data()
        options = MetaOptionsResponse(
            repos=data_ctx.get("repos", []),
            packages=data_ctx.get("packages", []),
            authors=data_ctx.get("authors", []),
            months=data_ctx.get("months", []),
            change_types=[ct.value for ct in ChangeType],
        )
        return _json(options.model_dump())
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.post("/overview")
def overview(filters: DashboardFiltersModel, theme: Literal["light", "dark"] = Query(default="light")):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_overview(f, ctx, theme=theme))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/releases")
def releases(
    filters: DashboardFiltersModel,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=ITEMS_PER_PAGE, ge=1, le=200),
):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_release_table(f, ctx, page=page, page_size=page_size))
    except Exception as exc:
        logger.exception("releases failed")
        return _error(exc)


@app.post("/selection/toggle")
def selection_toggle(request: SelectionToggleRequest):
    try:
        f = toggle_value(_filters_from_model(request.filters), request.dimension, request.value)
    except ValueError as exc:
        return _error(exc, status_code=400)
    return _json(SelectionResponse(filters=f.as_dict(), page=1, chips=format_filter_chips(f)).model_dump())


@app.post("/selection/clear")
def selection_clear():
    return _json(SelectionResponse(filters=DashboardFilters().as_dict(), page=1).model_dump())


@app.post("/debug")
def debug(filters: DashboardFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_debug(f, ctx))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@app.post("/export/releases")
def export_releases(filters: DashboardFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
    except Exception as exc:
        logger.exception("export_releases failed")
        return _error(exc)

    export_df = ctx.get("filtered_releases")
    if export_df is None or export_df.empty:
        export_df = pd.DataFrame(columns=ENRICHED_COLUMNS)
    csv_text = serialize_release_csv(export_df[RAW_COLUMNS].to_dict(orient="records"))
    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=releases.csv"},
    )


@app.api_route("/{full_path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def not_found(full_path: str):
    return JSONResponse(status_code=404, content={"error": "Not Found", "path": f"/{full_path}"})
