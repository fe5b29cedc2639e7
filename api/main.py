from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import CategoryGroups, MetaGroupsResponse, MetaYearsResponse, ViewFiltersModel
from core.catalog import BASELINE_GROUP, CATEGORIES, CATEGORY_TITLES, TREND_GROUPS, YEAR_ORDER
from core.data import has_data, load_dashboard_data, prepare_context
from core.filters import ViewFilters, normalize_filters
from core.metrics_debug import compute_debug
from core.views import load_view_model, select_view


app = FastAPI(title="Discipline Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: ViewFiltersModel, *, available_years: list[str]) -> ViewFilters:
    raw = model.model_dump()
    return normalize_filters(raw, available_years=available_years)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _no_data(data_ctx: dict) -> JSONResponse:
    error = data_ctx.get("error") or "No discipline rows found in the source file."
    return JSONResponse(status_code=503, content={"error": error, "state": "no_data"})


def _error(name: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _view(mode: str, filters: ViewFiltersModel) -> JSONResponse:
    data_ctx = load_dashboard_data()
    if not has_data(data_ctx):
        return _no_data(data_ctx)
    f = _filters_from_model(filters, available_years=data_ctx.get("years", []))
    view_model = load_view_model(f)
    if view_model is None:
        return _no_data(data_ctx)
    payload = view_model["summary"] if mode == "summary" else select_view(mode, view_model)
    return _json(payload)


@app.get("/meta/years")
def meta_years():
    try:
        data_ctx = load_dashboard_data()
        years = [str(y) for y in (data_ctx.get("years", []) or [])]
        return _json(MetaYearsResponse(years=years, configured_years=list(YEAR_ORDER)).model_dump())
    except Exception as exc:
        return _error("meta_years", exc)


@app.get("/meta/groups")
def meta_groups():
    categories = [CategoryGroups(key=k, title=CATEGORY_TITLES[k], groups=list(g)) for k, g in CATEGORIES.items()]
    payload = MetaGroupsResponse(baseline=BASELINE_GROUP, categories=categories, trend_groups=list(TREND_GROUPS))
    return _json(payload.model_dump())


@app.post("/overview")
def overview(filters: ViewFiltersModel):
    try:
        return _view("overview", filters)
    except Exception as exc:
        return _error("overview", exc)


@app.post("/trends")
def trends(filters: ViewFiltersModel):
    try:
        return _view("trends", filters)
    except Exception as exc:
        return _error("trends", exc)


@app.post("/disparities")
def disparities(filters: ViewFiltersModel):
    try:
        return _view("disparities", filters)
    except Exception as exc:
        return _error("disparities", exc)


@app.post("/summary")
def summary(filters: ViewFiltersModel):
    try:
        return _view("summary", filters)
    except Exception as exc:
        return _error("summary", exc)


@app.post("/view/{mode}")
def view(mode: Literal["overview", "trends", "disparities"], filters: ViewFiltersModel):
    try:
        return _view(mode, filters)
    except Exception as exc:
        return _error("view", exc)


@app.post("/debug")
def debug(filters: ViewFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, available_years=data_ctx.get("years", []))
        ctx = prepare_context(f, data_ctx)
        payload = compute_debug(f, ctx)
        payload["error"] = data_ctx.get("error")
        return _json(payload)
    except Exception as exc:
        return _error("debug", exc)


def _flatten_categories(payload: dict) -> pd.DataFrame:
    out = []
    for cat in payload.get("categories", []):
        for entry in cat.get("entries", []):
            out.append({"category": cat["key"], **entry})
    return pd.DataFrame(out)


@app.post("/export/{page}")
def export_page(page: str, filters: ViewFiltersModel):
    data_ctx = load_dashboard_data()
    if not has_data(data_ctx):
        return _no_data(data_ctx)
    f = _filters_from_model(filters, available_years=data_ctx.get("years", []))
    view_model = load_view_model(f)

    filename = f"{page}.csv"
    if page == "rows":
        export_df = data_ctx.get("rows")
    elif page in {"overview", "disparities"}:
        export_df = _flatten_categories(view_model[page])
    elif page == "trends":
        trend = view_model["trends"]
        export_df = pd.DataFrame(trend["records"], columns=["year"] + trend["series"])
        export_df["year"] = export_df["year"].str.replace("\n", "", regex=False)
    else:
        export_df = pd.DataFrame()

    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
