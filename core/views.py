from __future__ import annotations

from dataclasses import replace
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from core.data import file_signature, get_source_file, has_data, load_dashboard_data, prepare_context
from core.filters import VIEW_MODES, ViewFilters, normalize_filters
from core.metrics_disparities import compute_disparities
from core.metrics_overview import compute_overview
from core.metrics_summary import compute_summary
from core.metrics_trends import compute_trends


def build_view_model(filters: dict | ViewFilters, data_ctx: Dict[str, object]) -> Dict[str, Any]:
    """Compute every view from a single prepared context.

    The result is rebuilt from scratch on each call and never updated in place;
    switching modes is a lookup with :func:`select_view`.
    """
    ctx = prepare_context(filters, data_ctx)
    f: ViewFilters = ctx["filters"]
    return {
        "overview": compute_overview(f, ctx),
        "trends": compute_trends(f, ctx),
        "disparities": compute_disparities(f, ctx),
        "summary": compute_summary(f, ctx),
    }


def select_view(mode: str, view_model: Dict[str, Any]) -> Dict[str, Any]:
    if mode not in VIEW_MODES:
        raise ValueError(f"Unknown view mode {mode!r}; expected one of {', '.join(VIEW_MODES)}")
    return view_model[mode]


@lru_cache(maxsize=8)
def _load_view_model_cached(files_sig: Tuple[str, float, int], filters: ViewFilters) -> Dict[str, Any]:
    return build_view_model(filters, load_dashboard_data())


def load_view_model(filters: Optional[dict | ViewFilters] = None) -> Optional[Dict[str, Any]]:
    """Cached view model for the current source file, or None in the no-data state."""
    data_ctx = load_dashboard_data()
    if not has_data(data_ctx):
        return None
    f = filters if isinstance(filters, ViewFilters) else normalize_filters(filters, available_years=data_ctx.get("years"))
    # Mode is a display choice only; every mode shares one cached model.
    f = replace(f, mode="overview")
    try:
        sig = file_signature(get_source_file())
    except OSError:
        return build_view_model(f, data_ctx)
    return _load_view_model_cached(sig, f)
