from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from core.catalog import BASELINE_GROUP, CATEGORIES, CATEGORY_TITLES
from core.charts import snapshot_bar_chart
from core.data import format_percent
from core.filters import ViewFilters


def compute_overview(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    snapshots: Dict[str, Any] = ctx.get("snapshots", {}) or {}
    baseline = float(ctx.get("baseline", 0.0) or 0.0)
    target_year = ctx.get("target_year", filters.target_year)

    categories = []
    charts: Dict[str, Any] = {}
    for key in CATEGORIES:
        entries = snapshots.get(key, [])
        categories.append({"key": key, "title": CATEGORY_TITLES[key], "entries": entries})
        if filters.include_charts:
            charts[key] = snapshot_bar_chart(entries, key)

    return {
        "filters": asdict(filters),
        "snapshot": {"year": target_year},
        "baseline": {
            "group": BASELINE_GROUP,
            "percent": baseline,
            "label": f"{BASELINE_GROUP} Baseline ({target_year}): {format_percent(baseline)}",
        },
        "categories": categories,
        "charts": charts,
    }
