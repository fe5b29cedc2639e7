from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from core.catalog import BASELINE_GROUP, CATEGORIES, CATEGORY_TITLES
from core.charts import disparity_bar_chart
from core.data import apply_disparity, format_percent
from core.filters import ViewFilters


def compute_disparities(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    snapshots: Dict[str, Any] = ctx.get("snapshots", {}) or {}
    # Same baseline the overview reports; resolved once in prepare_context.
    baseline = float(ctx.get("baseline", 0.0) or 0.0)
    target_year = ctx.get("target_year", filters.target_year)

    categories = []
    charts: Dict[str, Any] = {}
    for key in CATEGORIES:
        entries = apply_disparity(snapshots.get(key, []), baseline)
        categories.append({"key": key, "title": CATEGORY_TITLES[key].replace("Groups", "Group Disparities"), "entries": entries})
        if filters.include_charts:
            charts[key] = disparity_bar_chart(entries, key)

    return {
        "filters": asdict(filters),
        "snapshot": {"year": target_year},
        "baseline": {
            "group": BASELINE_GROUP,
            "percent": baseline,
            "label": f"{BASELINE_GROUP} Baseline ({target_year}): {format_percent(baseline)}",
        },
        "note": "Positive values indicate higher discipline rates than average",
        "categories": categories,
        "charts": charts,
    }
