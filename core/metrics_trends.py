from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.catalog import BASELINE_GROUP
from core.charts import trend_line_chart
from core.data import build_trend_table
from core.filters import ViewFilters


def compute_trends(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("rows", pd.DataFrame())
    years = list(filters.years)
    records = build_trend_table(rows, years, filters.trend_groups)
    series = list(dict.fromkeys([BASELINE_GROUP] + list(filters.trend_groups)))

    charts: Dict[str, Any] = {}
    if filters.include_charts:
        charts["trend"] = trend_line_chart(records, series)

    title_range = f" ({years[0]} to {years[-1]})" if years else ""
    return {
        "filters": asdict(filters),
        "title": f"Discipline Rate Trends by Category{title_range}",
        "years": years,
        "series": series,
        "records": records,
        "charts": charts,
        "note": f'The dashed black line represents the "{BASELINE_GROUP}" baseline for comparison.',
    }
