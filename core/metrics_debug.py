from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.catalog import BASELINE_GROUP, known_groups
from core.filters import ViewFilters


def compute_debug(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    rows: pd.DataFrame = ctx.get("rows", pd.DataFrame()).copy()
    years_present = list(ctx.get("years_present", []) or [])
    payload = {
        "filters": asdict(filters),
        "source": ctx.get("source"),
        "row_counts": {
            "rows": int(len(rows)),
            "missing_percent_rows": 0,
            "missing_group_rows": 0,
            "missing_year_rows": 0,
            "out_of_range_rows": int(ctx.get("dq_out_of_range", 0) or 0),
        },
        "years_present": years_present,
        "years_missing": [y for y in filters.years if y not in years_present],
        "unrecognized_groups": [],
        "has_baseline_row": False,
        "year_coverage": [],
    }
    if rows.empty:
        return payload

    payload["row_counts"]["missing_percent_rows"] = int(rows["percent"].isna().sum())
    payload["row_counts"]["missing_group_rows"] = int(rows["student_group"].isna().sum())
    payload["row_counts"]["missing_year_rows"] = int(rows["year"].isna().sum())

    known = set(known_groups())
    groups = rows["student_group"].dropna().astype(str)
    payload["unrecognized_groups"] = sorted(set(groups) - known)

    baseline_rows = rows[(rows["year"] == filters.target_year) & (rows["student_group"] == BASELINE_GROUP)]
    payload["has_baseline_row"] = bool(baseline_rows["percent"].notna().any())

    coverage = (
        rows.dropna(subset=["year"])
        .groupby("year")
        .agg(rows=("student_group", "size"), groups=("student_group", "nunique"))
        .reset_index()
    )
    order = {y: i for i, y in enumerate(years_present)}
    coverage = coverage.assign(_order=coverage["year"].map(order)).sort_values("_order").drop(columns="_order")
    payload["year_coverage"] = [
        {"year": str(r.year), "rows": int(r.rows), "groups": int(r.groups)} for r in coverage.itertuples(index=False)
    ]
    return payload
