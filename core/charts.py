from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

from core.catalog import (
    BASELINE_GROUP,
    CATEGORY_COLORS,
    DISPARITY_DOMAINS,
    NEGATIVE_DISPARITY_COLOR,
    OVERVIEW_DOMAINS,
    POSITIVE_DISPARITY_COLOR,
    TREND_COLORS,
    TREND_DOMAIN,
)

alt.data_transformers.disable_max_rows()

_LABEL_ANGLES = {"program_status": -20, "gender": 0, "race_ethnicity": -45}


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _group_axis(category: str) -> alt.X:
    return alt.X(
        "group:N",
        title=None,
        sort=None,
        axis=alt.Axis(labelAngle=_LABEL_ANGLES.get(category, 0), labelLimit=200),
    )


def snapshot_bar_chart(entries: List[Dict[str, object]], category: str) -> Dict[str, Any]:
    df = pd.DataFrame(entries, columns=["group", "percent"])
    base = alt.Chart(df).encode(x=_group_axis(category))
    bars = base.mark_bar(color=CATEGORY_COLORS.get(category, "#3B82F6")).encode(
        y=alt.Y(
            "percent:Q",
            title="Percent Disciplined",
            scale=alt.Scale(domain=list(OVERVIEW_DOMAINS.get(category, (0, 10)))),
        ),
        tooltip=["group:N", alt.Tooltip("percent:Q", title="Percent", format=".2f")],
    )
    labels = base.mark_text(dy=-8, fontSize=11).encode(
        y="percent:Q",
        text=alt.Text("percent:Q", format=".1f"),
    )
    return to_vega_spec((bars + labels).properties(height=300))


def disparity_bar_chart(entries: List[Dict[str, object]], category: str) -> Dict[str, Any]:
    df = pd.DataFrame(entries, columns=["group", "percent", "disparity"])
    base = alt.Chart(df).encode(x=_group_axis(category))
    bars = base.mark_bar().encode(
        y=alt.Y(
            "disparity:Q",
            title="Percentage Point Difference",
            scale=alt.Scale(domain=list(DISPARITY_DOMAINS.get(category, (-3, 3)))),
        ),
        color=alt.condition(
            alt.datum.disparity > 0,
            alt.value(POSITIVE_DISPARITY_COLOR),
            alt.value(NEGATIVE_DISPARITY_COLOR),
        ),
        tooltip=[
            "group:N",
            alt.Tooltip("percent:Q", title="Percent", format=".2f"),
            alt.Tooltip("disparity:Q", title="pp vs. All Students", format="+.2f"),
        ],
    )
    labels = base.mark_text(dy=-8, fontSize=10).encode(
        y="disparity:Q",
        text=alt.Text("disparity:Q", format="+.1f"),
    )
    return to_vega_spec((bars + labels).properties(height=300))


def trend_line_chart(records: List[Dict[str, object]], groups: Sequence[str]) -> Dict[str, Any]:
    """Multi-line chart of the trend table; the baseline is drawn dashed."""
    long_rows = []
    for order, record in enumerate(records):
        for group in groups:
            if group in record:
                long_rows.append({"year": record["year"], "order": order, "group": group, "percent": record[group]})
    long_df = pd.DataFrame(long_rows, columns=["year", "order", "group", "percent"])
    year_labels = [r["year"] for r in records]

    color_domain = [g for g in groups if g in TREND_COLORS] + [g for g in groups if g not in TREND_COLORS]
    color_range = [TREND_COLORS.get(g, "#6B7280") for g in color_domain]

    line = (
        alt.Chart(long_df)
        .mark_line(point={"filled": True})
        .encode(
            x=alt.X("year:N", title=None, sort=year_labels, axis=alt.Axis(labelAngle=0)),
            y=alt.Y("percent:Q", title="Percent Disciplined", scale=alt.Scale(domain=list(TREND_DOMAIN))),
            color=alt.Color("group:N", title="Student Group", scale=alt.Scale(domain=color_domain, range=color_range)),
            strokeDash=alt.condition(
                alt.datum.group == BASELINE_GROUP,
                alt.value([5, 5]),
                alt.value([1, 0]),
            ),
            strokeWidth=alt.condition(
                alt.datum.group == BASELINE_GROUP,
                alt.value(3),
                alt.value(2),
            ),
            tooltip=["group:N", "year:N", alt.Tooltip("percent:Q", title="Percent", format=".2f")],
        )
        .properties(height=500)
    )
    return to_vega_spec(line)
