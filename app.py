import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Any, Dict, Optional

from core.catalog import CATEGORIES, YEAR_ORDER
from core.data import get_source_file, has_data, load_dashboard_data
from core.filters import VIEW_MODES, normalize_filters
from core.views import load_view_model, select_view

MODE_LABELS = {
    "overview": "Overview by Category",
    "trends": "Trends Over Time",
    "disparities": "Disparities Analysis",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.1rem;color: #111827;margin-bottom: 8px;}
        .baseline {background: #eff6ff;border-radius: 8px;padding: 12px 16px;margin-bottom: 12px;}
        .baseline .label {font-size: 0.9rem;font-weight: 600;}
        .baseline .note {font-size: 0.8rem;color: #4b5563;margin-top: 4px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_baseline(baseline: Dict[str, Any], note: Optional[str] = None):
    note_html = f"<div class='note'>{note}</div>" if note else ""
    st.markdown(
        f"<div class='baseline'><div class='label'>{baseline['label']}</div>{note_html}</div>",
        unsafe_allow_html=True,
    )


def render_chart(spec: Optional[Dict[str, Any]], empty_message: str = "No data for this view."):
    if not spec:
        st.info(empty_message)
        return
    st.vega_lite_chart(spec, use_container_width=True)


# ----- Page renderers -----

def render_overview_page(view: Dict[str, Any]):
    render_baseline(view["baseline"])
    for cat in view["categories"]:
        with card(cat["title"]):
            if not cat["entries"]:
                st.info(f"No {view['snapshot']['year']} rows for this category.")
                continue
            render_chart(view["charts"].get(cat["key"]))


def render_trends_page(view: Dict[str, Any]):
    with card(view["title"]):
        render_chart(view["charts"].get("trend"))
        st.caption(f"Note: {view['note']}")


def render_disparities_page(view: Dict[str, Any]):
    render_baseline(view["baseline"], view["note"])
    for cat in view["categories"]:
        with card(cat["title"]):
            if not cat["entries"]:
                st.info(f"No {view['snapshot']['year']} rows for this category.")
                continue
            render_chart(view["charts"].get(cat["key"]))
            table = pd.DataFrame(cat["entries"]).rename(
                columns={"group": "Student Group", "percent": "Percent", "disparity": "pp vs. baseline"}
            )
            st.dataframe(table, hide_index=True, use_container_width=True)


def render_summary(summary: Dict[str, Any]):
    with card("Summary of Key Findings by Category"):
        for section in summary["sections"]:
            st.markdown(f"**{section['title']}**")
            if not section["findings"]:
                st.caption("No data.")
                continue
            st.markdown("\n".join(f"- {line}" for line in section["findings"]))


# ---------- UI setup ----------
st.set_page_config(page_title="Student Discipline Data Analysis", layout="wide")
inject_base_styles()
st.title("Student Discipline Data Analysis")
st.caption("Analysis of discipline percentages across student groups and years")

data_ctx = load_dashboard_data()
if not has_data(data_ctx):
    st.error(
        f"Could not load discipline data from {get_source_file().name}. "
        f"{data_ctx.get('error') or 'The file has no rows.'}"
    )
    st.stop()

with st.sidebar:
    st.markdown("### View")
    mode = st.radio("View", list(VIEW_MODES), format_func=MODE_LABELS.get, index=0, label_visibility="collapsed")
    st.markdown("---")
    with st.expander("Advanced settings", expanded=False):
        data_years = list(data_ctx.get("years", []))
        year_options = list(dict.fromkeys(list(YEAR_ORDER) + data_years))
        present = [y for y in YEAR_ORDER if y in data_years]
        default_year = present[-1] if present else YEAR_ORDER[-1]
        target_year = st.selectbox("Snapshot year", year_options, index=year_options.index(default_year))
        enforce_range = st.checkbox("Treat percents outside 0-100 as missing", value=False)

filters = normalize_filters(
    {"target_year": target_year, "enforce_percent_range": enforce_range},
    available_years=data_ctx.get("years"),
)
view_model = load_view_model(filters)
if view_model is None:
    st.error("No discipline data available.")
    st.stop()

view = select_view(mode, view_model)
if mode == "overview":
    render_overview_page(view)
elif mode == "trends":
    render_trends_page(view)
else:
    render_disparities_page(view)

render_summary(view_model["summary"])
st.caption(f"Source: {', '.join(data_ctx.get('files', []))} | Categories: {len(CATEGORIES)}")
