from __future__ import annotations

import json

import pytest

from core.data import parse_rows, prepare_context
from core.filters import VIEW_MODES, ViewFilters, normalize_filters
from core.metrics_debug import compute_debug
from core.views import build_view_model, load_view_model, select_view


NO_CHARTS = {"include_charts": False}


def test_view_model_has_every_view(data_ctx):
    view_model = build_view_model(NO_CHARTS, data_ctx)
    assert set(view_model) == {"overview", "trends", "disparities", "summary"}
    for mode in VIEW_MODES:
        assert select_view(mode, view_model) is view_model[mode]


def test_select_view_rejects_unknown_mode(data_ctx):
    view_model = build_view_model(NO_CHARTS, data_ctx)
    with pytest.raises(ValueError):
        select_view("heatmap", view_model)


def test_view_model_is_idempotent(data_ctx):
    first = json.dumps(build_view_model(NO_CHARTS, data_ctx))
    second = json.dumps(build_view_model(NO_CHARTS, data_ctx))
    assert first == second


def test_overview_and_disparities_share_baseline(data_ctx):
    view_model = build_view_model(NO_CHARTS, data_ctx)
    overview = view_model["overview"]
    disparities = view_model["disparities"]
    assert overview["baseline"]["percent"] == pytest.approx(3.45)
    assert disparities["baseline"]["percent"] == overview["baseline"]["percent"]
    assert overview["baseline"]["label"] == "All Students Baseline (2023-24): 3.45%"

    for snap_cat, disp_cat in zip(overview["categories"], disparities["categories"]):
        assert [e["group"] for e in snap_cat["entries"]] == [e["group"] for e in disp_cat["entries"]]


def test_overview_categories_in_catalog_order(data_ctx):
    overview = build_view_model(NO_CHARTS, data_ctx)["overview"]
    assert [c["key"] for c in overview["categories"]] == ["program_status", "gender", "race_ethnicity"]
    program = overview["categories"][0]["entries"]
    assert [e["group"] for e in program] == ["Students w/disabilities", "Low income", "High needs", "English Learner"]
    assert overview["charts"] == {}


def test_trends_view(data_ctx):
    trends = build_view_model(NO_CHARTS, data_ctx)["trends"]
    assert trends["years"] == ["2021-22", "2022-23", "2023-24"]
    assert len(trends["records"]) == 3
    assert trends["series"][0] == "All Students"
    assert trends["title"] == "Discipline Rate Trends by Category (2021-22 to 2023-24)"


def test_charts_are_vega_lite_specs(data_ctx):
    view_model = build_view_model({}, data_ctx)
    assert set(view_model["overview"]["charts"]) == {"program_status", "gender", "race_ethnicity"}
    assert set(view_model["disparities"]["charts"]) == {"program_status", "gender", "race_ethnicity"}
    spec = view_model["trends"]["charts"]["trend"]
    assert "vega-lite" in spec["$schema"]
    json.dumps(view_model)


def test_summary_findings(data_ctx):
    summary = build_view_model(NO_CHARTS, data_ctx)["summary"]
    sections = {s["key"]: s for s in summary["sections"]}

    program = sections["program_status"]
    assert program["findings"][0] == "Students w/disabilities: 6.19% (+2.74 pp)"
    assert program["highest"]["group"] == "Students w/disabilities"
    assert program["lowest"]["group"] == "English Learner"

    gender = sections["gender"]
    assert gender["findings"][-1] == "Gender ratio: Males disciplined at 1.8x the rate of females"
    assert "Female: 2.43% (-1.02 pp)" in gender["findings"]

    race = sections["race_ethnicity"]
    assert race["findings"][-1] == (
        "Largest disparity: 7.2x difference between highest (Afr. Amer./Black) and lowest (Asian) groups"
    )


def test_summary_without_data():
    ctx = {"files": [], "years": [], "rows": parse_rows("Year,Student Group, Percent of Students Disciplined\n"), "error": None}
    summary = build_view_model(NO_CHARTS, ctx)["summary"]
    for section in summary["sections"]:
        assert section["findings"] == []
        assert section["highest"] is None
        assert section["ratio"] is None


def test_percent_range_check_is_opt_in():
    csv = (
        "Year,Student Group, Percent of Students Disciplined\n"
        "2023-24,All Students,3.0\n"
        "2023-24,Male,150\n"
        "2023-24,Female,2.0\n"
    )
    ctx = {"files": [], "years": ["2023-24"], "rows": parse_rows(csv), "error": None}

    permissive = prepare_context({}, ctx)
    assert [e["group"] for e in permissive["snapshots"]["gender"]] == ["Male", "Female"]
    assert permissive["dq_out_of_range"] == 1

    strict = prepare_context({"enforce_percent_range": True}, ctx)
    assert [e["group"] for e in strict["snapshots"]["gender"]] == ["Female"]
    # The caller's rows are not modified.
    assert ctx["rows"]["percent"].max() == 150


def test_normalize_filters_defaults_and_clamping():
    f = normalize_filters({"mode": "HEATMAP", "trend_groups": ["Low Income", "Male", "Male"]})
    assert f.mode == "overview"
    assert f.target_year == "2023-24"
    assert f.trend_groups == ("Low income", "Male")
    assert normalize_filters(None) == ViewFilters()
    assert normalize_filters({"years": ["2021-22", "2022-23"]}).target_year == "2022-23"


def test_debug_report(data_ctx):
    f = normalize_filters({})
    report = compute_debug(f, prepare_context(f, data_ctx))
    assert report["row_counts"]["rows"] == 24
    assert report["row_counts"]["missing_percent_rows"] == 1
    assert report["unrecognized_groups"] == ["Unknown Group"]
    assert report["has_baseline_row"] is True
    assert report["years_missing"] == []
    assert [c["year"] for c in report["year_coverage"]] == ["2021-22", "2022-23", "2023-24"]


def test_load_view_model_is_shared_across_modes(data_file):
    first = load_view_model({"mode": "trends", "include_charts": False})
    second = load_view_model({"mode": "disparities", "include_charts": False})
    assert first is not None
    assert first is second


def test_load_view_model_no_data(missing_data_file):
    assert load_view_model() is None
