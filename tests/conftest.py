from __future__ import annotations

import pytest

from core.data import DATA_FILE_ENV, _load_dashboard_data_cached, parse_rows
from core.views import _load_view_model_cached

# Rows deliberately out of chronological order; 2023-24 has both spellings of
# "Low income", an unrecognized group, and one malformed percent in 2022-23.
SAMPLE_CSV = """Year,Student Group, Percent of Students Disciplined,Students Disciplined
2023-24,All Students,3.45,1350
2021-22,All Students,3.10,1200
2021-22,Male,4.00,800
2021-22,Female,2.10,400
2021-22,Low Income,5.00,600
2021-22,Afr. Amer./Black,5.50,200

2022-23,All Students,3.30,1300
2022-23,Male,4.20,850
2022-23,Female,2.30,450
2022-23,Students w/disabilities,6.00,300
2022-23,Low income,5.20,610
2022-23,English Learner,n/a,10
,,,
2023-24,Students w/disabilities,6.19,320
2023-24,Low Income,5.63,640
2023-24,Low income,5.50,630
2023-24,High needs,5.02,700
2023-24,English Learner,3.73,150
2023-24,Female,2.43,460
2023-24,Male,4.44,900
2023-24,Afr. Amer./Black,6.14,210
2023-24,Hispanic/Latino,5.19,300
2023-24,White,2.39,500
2023-24,Asian,0.85,20
2023-24,Unknown Group,1.00,5
"""

SAMPLE_ROW_COUNT = 24


@pytest.fixture(autouse=True)
def _clear_caches():
    _load_dashboard_data_cached.cache_clear()
    _load_view_model_cached.cache_clear()
    yield
    _load_dashboard_data_cached.cache_clear()
    _load_view_model_cached.cache_clear()


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def rows(sample_csv):
    return parse_rows(sample_csv)


@pytest.fixture
def data_ctx(rows):
    return {"files": ["sample.csv"], "source": "sample.csv", "years": ["2021-22", "2022-23", "2023-24"], "rows": rows, "error": None}


@pytest.fixture
def data_file(tmp_path, monkeypatch, sample_csv):
    path = tmp_path / "discipline.csv"
    path.write_text(sample_csv, encoding="utf-8")
    monkeypatch.setenv(DATA_FILE_ENV, str(path))
    return path


@pytest.fixture
def missing_data_file(tmp_path, monkeypatch):
    path = tmp_path / "does-not-exist.csv"
    monkeypatch.setenv(DATA_FILE_ENV, str(path))
    return path
