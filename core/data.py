from __future__ import annotations

import io
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

import numpy as np
import pandas as pd

from core.catalog import BASELINE_GROUP, CATEGORIES, YEAR_ORDER, normalize_group
from core.filters import ViewFilters, normalize_filters

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATA_FILE_NAME = "Updated_DESEMA_Discipline_Calculations.csv"
DATA_FILE_ENV = "DISCIPLINE_DATA_FILE"

# Header names are stripped before mapping (the source carries " Percent of Students Disciplined").
COLUMN_MAP = {
    "Year": "year",
    "School Year": "year",
    "Student Group": "student_group",
    "Percent of Students Disciplined": "percent",
    "% of Students Disciplined": "percent",
}
KEY_COLUMNS = ["year", "student_group", "percent"]
STRING_COLUMNS = ["year", "student_group"]

PERCENT_MIN = 0.0
PERCENT_MAX = 100.0

# Plain decimal literals only: no underscores, "inf" or "nan".
INT_RE = re.compile(r"^-?\d+$")
FLOAT_RE = re.compile(r"^-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?$")


class DataLoadError(RuntimeError):
    """Raised when the discipline CSV cannot be read or parsed."""


def get_source_file() -> Path:
    override = os.environ.get(DATA_FILE_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return DATA_DIR / DATA_FILE_NAME


def file_signature(path: Path) -> Tuple[str, float, int]:
    stat = path.stat()
    return str(path), stat.st_mtime, stat.st_size


def _dynamic_cell(value: object) -> object:
    """Type a single CSV cell: int, float, or the stripped string (None when blank)."""
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    if not s:
        return None
    if INT_RE.match(s):
        return int(s)
    if FLOAT_RE.match(s):
        return float(s)
    return s


def clean_columns(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = [str(c).replace("\ufeff", "").strip() for c in df.columns]
    return df.rename(columns=COLUMN_MAP)


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype(object).map(lambda v: None if pd.isna(v) else str(v).strip())
            df[col] = series.where(series != "", None)
    return df


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    return df


def ensure_key_columns(df: pd.DataFrame) -> pd.DataFrame:
    for col in KEY_COLUMNS:
        if col not in df.columns:
            logger.warning("Discipline data has no %r column; treating it as absent", col)
            df[col] = np.nan if col == "percent" else None
    return df


def parse_rows(source: Union[str, io.TextIOBase]) -> pd.DataFrame:
    """Parse CSV text (or a text buffer) into the normalized row table.

    The first line is the header; blank lines are skipped. ``year`` and
    ``student_group`` stay strings (group labels alias-resolved), ``percent`` is
    numeric with malformed cells left as NaN, and every other column is typed
    per cell.
    """
    text = source if isinstance(source, str) else source.read()
    try:
        header = pd.read_csv(io.StringIO(text), nrows=0, dtype=str)
        n_cols = len(header.columns)
        # Rows wider than the header keep their leading fields.
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            on_bad_lines=lambda bad: bad[:n_cols],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DataLoadError(f"Could not parse discipline data: {exc}") from exc

    df = clean_columns(df)
    df = df.loc[:, ~df.columns.duplicated()]
    df = ensure_key_columns(df)
    df = coerce_str_safe(df, STRING_COLUMNS)
    df = numericize(df, ["percent"])
    df["student_group"] = df["student_group"].map(normalize_group).astype(object)

    for col in df.columns:
        if col not in KEY_COLUMNS:
            df[col] = pd.Series([_dynamic_cell(v) for v in df[col]], index=df.index, dtype=object)

    # Rows where every cell is blank (e.g. ",,,") carry no data.
    blank = df.isna().all(axis=1)
    return df.loc[~blank].reset_index(drop=True)


def read_rows(path: Path) -> pd.DataFrame:
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Could not read {path}: {exc}") from exc
    return parse_rows(text)


def order_years(years: Iterable[object]) -> List[str]:
    """Configured school years first (chronological), then any others sorted."""
    present = {str(y) for y in years if y is not None and not pd.isna(y)}
    known = [y for y in YEAR_ORDER if y in present]
    extra = sorted(present - set(YEAR_ORDER))
    return known + extra


def format_percent(value: object, decimals: int = 2) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.{decimals}f}%"


def format_pp(value: object, decimals: int = 2) -> str:
    """Signed percentage-point difference, e.g. ``+2.74 pp``."""
    if value is None or pd.isna(value):
        return "N/A"
    v = float(value)
    sign = "+" if v > 0 else ""
    return f"{sign}{v:.{decimals}f} pp"


def format_year_label(year: str) -> str:
    """Display form of a school year: ``2021-22`` -> ``2021-\\n22``."""
    return str(year).replace("-", "-\n", 1)


def _valid_rows(rows: pd.DataFrame) -> pd.DataFrame:
    if rows.empty or not set(KEY_COLUMNS).issubset(rows.columns):
        return pd.DataFrame(columns=KEY_COLUMNS)
    return rows.dropna(subset=["percent"])


def extract_snapshot(rows: pd.DataFrame, year: str, groups: Iterable[str]) -> List[Dict[str, object]]:
    """Latest-year entries for one group catalog, highest percent first.

    Groups with no row for ``year`` are left out; alias spellings collapse to
    the canonical label and only the first row seen per group is kept.
    """
    wanted = {g for g in (normalize_group(x) for x in groups) if g}
    valid = _valid_rows(rows)
    if valid.empty or not wanted:
        return []

    year_rows = valid[valid["year"] == year]
    labels = year_rows["student_group"].map(normalize_group)
    snap = (
        pd.DataFrame({"group": labels, "percent": year_rows["percent"].astype(float)})
        .loc[labels.isin(wanted)]
        .drop_duplicates(subset=["group"], keep="first")
        .sort_values("percent", ascending=False, kind="mergesort")
    )
    return [{"group": str(g), "percent": float(p)} for g, p in zip(snap["group"], snap["percent"])]


def resolve_baseline(rows: pd.DataFrame, year: str) -> float:
    """``All Students`` percent for ``year``; 0.0 when that row is missing."""
    valid = _valid_rows(rows)
    if valid.empty:
        return 0.0
    match = valid[(valid["year"] == year) & (valid["student_group"].map(normalize_group) == BASELINE_GROUP)]
    if match.empty:
        return 0.0
    return float(match["percent"].iloc[0])


def build_trend_table(
    rows: pd.DataFrame,
    years: Iterable[str],
    groups: Iterable[str],
    *,
    baseline_group: str = BASELINE_GROUP,
) -> List[Dict[str, object]]:
    """One record per year (in the order given), one key per group with data.

    A group/year pair with no row is simply missing from that year's record.
    """
    tracked = list(dict.fromkeys([g for g in (normalize_group(x) for x in groups) if g] + [baseline_group]))

    lookup: Dict[Tuple[str, str], float] = {}
    valid = _valid_rows(rows)
    for year, group, pct in zip(valid["year"], valid["student_group"], valid["percent"]):
        canonical = normalize_group(group)
        if year is None or canonical is None:
            continue
        lookup.setdefault((str(year), canonical), float(pct))

    records: List[Dict[str, object]] = []
    for year in years:
        record: Dict[str, object] = {"year": format_year_label(year)}
        for group in tracked:
            value = lookup.get((year, group))
            if value is not None:
                record[group] = value
        records.append(record)
    return records


def apply_disparity(entries: Iterable[Dict[str, object]], baseline: float) -> List[Dict[str, object]]:
    return [
        {"group": e["group"], "percent": e["percent"], "disparity": float(e["percent"]) - float(baseline)}
        for e in entries
    ]


def _no_data_context(path: Path, error: str) -> Dict[str, object]:
    return {"files": [], "source": str(path), "years": [], "rows": pd.DataFrame(columns=KEY_COLUMNS), "error": error}


# ---------------- Public API (Streamlit + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[str, float, int]) -> Dict[str, object]:
    path = Path(files_sig[0])
    try:
        rows = read_rows(path)
    except DataLoadError as exc:
        logger.exception("Error loading discipline data from %s", path)
        return _no_data_context(path, str(exc))

    logger.info("Loaded %d discipline rows from %s", len(rows), path.name)
    return {
        "files": [path.name],
        "source": str(path),
        "years": order_years(rows["year"].unique()),
        "rows": rows,
        "error": None,
    }


def load_dashboard_data() -> Dict[str, object]:
    path = get_source_file()
    try:
        sig = file_signature(path)
    except OSError as exc:
        logger.exception("Error loading discipline data from %s", path)
        return _no_data_context(path, f"Could not read {path}: {exc}")
    return _load_dashboard_data_cached(sig)


def has_data(data_ctx: Dict[str, object]) -> bool:
    rows = data_ctx.get("rows")
    return not data_ctx.get("error") and isinstance(rows, pd.DataFrame) and not rows.empty


def prepare_context(filters: dict | ViewFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    """Derive everything the view payloads share, once per load.

    The baseline and the per-category snapshots live here so the overview,
    disparity and summary payloads are all computed from the same numbers.
    """
    rows: pd.DataFrame = data_ctx.get("rows", pd.DataFrame(columns=KEY_COLUMNS)).copy()
    available_years = data_ctx.get("years") or []
    filt = filters if isinstance(filters, ViewFilters) else normalize_filters(filters, available_years=available_years)

    out_of_range = pd.Series(False, index=rows.index)
    if not rows.empty:
        pct = rows["percent"]
        out_of_range = pct.notna() & ((pct < PERCENT_MIN) | (pct > PERCENT_MAX))
        if filt.enforce_percent_range and out_of_range.any():
            rows.loc[out_of_range, "percent"] = np.nan

    baseline = resolve_baseline(rows, filt.target_year)
    snapshots = {key: extract_snapshot(rows, filt.target_year, groups) for key, groups in CATEGORIES.items()}

    return {
        "filters": filt,
        "rows": rows,
        "years_present": order_years(rows["year"].unique()) if not rows.empty else [],
        "target_year": filt.target_year,
        "baseline": baseline,
        "snapshots": snapshots,
        "dq_out_of_range": int(out_of_range.sum()),
        "source": data_ctx.get("source"),
    }
