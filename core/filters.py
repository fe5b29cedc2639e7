from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from core.catalog import LATEST_YEAR, TREND_GROUPS, YEAR_ORDER, normalize_group


VIEW_MODES: Tuple[str, ...] = ("overview", "trends", "disparities")


@dataclass(frozen=True)
class ViewFilters:
    mode: str = "overview"
    target_year: str = LATEST_YEAR
    years: Tuple[str, ...] = YEAR_ORDER
    trend_groups: Tuple[str, ...] = TREND_GROUPS
    enforce_percent_range: bool = False
    include_charts: bool = True


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    out = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)


def normalize_filters(raw: Optional[dict], *, available_years: Optional[Iterable[str]] = None) -> ViewFilters:
    raw = raw or {}

    mode = str(raw.get("mode") or "overview").strip().lower()
    if mode not in VIEW_MODES:
        mode = "overview"

    years = _as_str_tuple(raw.get("years")) or YEAR_ORDER

    target_year = str(raw.get("target_year") or "").strip()
    if not target_year:
        # Latest configured year that the data actually has.
        available = set(available_years or [])
        present = [y for y in years if y in available]
        target_year = present[-1] if present else years[-1]

    trend_groups = tuple(
        dict.fromkeys(g for g in (normalize_group(x) for x in _as_str_tuple(raw.get("trend_groups"))) if g)
    ) or TREND_GROUPS

    return ViewFilters(
        mode=mode,
        target_year=target_year,
        years=years,
        trend_groups=trend_groups,
        enforce_percent_range=bool(raw.get("enforce_percent_range", False)),
        include_charts=bool(raw.get("include_charts", True)),
    )
