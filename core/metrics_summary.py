from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from core.catalog import CATEGORIES, CATEGORY_TITLES
from core.data import apply_disparity, format_percent, format_pp
from core.filters import ViewFilters


def _ratio(numer: Optional[float], denom: Optional[float]) -> Optional[float]:
    if numer is None or denom is None or denom <= 0:
        return None
    return numer / denom


def _finding(entry: Dict[str, Any]) -> str:
    return f"{entry['group']}: {format_percent(entry['percent'])} ({format_pp(entry['disparity'])})"


def _percent_of(entries: List[Dict[str, Any]], group: str) -> Optional[float]:
    for e in entries:
        if e["group"] == group:
            return float(e["percent"])
    return None


def compute_summary(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Key findings per category, derived from the snapshot and baseline."""
    snapshots: Dict[str, Any] = ctx.get("snapshots", {}) or {}
    baseline = float(ctx.get("baseline", 0.0) or 0.0)

    sections = []
    for key in CATEGORIES:
        entries = apply_disparity(snapshots.get(key, []), baseline)
        highest = entries[0] if entries else None
        lowest = entries[-1] if entries else None
        findings = [_finding(e) for e in entries]
        ratio = None

        if key == "gender":
            ratio = _ratio(_percent_of(entries, "Male"), _percent_of(entries, "Female"))
            if ratio is not None:
                findings.append(f"Gender ratio: Males disciplined at {ratio:.1f}x the rate of females")
        elif key == "race_ethnicity" and len(entries) >= 2:
            ratio = _ratio(float(highest["percent"]), float(lowest["percent"]))
            if ratio is not None:
                findings.append(
                    f"Largest disparity: {ratio:.1f}x difference between highest ({highest['group']}) "
                    f"and lowest ({lowest['group']}) groups"
                )

        sections.append(
            {
                "key": key,
                "title": CATEGORY_TITLES[key],
                "highest": highest,
                "lowest": lowest,
                "ratio": ratio,
                "findings": findings,
            }
        )

    return {
        "filters": asdict(filters),
        "snapshot": {"year": ctx.get("target_year", filters.target_year)},
        "baseline": baseline,
        "sections": sections,
    }
