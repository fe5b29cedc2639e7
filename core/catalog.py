from __future__ import annotations

from typing import Dict, Optional, Tuple

BASELINE_GROUP = "All Students"

YEAR_ORDER: Tuple[str, ...] = ("2021-22", "2022-23", "2023-24")
LATEST_YEAR = YEAR_ORDER[-1]

PROGRAM_STATUS_GROUPS: Tuple[str, ...] = (
    "English Learner",
    "Low income",
    "Students w/disabilities",
    "High needs",
)
GENDER_GROUPS: Tuple[str, ...] = ("Male", "Female")
RACE_ETHNICITY_GROUPS: Tuple[str, ...] = (
    "Amer. Ind. or Alaska Nat.",
    "Asian",
    "Afr. Amer./Black",
    "Hispanic/Latino",
    "Multi-race, Non-Hisp./Lat.",
    "Nat. Haw. or Pacif. Isl.",
    "White",
)

# Ordered: drives the order of snapshot tables, charts and summary sections.
CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "program_status": PROGRAM_STATUS_GROUPS,
    "gender": GENDER_GROUPS,
    "race_ethnicity": RACE_ETHNICITY_GROUPS,
}

CATEGORY_TITLES: Dict[str, str] = {
    "program_status": "Program/Status Groups",
    "gender": "Gender Groups",
    "race_ethnicity": "Race/Ethnicity Groups",
}

TREND_GROUPS: Tuple[str, ...] = (
    "Students w/disabilities",
    "English Learner",
    "High needs",
    "Male",
    "Female",
    "Afr. Amer./Black",
    "Hispanic/Latino",
    "White",
    "Asian",
)

GROUP_ALIASES: Dict[str, str] = {
    "Low Income": "Low income",
}


def normalize_group(label: object) -> Optional[str]:
    """Return the canonical Student Group label (alias-resolved, stripped)."""
    if label is None:
        return None
    if isinstance(label, float) and label != label:
        return None
    s = str(label).strip()
    if not s:
        return None
    return GROUP_ALIASES.get(s, s)


def known_groups() -> Tuple[str, ...]:
    out = [BASELINE_GROUP]
    for groups in CATEGORIES.values():
        out.extend(groups)
    return tuple(out)


# ---------------- Chart styling (consumed by core.charts) ----------------
CATEGORY_COLORS: Dict[str, str] = {
    "program_status": "#3B82F6",
    "gender": "#10B981",
    "race_ethnicity": "#F59E0B",
}

OVERVIEW_DOMAINS: Dict[str, Tuple[float, float]] = {
    "program_status": (0, 7),
    "gender": (0, 5),
    "race_ethnicity": (0, 7),
}

DISPARITY_DOMAINS: Dict[str, Tuple[float, float]] = {
    "program_status": (-1, 3),
    "gender": (-1.5, 1.5),
    "race_ethnicity": (-3, 3),
}

TREND_DOMAIN: Tuple[float, float] = (0, 8)

TREND_COLORS: Dict[str, str] = {
    BASELINE_GROUP: "#000000",
    "Students w/disabilities": "#3B82F6",
    "English Learner": "#60A5FA",
    "High needs": "#1D4ED8",
    "Male": "#10B981",
    "Female": "#34D399",
    "Afr. Amer./Black": "#DC2626",
    "Hispanic/Latino": "#F59E0B",
    "White": "#8B5CF6",
    "Asian": "#EC4899",
}

POSITIVE_DISPARITY_COLOR = "#DC2626"
NEGATIVE_DISPARITY_COLOR = "#10B981"
