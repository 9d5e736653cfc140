"""
KPI computation functions. Pure functions with no side effects.

Provides per-welder aggregation with weighted scoring, ranking, overall
production metrics, and good/warning/bad status classification.
"""

import logging

import pandas as pd

from .config import KPI_TARGETS, RANKING_SIZE
from .defects import as_mode, count_defects, defect_mask
from .loaders.utils import clean_text
from .models import RealData, WelderStats

logger = logging.getLogger(__name__)


def calc_change_pct(current: float, previous: float) -> float:
    """Relative change in percent, one decimal; 0 when previous is 0 or missing."""
    if not previous or pd.isna(previous):
        return 0.0
    return round((current - previous) / previous * 100, 1)


def classify_performance(actual: float, target: float, direction: str) -> str:
    """Return 'good', 'warning' or 'bad' against a KPI target.

    Logic
    -----
    - direction='higher_is_better':
        good     if actual >= target
        warning  otherwise
    - direction='lower_is_better':
        good     if actual <= target
        warning  if actual <= target * 2
        bad      otherwise
    """
    if actual is None or pd.isna(actual):
        return "neutral"

    if direction == "higher_is_better":
        return "good" if actual >= target else "warning"

    if actual <= target:
        return "good"
    if actual <= target * 2:
        return "warning"
    return "bad"


def trend_direction(value: float, lower_is_better: bool = False) -> dict:
    """Arrow and colour class for a trend delta.

    For defect trends (lower_is_better) a rise is bad.
    """
    if not value:
        return {"direction": "neutral", "icon": "→", "quality": "neutral"}
    rising = value > 0
    good = rising != lower_is_better
    return {
        "direction": "up" if rising else "down",
        "icon": "↑" if rising else "↓",
        "quality": "good" if good else "bad",
    }


def compute_welder_stats(frame: pd.DataFrame, linkage) -> dict[str, WelderStats]:
    """Aggregate filtered weld operations per normalised welder name.

    Parameters
    ----------
    frame : filtered weld frame from filters.filter_records().
    linkage : LinkageIndex, RealData or RuleBased.

    Returns
    -------
    Dict welder -> WelderStats, in first-seen welder order.

    Rules
    -----
    - weighted_total: sum of length x cutting coefficient x material coefficient.
    - RealData: defect_count is the number of the welder's unique
      (order, component) keys found in the rejection set.
    - RuleBased: defect_count is the number of the welder's operations
      matching the rule.
    """
    mode = as_mode(linkage)
    if frame.empty:
        return {}

    df = frame.assign(
        weighted_length=frame["weld_length_m"]
        * frame["cutting_coefficient"]
        * frame["material_coefficient"],
        is_defect=defect_mask(frame, mode),
    )

    welders: dict[str, WelderStats] = {}
    for welder, group in df.groupby("welder_normalized", sort=False):
        stats = WelderStats(
            total=len(group),
            total_length=float(group["weld_length_m"].sum()),
            weighted_total=float(group["weighted_length"].sum()),
            unique_components={c for c in group["component_id"] if clean_text(c)},
            unique_shift_dates=set(group["date"].dropna()),
        )
        if isinstance(mode, RealData):
            keys = set(group["component_key"].dropna())
            stats.defect_count = len(keys & mode.index.rejection_keys)
        else:
            stats.defect_count = int(group["is_defect"].sum())
        welders[welder] = stats

    logger.info("Computed stats for %d welders over %d operations", len(welders), len(frame))
    return welders


def rank_welders(
    welders: dict[str, WelderStats],
    top_n: int | None = RANKING_SIZE,
) -> list[tuple[str, WelderStats]]:
    """Sort welders by score, highest first.

    Ties keep first-seen order. top_n=None returns every welder.
    """
    ranked = sorted(welders.items(), key=lambda item: item[1].score, reverse=True)
    if top_n is None:
        return ranked
    return ranked[:top_n]


def welder_stats_table(welders: dict[str, WelderStats], top_n: int | None = None) -> pd.DataFrame:
    """Ranked welder statistics as a display table."""
    rows = []
    for rank, (welder, stats) in enumerate(rank_welders(welders, top_n), start=1):
        rows.append({"rank": rank, "welder": welder, **stats.as_dict()})
    if not rows:
        return pd.DataFrame(columns=["rank", "welder"] + list(WelderStats().as_dict()))
    return pd.DataFrame(rows)


def top_defect_welders(welders: dict[str, WelderStats], n: int) -> list[tuple[str, int]]:
    """Welders with the most defects, highest first."""
    ranked = sorted(welders.items(), key=lambda item: item[1].defect_count, reverse=True)
    return [(welder, stats.defect_count) for welder, stats in ranked[:n]]


def overall_metrics(frame: pd.DataFrame, linkage) -> dict:
    """Headline production metrics over a filtered weld frame.

    defect_pct uses total operations as the denominator.
    """
    total = len(frame)
    total_length = float(frame["weld_length_m"].sum()) if total else 0.0
    total_wire = float(frame["wire_total"].sum()) if total else 0.0
    shifts = int(frame["date"].dropna().nunique()) if total else 0
    defects = count_defects(frame, linkage)

    return {
        "total": total,
        "total_length": total_length,
        "total_wire": total_wire,
        "shifts": shifts,
        "avg_per_shift": round(total_length / shifts, 2) if shifts else 0.0,
        "defect_count": defects,
        "defect_pct": round(defects / total * 100, 1) if total else 0.0,
    }


def kpi_statuses(metrics: dict) -> dict:
    """Status per headline card against KPI_TARGETS."""
    length_status = classify_performance(
        metrics["avg_per_shift"], KPI_TARGETS["avg_length"], "higher_is_better"
    )
    return {
        "total": length_status,
        "total_length": length_status,
        "avg_per_shift": length_status,
        "defect_pct": classify_performance(
            metrics["defect_pct"], KPI_TARGETS["defect_rate"], "lower_is_better"
        ),
    }
