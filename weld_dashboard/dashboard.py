"""
Dashboard-ready output functions.

These are the primary entry points for the Streamlit front end.
Each function takes a DashboardSession and returns plain dicts or
DataFrames suitable for rendering cards, charts, and tables.
"""

import io
import logging
import numbers

import pandas as pd

from .config import (
    COLOR_PALETTE,
    KPI_TARGETS,
    RANKING_SIZE,
    TABLE_PAGE_SIZE,
    TABLE_VISIBLE_COLUMNS,
    TOP_DEFECT_WELDERS,
)
from .defects import classify_defects, rework_by_welder
from .kpis import (
    compute_welder_stats,
    kpi_statuses,
    overall_metrics,
    top_defect_welders,
    trend_direction,
    welder_stats_table,
)
from .models import RealData, TrendSeries
from .session import DashboardSession
from .trends import compute_trend, half_split_trend, period_comparison, welder_period_table

logger = logging.getLogger(__name__)


def defect_source_label(session: DashboardSession) -> str:
    if session.has_defect_data:
        return "Defect sheet (primary rejection only)"
    rule = session.defect_rule
    return f"Rule: {rule.field} {rule.operator} {rule.value}"


def get_overview(session: DashboardSession) -> dict:
    """Headline cards: value, half-split trend and status for each KPI.

    Returns
    -------
    {
        "total":         {"value": ..., "trend": ..., "trend_info": {...}, "status": "good"},
        "total_length":  {...},
        "avg_per_shift": {...},
        "defect_pct":    {...},   # trend in percentage points
        "defect_source": "...",
    }
    """
    frame = session.filtered
    mode = session.mode
    metrics = overall_metrics(frame, mode)
    statuses = kpi_statuses(metrics)

    trends = {
        "total": half_split_trend(frame, "count"),
        "total_length": half_split_trend(frame, "sum_length"),
        "avg_per_shift": half_split_trend(frame, "avg_per_shift"),
        "defect_pct": half_split_trend(frame, "defect_pct", mode),
    }

    overview = {}
    for key, trend in trends.items():
        overview[key] = {
            "value": metrics[key],
            "trend": trend,
            "trend_info": trend_direction(trend, lower_is_better=(key == "defect_pct")),
            "status": statuses[key],
        }
    overview["defect_count"] = metrics["defect_count"]
    overview["defect_source"] = defect_source_label(session)
    return overview


def get_welder_ranking(session: DashboardSession, top_n: int | None = RANKING_SIZE) -> pd.DataFrame:
    """Top welders by score with their metrics."""
    welders = compute_welder_stats(session.filtered, session.mode)
    return welder_stats_table(welders, top_n)


def get_defect_summary(session: DashboardSession) -> dict:
    """Defective components, share of operations, worst welders."""
    frame = session.filtered
    mode = session.mode
    metrics = overall_metrics(frame, mode)
    defect_pct = metrics["defect_pct"]
    welders = compute_welder_stats(frame, mode)

    return {
        "defect_count": metrics["defect_count"],
        "defect_pct": defect_pct,
        "status": "low" if defect_pct <= KPI_TARGETS["defect_rate"] else "high",
        "top_welders": top_defect_welders(welders, TOP_DEFECT_WELDERS),
        "source": defect_source_label(session),
    }


def get_production_series(session: DashboardSession, period: str = "month", agg_type: str = "sum") -> dict:
    """Weld length per period plus its mean, for the production chart."""
    series = compute_trend(session.filtered, "weld_length_m", period, agg_type)
    mean = sum(series.values) / len(series) if len(series) else 0.0
    return {
        "labels": series.labels,
        "values": series.values,
        "mean": mean,
        "above_mean": [v > mean for v in series.values],
    }


def get_trend_summary(session: DashboardSession) -> dict:
    """Current vs previous month, 3-month rolling comparison, monthly target.

    Returns {"available": False} when fewer than two months have data.
    """
    series: TrendSeries = compute_trend(session.filtered, "weld_length_m", "month", "sum")
    comparison = period_comparison(series)
    if not comparison.available:
        return {"available": False, "months": comparison.periods}

    target = KPI_TARGETS["monthly_target"]
    return {
        "available": True,
        "current_month": comparison.current,
        "previous_month": comparison.previous,
        "month_change_pct": comparison.change_pct,
        "avg_3_months": comparison.rolling_avg,
        "avg_prev_3_months": comparison.previous_rolling_avg,
        "quarter_change_pct": comparison.rolling_change_pct,
        "monthly_target": target,
        "target_met": comparison.current >= target,
        "total": comparison.total,
        "months": comparison.periods,
    }


def get_welder_lines(session: DashboardSession, period: str = "month") -> pd.DataFrame:
    """Welder x period weld-length table for the multi-line chart."""
    return welder_period_table(session.filtered, period)


def get_defect_pie(session: DashboardSession) -> pd.DataFrame:
    """Defect percentage per welder (defects / operations)."""
    welders = compute_welder_stats(session.filtered, session.mode)
    rows = [
        {"welder": welder, "defect_pct": stats.defect_count / stats.total * 100 if stats.total else 0.0}
        for welder, stats in welders.items()
    ]
    return pd.DataFrame(rows, columns=["welder", "defect_pct"])


def get_rework_chart(session: DashboardSession) -> pd.DataFrame:
    """Reworked vs total unique components per welder."""
    if not session.has_defect_data:
        return pd.DataFrame(columns=["welder", "rework_count", "unique_components"])
    return rework_by_welder(session.filtered, session.filtered_linkage)


def get_rework_pie(session: DashboardSession) -> dict:
    breakdown = classify_defects(session.filtered_defects)
    return {"rejection": len(breakdown.rejection), "rework": len(breakdown.rework)}


def get_other_defects(session: DashboardSession) -> dict:
    breakdown = classify_defects(session.filtered_defects)
    return {
        "labels": list(breakdown.other_by_stage),
        "counts": list(breakdown.other_by_stage.values()),
    }


def get_table_page(session: DashboardSession, limit: int = TABLE_PAGE_SIZE) -> pd.DataFrame:
    """Latest `limit` filtered rows, newest first, first visible columns only."""
    headers = session.headers[:TABLE_VISIBLE_COLUMNS]
    frame = session.filtered
    if frame is None or frame.empty:
        return pd.DataFrame(columns=headers)
    return frame[headers].tail(limit).iloc[::-1].reset_index(drop=True)


def export_csv(session: DashboardSession) -> bytes:
    """Filtered rows as UTF-8 CSV (with BOM) in source column order.

    Numbers are written with two decimals; empty cells stay empty.
    """
    frame = session.filtered
    headers = session.headers
    if frame is None or frame.empty:
        raise ValueError("No data to export")

    def _cell(val):
        if val is None:
            return ""
        if isinstance(val, numbers.Number) and not isinstance(val, bool):
            return f"{val:.2f}"
        return val

    out = frame[headers].apply(lambda col: col.map(_cell))
    buffer = io.StringIO()
    out.to_csv(buffer, index=False)
    logger.info("Exported %d rows", len(out))
    return buffer.getvalue().encode("utf-8-sig")


def generate_colors(count: int) -> list[str]:
    """Chart colours: the fixed palette first, then golden-angle HSL hues."""
    colors = []
    for i in range(max(count, 0)):
        if i < len(COLOR_PALETTE):
            colors.append(COLOR_PALETTE[i])
        else:
            hue = (i * 137.508) % 360
            saturation = 65 + (i % 3) * 10
            lightness = 45 + (i % 2) * 15
            colors.append(f"hsl({hue:.1f}, {saturation}%, {lightness}%)")
    return colors


def get_mode_name(session: DashboardSession) -> str:
    return "real-data" if isinstance(session.mode, RealData) else "rule-based"
