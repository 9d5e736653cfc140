"""
Trend calculations: half-split deltas and calendar-bucketed series.

Bucket labels are zero-padded (YYYY, YYYY-MM, YYYY-Qn, YYYY-MM-DD), so a
plain string sort is chronological. Empty periods are simply absent.
"""

import logging

import pandas as pd

from .config import AGGREGATIONS, PERIODS, ROLLING_WINDOW, UNKNOWN_WELDER
from .defects import count_defects
from .kpis import calc_change_pct
from .loaders.utils import lenient_float
from .models import PeriodComparison, TrendSeries

logger = logging.getLogger(__name__)

HALF_SPLIT_AGGREGATES = ("sum_length", "count", "avg_per_shift", "defect_pct")


# ---------------------------------------------------------------------------
# Half-split trend
# ---------------------------------------------------------------------------

def _half_aggregate(half: pd.DataFrame, aggregate: str, linkage) -> float:
    if aggregate == "count":
        return float(len(half))
    if half.empty:
        return 0.0
    if aggregate == "sum_length":
        return float(half["weld_length_m"].sum())
    if aggregate == "avg_per_shift":
        shifts = half["date"].dropna().nunique()
        return float(half["weld_length_m"].sum()) / shifts if shifts else 0.0
    return count_defects(half, linkage) / len(half) * 100


def split_halves(frame: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Order chronologically (undated rows last) and split at floor(n/2)."""
    ordered = frame.sort_values("date_key", kind="stable", na_position="last")
    mid = len(ordered) // 2
    return ordered.iloc[:mid], ordered.iloc[mid:]


def half_split_trend(frame: pd.DataFrame, aggregate: str, linkage=None) -> float:
    """Second half vs first half of the filtered period.

    Parameters
    ----------
    frame : filtered weld frame.
    aggregate : 'sum_length', 'count', 'avg_per_shift' or 'defect_pct'.
    linkage : LinkageIndex or LinkageMode, required for 'defect_pct'.

    Returns
    -------
    Relative change in percent (one decimal), 0 when the first half is 0.
    For 'defect_pct' the result is a percentage-point difference instead.
    """
    if aggregate not in HALF_SPLIT_AGGREGATES:
        raise ValueError(f"Unknown aggregate {aggregate!r}; expected one of {HALF_SPLIT_AGGREGATES}")
    if aggregate == "defect_pct" and linkage is None:
        raise ValueError("defect_pct trend needs a linkage index or defect rule")

    first, second = split_halves(frame)
    first_value = _half_aggregate(first, aggregate, linkage)
    second_value = _half_aggregate(second, aggregate, linkage)

    if aggregate == "defect_pct":
        return round(second_value - first_value, 1)
    return calc_change_pct(second_value, first_value)


# ---------------------------------------------------------------------------
# Period buckets
# ---------------------------------------------------------------------------

def period_key(key: int, period: str) -> str:
    """Bucket label for a YYYYMMDD key."""
    year, month, day = key // 10000, key // 100 % 100, key % 100
    if period == "day":
        return f"{year}-{month:02d}-{day:02d}"
    if period == "month":
        return f"{year}-{month:02d}"
    if period == "quarter":
        return f"{year}-Q{(month - 1) // 3 + 1}"
    if period == "year":
        return f"{year}"
    raise ValueError(f"Unknown period {period!r}; expected one of {PERIODS}")


def sort_period_labels(labels) -> list[str]:
    return sorted(labels)


def compute_trend(frame: pd.DataFrame, field: str, period: str = "month", agg_type: str = "sum") -> TrendSeries:
    """Aggregate a field per calendar bucket.

    Parameters
    ----------
    frame : filtered weld frame.
    field : column to aggregate (canonical, e.g. 'weld_length_m', or a source
            header); values are coerced leniently to float.
    period : 'day', 'month', 'quarter' or 'year'.
    agg_type : 'sum', 'avg' or 'count'.

    Returns
    -------
    TrendSeries with labels in chronological order. Undated rows are skipped.
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period {period!r}; expected one of {PERIODS}")
    if agg_type not in AGGREGATIONS:
        raise ValueError(f"Unknown aggregation {agg_type!r}; expected one of {AGGREGATIONS}")

    dated = frame[frame["date_key"].notna()]
    if dated.empty:
        return TrendSeries(labels=[], values=[])

    buckets = dated["date_key"].map(lambda k: period_key(int(k), period))
    if field in dated.columns:
        values = dated[field].map(lenient_float)
    else:
        logger.warning("Trend field %r not in dataset; using zeros", field)
        values = pd.Series(0.0, index=dated.index)

    grouped = values.astype(float).groupby(buckets, sort=False)
    if agg_type == "sum":
        result = grouped.sum()
    elif agg_type == "avg":
        result = grouped.mean()
    else:
        result = grouped.size()

    labels = sort_period_labels(result.index)
    return TrendSeries(labels=labels, values=[float(result[label]) for label in labels])


def period_comparison(series: TrendSeries, window: int = ROLLING_WINDOW) -> PeriodComparison:
    """Last bucket vs the one before, and the mean of the last `window`
    buckets vs the mean of the `window` before them.

    Fewer than two buckets: available=False.
    """
    values = series.values
    if len(values) < 2:
        return PeriodComparison(available=False, periods=len(values))

    current, previous = values[-1], values[-2]
    recent = values[-window:]
    prior = values[-2 * window:-window]
    rolling_avg = sum(recent) / len(recent)
    previous_rolling_avg = sum(prior) / len(prior) if prior else 0.0

    return PeriodComparison(
        available=True,
        current=current,
        previous=previous,
        change_pct=calc_change_pct(current, previous),
        rolling_avg=rolling_avg,
        previous_rolling_avg=previous_rolling_avg,
        rolling_change_pct=calc_change_pct(rolling_avg, previous_rolling_avg),
        total=sum(values),
        periods=len(values),
    )


def welder_period_table(frame: pd.DataFrame, period: str = "month") -> pd.DataFrame:
    """Weld length per welder per bucket (welders x periods, zero filled).

    Rows keep first-seen welder order; columns are chronological.
    Operations without a known welder or date are left out.
    """
    dated = frame[frame["date_key"].notna() & (frame["welder_normalized"] != UNKNOWN_WELDER)]
    if dated.empty:
        return pd.DataFrame()

    table = pd.DataFrame({
        "welder": dated["welder_normalized"],
        "period": dated["date_key"].map(lambda k: period_key(int(k), period)),
        "length": dated["weld_length_m"].astype(float),
    })
    pivot = table.pivot_table(index="welder", columns="period", values="length", aggfunc="sum", fill_value=0.0)
    pivot = pivot.reindex(index=table["welder"].unique(), columns=sort_period_labels(pivot.columns))
    pivot.columns.name = None
    pivot.index.name = "welder"
    return pivot
