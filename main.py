"""
Weld production dashboard: end-to-end analytics pipeline.

Runs the full data pipeline from source files to dashboard-ready outputs
and prints smoke-test summaries. Falls back to simulated data when the
configured sources do not exist.

Usage:
    python main.py [main_source] [defect_source]
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from weld_dashboard.config import DEFECT_DATA_SOURCE, MAIN_DATA_SOURCE
from weld_dashboard.dashboard import (
    get_defect_summary,
    get_mode_name,
    get_other_defects,
    get_overview,
    get_rework_pie,
    get_trend_summary,
    get_welder_ranking,
)
from weld_dashboard.errors import FilterValidationError
from weld_dashboard.session import DashboardSession, snapshot_from_tables
from weld_dashboard.simulator import generate_demo_tables

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _exists(source: str) -> bool:
    return source.startswith(("http://", "https://")) or Path(source).exists()


def load_session(main_source: str, defect_source: str | None) -> DashboardSession:
    session = DashboardSession()
    if _exists(main_source):
        defect = defect_source if defect_source and _exists(defect_source) else None
        session.load_sources(main_source, defect)
    else:
        logger.warning("Main source %s not found; using simulated data", main_source)
        session.load(lambda: snapshot_from_tables(*generate_demo_tables()))
    return session


def main(argv: list[str] | None = None) -> None:
    """Run the full analytics pipeline and print smoke-test outputs."""
    argv = sys.argv[1:] if argv is None else argv
    main_source = argv[0] if argv else MAIN_DATA_SOURCE
    defect_source = argv[1] if len(argv) > 1 else DEFECT_DATA_SOURCE

    print("=" * 70)
    print("  WELD PRODUCTION DASHBOARD")
    print("  Analytics Pipeline Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Load source data
    # ------------------------------------------------------------------
    print("[ 1 ] LOADING SOURCE DATA")
    print("-" * 40)

    session = load_session(main_source, defect_source)
    snapshot = session.snapshot
    print(f"\nOperations: {len(snapshot.main)} rows, {len(snapshot.main_headers)} columns")
    print(f"Defect records: {0 if snapshot.defects is None else len(snapshot.defects)} rows")
    print(f"Defect mode: {get_mode_name(session)}")
    print(f"Welders: {len(session.welders())}")
    if snapshot.warnings:
        print(f"Warnings: {len(snapshot.warnings)} (first: {snapshot.warnings[0]})")

    # ------------------------------------------------------------------
    # 2. Headline metrics
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] HEADLINE METRICS")
    print("-" * 40)

    overview = get_overview(session)
    for key in ("total", "total_length", "avg_per_shift", "defect_pct"):
        card = overview[key]
        info = card["trend_info"]
        print(f"  {key:14s} | {card['value']:>12,.2f} | {info['icon']} {card['trend']:+.1f} | {card['status']}")
    print(f"  Defect source: {overview['defect_source']}")

    # ------------------------------------------------------------------
    # 3. Welder ranking and defects
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] WELDER RANKING")
    print("-" * 40)

    ranking = get_welder_ranking(session)
    if not ranking.empty:
        print(ranking[["rank", "welder", "total", "weighted_total", "defect_count", "score"]].to_string(index=False))

    summary = get_defect_summary(session)
    print(f"\nDefects: {summary['defect_count']} ({summary['defect_pct']}%, {summary['status']})")
    for welder, count in summary["top_welders"]:
        print(f"  {welder:20s} {count}")

    if session.has_defect_data:
        print(f"\nRejection vs rework: {get_rework_pie(session)}")
        other = get_other_defects(session)
        for label, count in zip(other["labels"], other["counts"]):
            print(f"  {label:30s} {count}")

    # ------------------------------------------------------------------
    # 4. Trends and filtering
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] TRENDS AND FILTERS")
    print("-" * 40)

    trend = get_trend_summary(session)
    if trend["available"]:
        print(f"\n  Current month:  {trend['current_month']:,.1f} m ({trend['month_change_pct']:+.1f}%)")
        print(f"  3-month avg:    {trend['avg_3_months']:,.1f} m ({trend['quarter_change_pct']:+.1f}%)")
        print(f"  Target {trend['monthly_target']} m met: {trend['target_met']}")
    else:
        print(f"\n  Not enough months for a comparison ({trend['months']})")

    try:
        session.apply_filters({"date_from": "2025-02-01"})
    except FilterValidationError as exc:
        print(f"\n  [PASS] Invalid filter rejected: {exc}")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
