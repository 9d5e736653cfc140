"""
Dashboard session: the caller-owned state around one loaded snapshot.

The analytics modules are pure functions; this class keeps the current
snapshot, the active filter and the defect mode together so a front end
can hold one session per user. All operations run synchronously to
completion. A failed reload or a rejected filter leaves the session as it
was.
"""

import logging
from typing import Callable

import pandas as pd

from .config import DEFAULT_DEFECT_RULE, UNKNOWN_WELDER
from .defects import parse_rule_value
from .errors import DataLoadError
from .filters import filter_defects_by_date, filter_records, validate_filter_spec
from .linkage import build_linkage_index
from .loaders import RawTable, read_table
from .models import DefectRule, FilterSpec, LinkageIndex, RealData, RuleBased, Snapshot
from .transforms import normalize_defects, normalize_main

logger = logging.getLogger(__name__)


def snapshot_from_tables(main_table: RawTable, defect_table: RawTable | None = None) -> Snapshot:
    """Normalise raw tables into a Snapshot.

    Raises DataLoadError when the main table yields no usable rows.
    """
    main, main_headers, warnings = normalize_main(main_table.rows, main_table.headers)
    warnings = main_table.warnings + warnings
    if main.empty:
        raise DataLoadError("Main dataset has no usable rows")

    defects = None
    defect_headers: list[str] = []
    if defect_table is not None:
        defects, defect_headers, defect_warnings = normalize_defects(
            defect_table.rows, defect_table.headers
        )
        warnings += defect_table.warnings + defect_warnings
        if defects.empty:
            logger.warning("Defect dataset is empty; falling back to the defect rule")

    snapshot = Snapshot(
        main=main,
        main_headers=main_headers,
        defects=defects,
        defect_headers=defect_headers,
        warnings=warnings,
        linkage=build_linkage_index(defects),
    )
    logger.info(
        "Loaded %d operations, %d defect records (%d warnings)",
        len(main),
        0 if defects is None else len(defects),
        len(warnings),
    )
    return snapshot


def load_snapshot(main_source, defect_source=None) -> Snapshot:
    """Read and normalise both datasets.

    The main dataset is required: any read failure, or zero usable rows,
    raises DataLoadError. The defect dataset is optional: a failure is
    logged and the snapshot is returned without it.
    """
    try:
        main_table = read_table(main_source)
    except Exception as exc:
        raise DataLoadError(f"Could not read main dataset from {main_source}: {exc}") from exc

    defect_table = None
    if defect_source is not None:
        try:
            defect_table = read_table(defect_source)
        except Exception:
            logger.exception("Failed to load defect dataset; falling back to the defect rule")

    return snapshot_from_tables(main_table, defect_table)


class DashboardSession:
    """State for one dashboard user.

    Attributes
    ----------
    snapshot : the loaded datasets, or None before the first load.
    filter_spec : the active FilterSpec.
    filtered : weld frame after the active filter.
    filtered_defects : defect frame after the date part of the filter.
    filtered_linkage : linkage index built from filtered_defects.
    defect_rule : rule used when no defect data is loaded.
    """

    def __init__(self, defect_rule: DefectRule | None = None):
        self.snapshot: Snapshot | None = None
        self.filter_spec = FilterSpec()
        self.filtered: pd.DataFrame | None = None
        self.filtered_defects: pd.DataFrame | None = None
        self.filtered_linkage = LinkageIndex()
        self.defect_rule = defect_rule or DefectRule.from_dict(DEFAULT_DEFECT_RULE)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self, loader: Callable[[], Snapshot]) -> Snapshot:
        """Replace the snapshot with the loader's result.

        The loader is called first; only a successful result is installed,
        together with a reset filter. On failure DataLoadError is raised and
        the previous snapshot stays in place.
        """
        try:
            snapshot = loader()
        except DataLoadError:
            logger.exception("Data load failed; keeping previous snapshot")
            raise
        except Exception as exc:
            logger.exception("Data load failed; keeping previous snapshot")
            raise DataLoadError(str(exc)) from exc

        if snapshot is None or snapshot.main.empty:
            raise DataLoadError("Loader returned no weld operations")

        self.snapshot = snapshot
        self._apply(FilterSpec())
        return snapshot

    reload = load

    def load_sources(self, main_source, defect_source=None) -> Snapshot:
        return self.load(lambda: load_snapshot(main_source, defect_source))

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------
    def _require_snapshot(self) -> Snapshot:
        if self.snapshot is None:
            raise DataLoadError("No data loaded")
        return self.snapshot

    def _apply(self, spec: FilterSpec) -> None:
        snapshot = self._require_snapshot()
        filtered = filter_records(snapshot.main, spec)
        filtered_defects = filter_defects_by_date(snapshot.defects, spec.date_from, spec.date_to)

        self.filter_spec = spec
        self.filtered = filtered
        self.filtered_defects = filtered_defects
        self.filtered_linkage = build_linkage_index(filtered_defects)

    def apply_filters(self, spec: FilterSpec | dict) -> pd.DataFrame:
        """Filter both datasets.

        Raises
        ------
        FilterValidationError for a malformed date; the current view is kept.
        """
        if isinstance(spec, dict):
            spec = FilterSpec.from_dict(spec)
        validate_filter_spec(spec)
        self._apply(spec)
        return self.filtered

    def reset_filters(self) -> pd.DataFrame:
        self._apply(FilterSpec())
        return self.filtered

    # ------------------------------------------------------------------
    # Defect mode
    # ------------------------------------------------------------------
    def set_defect_rule(self, rule: DefectRule | dict) -> None:
        if isinstance(rule, dict):
            rule = DefectRule.from_dict({**rule, "value": parse_rule_value(rule.get("value"))})
        self.defect_rule = rule
        logger.info("Defect rule set to %s %s %r", rule.field, rule.operator, rule.value)

    @property
    def has_defect_data(self) -> bool:
        return self.snapshot is not None and self.snapshot.has_defect_data

    @property
    def mode(self) -> RealData | RuleBased:
        """RealData over the date-filtered defects, or RuleBased."""
        if self.has_defect_data:
            return RealData(self.filtered_linkage)
        return RuleBased(self.defect_rule)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    @property
    def headers(self) -> list[str]:
        return [] if self.snapshot is None else list(self.snapshot.main_headers)

    @property
    def warnings(self) -> list[str]:
        return [] if self.snapshot is None else list(self.snapshot.warnings)

    def welders(self) -> set[str]:
        """Known normalised welder names (excluding the unknown sentinel)."""
        if self.snapshot is None:
            return set()
        names = set(self.snapshot.main["welder_normalized"])
        names.discard(UNKNOWN_WELDER)
        return names
