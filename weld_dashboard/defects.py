"""
Defect classification and the defect/no-defect decision per weld operation.

Two modes (see models.LinkageMode):
- RealData: an operation is defective if its (order, component) key was
  rejected at product presentation in the defect dataset.
- RuleBased: no defect dataset; a ``field operator value`` rule is
  evaluated against each operation.
"""

import logging
import numbers

import pandas as pd

from .config import (
    STAGE_OTHER,
    STAGE_PRIMARY_REJECTION,
    STAGE_REWORK,
    UNSPECIFIED_STAGE,
)
from .linkage import defective_mask, reworked_mask
from .loaders.utils import clean_text, lenient_float, safe_float
from .models import DefectBreakdown, DefectRule, LinkageIndex, RealData, RuleBased

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule evaluation
# ---------------------------------------------------------------------------

def parse_rule_value(raw):
    """Turn a rule value typed by a user into a number when it looks like one."""
    if isinstance(raw, numbers.Number) and not isinstance(raw, bool):
        return raw
    text = clean_text(raw)
    number = safe_float(text)
    return number if number is not None else text


def _is_number(val) -> bool:
    return isinstance(val, numbers.Number) and not isinstance(val, bool)


def _equals(actual, expected) -> bool:
    """Typed equality: numbers compare numerically, text compares exactly.

    A number never equals a string.
    """
    if actual is None:
        return False
    if _is_number(actual) and _is_number(expected):
        return float(actual) == float(expected)
    if isinstance(actual, str) and isinstance(expected, str):
        return actual.strip() == expected.strip()
    return False


def evaluate_rule(record, rule: DefectRule) -> bool:
    """Evaluate a defect rule against one typed weld record."""
    actual = record.get(rule.field)
    if rule.operator == "=":
        return _equals(actual, rule.value)
    if rule.operator == "!=":
        return not _equals(actual, rule.value)
    if rule.operator == ">":
        return lenient_float(actual) > lenient_float(rule.value)
    return lenient_float(actual) < lenient_float(rule.value)


def rule_mask(frame: pd.DataFrame, rule: DefectRule) -> pd.Series:
    """Vectorised evaluate_rule over a weld frame."""
    if rule.field not in frame.columns:
        logger.warning("Defect rule field %r not in dataset; treating it as empty", rule.field)
        return pd.Series(evaluate_rule({}, rule), index=frame.index, dtype=bool)
    return frame[rule.field].map(lambda v: evaluate_rule({rule.field: v}, rule)).astype(bool)


# ---------------------------------------------------------------------------
# Mode dispatch
# ---------------------------------------------------------------------------

def as_mode(linkage) -> RealData | RuleBased:
    """Accept a LinkageMode or a bare LinkageIndex (treated as RealData)."""
    if isinstance(linkage, (RealData, RuleBased)):
        return linkage
    if isinstance(linkage, LinkageIndex):
        return RealData(linkage)
    raise TypeError(f"Expected LinkageIndex, RealData or RuleBased, got {type(linkage).__name__}")


def defect_mask(frame: pd.DataFrame, mode) -> pd.Series:
    """Per-operation defective flag under the given mode."""
    mode = as_mode(mode)
    if isinstance(mode, RealData):
        return defective_mask(frame, mode.index)
    return rule_mask(frame, mode.rule)


def count_defects(frame: pd.DataFrame, mode) -> int:
    """Defects in a weld frame.

    RealData counts unique defective components (a component touched by
    several operations counts once). RuleBased counts matching operations.
    """
    mode = as_mode(mode)
    if frame.empty:
        return 0
    mask = defect_mask(frame, mode)
    if isinstance(mode, RealData):
        return int(frame.loc[mask, "component_key"].nunique())
    return int(mask.sum())


# ---------------------------------------------------------------------------
# Stage partition
# ---------------------------------------------------------------------------

def classify_defects(defects: pd.DataFrame | None) -> DefectBreakdown:
    """Partition defect records by workflow stage.

    Returns
    -------
    DefectBreakdown with the primary-rejection rows, the rework rows, and a
    label -> count histogram of all remaining rows in first-seen order.
    """
    if defects is None or defects.empty:
        empty = pd.DataFrame() if defects is None else defects.iloc[0:0]
        return DefectBreakdown(rejection=empty, rework=empty, other_by_stage={})

    category = defects["stage_category"]
    rejection = defects[category == STAGE_PRIMARY_REJECTION]
    rework = defects[category == STAGE_REWORK]
    other = defects[category == STAGE_OTHER]

    labels = other["stage"].map(lambda s: clean_text(s) or UNSPECIFIED_STAGE)
    histogram = labels.groupby(labels, sort=False).size()
    other_by_stage = {str(label): int(count) for label, count in histogram.items()}

    logger.info(
        "Classified %d defect rows: %d rejection, %d rework, %d other",
        len(defects), len(rejection), len(rework), len(other),
    )
    return DefectBreakdown(rejection=rejection, rework=rework, other_by_stage=other_by_stage)


def rework_by_welder(frame: pd.DataFrame, index: LinkageIndex) -> pd.DataFrame:
    """Per-welder rework incidence.

    Returns
    -------
    DataFrame with columns welder, rework_count (unique components of the
    welder found in the rework set), unique_components. Welders keep their
    first-seen order.
    """
    columns = ["welder", "rework_count", "unique_components"]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    frame = frame.assign(reworked=reworked_mask(frame, index))
    rows = []
    for welder, group in frame.groupby("welder_normalized", sort=False):
        components = {c for c in group["component_id"] if clean_text(c)}
        rows.append({
            "welder": welder,
            "rework_count": int(group.loc[group["reworked"], "component_key"].nunique()),
            "unique_components": len(components),
        })
    return pd.DataFrame(rows, columns=columns)
