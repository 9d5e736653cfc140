"""
Defect linkage: joins weld operations to defect records by
(order number, component number).

A weld operation without both join keys can never be linked, whatever the
index holds.
"""

import logging

import pandas as pd

from .config import COMPONENT_KEY_SEPARATOR, STAGE_PRIMARY_REJECTION, STAGE_REWORK
from .loaders.utils import clean_text
from .models import LinkageIndex

logger = logging.getLogger(__name__)


def composite_key(order_id, component_id) -> str | None:
    """Return "order_component", or None if either part is blank."""
    order = clean_text(order_id)
    component = clean_text(component_id)
    if not order or not component:
        return None
    return f"{order}{COMPONENT_KEY_SEPARATOR}{component}"


def build_linkage_index(defects: pd.DataFrame | None) -> LinkageIndex:
    """Build rejection and rework key sets from a normalised defect frame.

    Rows missing either join key are left out of both sets.
    """
    if defects is None or defects.empty:
        return LinkageIndex()

    keyed = defects[defects["component_key"].notna()]
    rejection = frozenset(
        keyed.loc[keyed["stage_category"] == STAGE_PRIMARY_REJECTION, "component_key"]
    )
    rework = frozenset(keyed.loc[keyed["stage_category"] == STAGE_REWORK, "component_key"])
    stage_counts = defects["stage_category"].value_counts(sort=False).to_dict()

    logger.info(
        "Built linkage index: %d rejected, %d reworked components from %d defect rows",
        len(rejection),
        len(rework),
        len(defects),
    )
    return LinkageIndex(rejection_keys=rejection, rework_keys=rework, stage_counts=stage_counts)


def _record_key(record) -> str | None:
    return composite_key(record.get("order_id"), record.get("component_id"))


def is_defective(record, index: LinkageIndex) -> bool:
    """True if the operation's component was rejected at presentation."""
    key = _record_key(record)
    return key is not None and key in index.rejection_keys


def is_reworked(record, index: LinkageIndex) -> bool:
    key = _record_key(record)
    return key is not None and key in index.rework_keys


def defective_mask(frame: pd.DataFrame, index: LinkageIndex) -> pd.Series:
    """Vectorised is_defective over a normalised weld frame."""
    keys = frame["component_key"]
    return keys.notna() & keys.isin(list(index.rejection_keys))


def reworked_mask(frame: pd.DataFrame, index: LinkageIndex) -> pd.Series:
    keys = frame["component_key"]
    return keys.notna() & keys.isin(list(index.rework_keys))
