"""
Filter engine for the weld operations frame and the defect frame.

Filtering never reorders rows; load order is kept.
"""

import logging

import pandas as pd

from .errors import FilterValidationError
from .loaders.utils import clean_text, date_key, safe_float
from .models import FilterSpec

logger = logging.getLogger(__name__)

# Text filters -> canonical column (aliases are resolved in transforms)
_TEXT_FILTERS = {
    "order": "order_id",
    "component": "component_id",
    "welder": "welder_raw",
    "cutting": "cutting_type",
}

_NUMERIC_FILTERS = {
    "diameter": "diameter",
    "thickness": "thickness",
}


def validate_filter_spec(spec: FilterSpec) -> tuple[int | None, int | None]:
    """Check the date bounds and return them as YYYYMMDD keys.

    Raises
    ------
    FilterValidationError if a non-blank bound is not DD.MM.YYYY.
    """
    bounds = []
    for name in ("date_from", "date_to"):
        text = clean_text(getattr(spec, name))
        if not text:
            bounds.append(None)
            continue
        key = date_key(text)
        if key is None:
            raise FilterValidationError(name, text)
        bounds.append(key)
    return bounds[0], bounds[1]


def _date_mask(keys: pd.Series, date_from: int | None, date_to: int | None, keep_missing: bool) -> pd.Series:
    """Inclusive range test on YYYYMMDD keys."""
    mask = pd.Series(True, index=keys.index)
    if date_from is None and date_to is None:
        return mask
    if date_from is not None:
        mask &= (keys >= date_from).fillna(keep_missing).astype(bool)
    if date_to is not None:
        mask &= (keys <= date_to).fillna(keep_missing).astype(bool)
    return mask


def _text_mask(values: pd.Series, needle: str) -> pd.Series:
    haystack = values.map(clean_text).str.lower()
    return haystack.str.contains(needle.lower(), regex=False)


def numeric_matches(value, needle: str) -> bool:
    """Numeric equality when both sides parse, else case-insensitive substring.

    A missing value never matches.
    """
    text = clean_text(value)
    if not text:
        return False
    target = safe_float(needle)
    actual = safe_float(value)
    if target is not None and actual is not None:
        return actual == target
    return needle.lower() in text.lower()


def filter_records(frame: pd.DataFrame, spec: FilterSpec) -> pd.DataFrame:
    """Apply a FilterSpec to a normalised weld frame.

    Rules
    -----
    - Date range is inclusive; rows without a date are excluded as soon as
      either bound is given.
    - order / component / welder / cutting: case-insensitive substring.
    - diameter / thickness: see numeric_matches().

    Raises
    ------
    FilterValidationError for a malformed date bound (nothing is filtered).
    """
    date_from, date_to = validate_filter_spec(spec)

    mask = _date_mask(frame["date_key"], date_from, date_to, keep_missing=False)

    for option, column in _TEXT_FILTERS.items():
        needle = clean_text(getattr(spec, option))
        if needle:
            mask &= _text_mask(frame[column], needle)

    for option, column in _NUMERIC_FILTERS.items():
        needle = clean_text(getattr(spec, option))
        if needle:
            mask &= frame[column].map(lambda v, n=needle: numeric_matches(v, n)).astype(bool)

    result = frame.loc[mask]
    logger.info("Filtered main dataset: %d of %d rows", len(result), len(frame))
    return result


def filter_defects_by_date(
    defects: pd.DataFrame | None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> pd.DataFrame | None:
    """Date-range filter for the defect frame.

    Only the detection date is considered. Defect rows without a detection
    date are kept.
    """
    if defects is None:
        return None
    from_key, to_key = validate_filter_spec(FilterSpec(date_from=date_from, date_to=date_to))
    mask = _date_mask(defects["detection_date_key"], from_key, to_key, keep_missing=True)
    result = defects.loc[mask]
    logger.info("Filtered defect dataset: %d of %d rows", len(result), len(defects))
    return result
