"""
Shared utilities for data ingestion: number coercion, DD.MM.YYYY dates,
welder-name normalisation.
"""

import logging
import re
from typing import Any

import pandas as pd

from ..config import MAX_YEAR, MIN_YEAR, UNKNOWN_WELDER, WELDER_NAME_CASE

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_NAME_SPLIT_RE = re.compile(r"[\s,.]+")
_NAME_STRIP_RE = re.compile(r"[\d\W_]+")


def clean_text(val: Any) -> str:
    """Return a trimmed string; None and NaN become ''."""
    if val is None:
        return ""
    if isinstance(val, float) and pd.isna(val):
        return ""
    return str(val).strip()


def safe_float(val: Any) -> float | None:
    """Coerce a value to float, returning None for non-numeric values.

    Decimal commas ("12,5") are accepted.
    """
    if val is None:
        return None
    if isinstance(val, bool):
        return float(val)
    if isinstance(val, (int, float)):
        if pd.isna(val):
            return None
        return float(val)
    text = str(val).strip()
    if not text:
        return None
    try:
        return float(text.replace(",", "."))
    except ValueError:
        return None


def lenient_float(val: Any) -> float:
    """Like safe_float but 0.0 instead of None."""
    result = safe_float(val)
    return 0.0 if result is None else result


def parse_date(val: Any) -> tuple[int, int, int] | None:
    """Parse DD.MM.YYYY into (year, month, day).

    The check is range-based only: day 1-31, month 1-12, year 2000-2100.
    Calendar validity is not enforced, so 30.02.2024 passes.
    """
    text = clean_text(val)
    match = _DATE_RE.match(text)
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    if not 1 <= day <= 31 or not 1 <= month <= 12 or not MIN_YEAR <= year <= MAX_YEAR:
        return None
    return year, month, day


def is_valid_date_format(val: Any) -> bool:
    return parse_date(val) is not None


def date_key(val: Any) -> int | None:
    """Sortable integer YYYYMMDD for a DD.MM.YYYY string, or None."""
    parsed = parse_date(val)
    if parsed is None:
        return None
    year, month, day = parsed
    return year * 10000 + month * 100 + day


def normalise_welder_name(raw_name: Any, case: str = WELDER_NAME_CASE) -> str:
    """Reduce a free-text welder field to a grouping key.

    Takes the first token (split on whitespace, commas and periods), strips
    digits and punctuation, then upper- or title-cases it. Returns
    UNKNOWN_WELDER when nothing is left.

    >>> normalise_welder_name("Иванов И.И. 5р")
    'ИВАНОВ'
    """
    text = clean_text(raw_name)
    tokens = [t for t in _NAME_SPLIT_RE.split(text) if t]
    if not tokens:
        return UNKNOWN_WELDER
    name = _NAME_STRIP_RE.sub("", tokens[0])
    if not name:
        return UNKNOWN_WELDER
    if case == "title":
        return name.title()
    return name.upper()
