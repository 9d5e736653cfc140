"""
Record normalisation: type raw string rows and resolve column aliases into
the canonical weld and defect frames.

Each normalised frame keeps every source column (typed) and adds canonical
columns resolved once here, so downstream modules never re-check aliases.
"""

import logging
import math

import pandas as pd

from .config import (
    CARBON_MATERIAL_COEFFICIENT,
    CARBON_WIRE_CODES,
    COMPONENT_ALIASES,
    CUTTING_ALIASES,
    CUTTING_COEFFICIENTS,
    DATE_ALIASES,
    DEFAULT_CUTTING_COEFFICIENT,
    DETECTION_DATE_ALIASES,
    DIAMETER_ALIASES,
    EXECUTOR_ALIASES,
    INTEGER_FIELDS,
    MILLIMETRE_FIELDS,
    ORDER_ALIASES,
    STAGE_ALIASES,
    STAGE_LABELS,
    STAGE_OTHER,
    STAINLESS_MATERIAL_COEFFICIENT,
    STRING_FIELDS,
    THICKNESS_ALIASES,
    WELD_LENGTH_ALIASES,
    WELDER_ALIASES,
    WIRE_MATERIAL_ALIASES,
    WIRE_TOTAL_ALIASES,
)
from .linkage import composite_key
from .loaders.utils import clean_text, date_key, lenient_float, normalise_welder_name

logger = logging.getLogger(__name__)

WELD_COLUMNS = [
    "date", "date_key",
    "order_id", "component_id", "component_key",
    "welder_raw", "welder_normalized",
    "weld_length_m", "wire_total", "diameter", "thickness",
    "cutting_type", "wire_material",
    "cutting_coefficient", "material_coefficient",
]

DEFECT_COLUMNS = [
    "order_id", "component_id", "component_key",
    "stage", "stage_category",
    "detection_date", "detection_date_key",
    "executor_normalized",
]

_STRING_FIELDS_LOWER = [f.lower() for f in STRING_FIELDS]
_INTEGER_FIELDS_LOWER = [f.lower() for f in INTEGER_FIELDS]


# ---------------------------------------------------------------------------
# Cell typing
# ---------------------------------------------------------------------------

def classify_column(column: str) -> str:
    """Return 'string', 'integer' or 'numeric' for a header.

    Matching is a case-insensitive substring test; string fields win over
    integer fields.
    """
    name = column.lower()
    if any(f in name for f in _STRING_FIELDS_LOWER):
        return "string"
    if any(f in name for f in _INTEGER_FIELDS_LOWER):
        return "integer"
    return "numeric"


def _parse_number(text: str) -> float | None:
    try:
        value = float(text.replace(",", ".")) if "," in text else float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def coerce_value(column: str, raw, kind: str | None = None):
    """Type one cell.

    - string: trimmed text.
    - integer: int; 0 if the text is not a number. Blank stays ''.
    - numeric: float if the text is a number (decimal comma allowed),
      otherwise trimmed text. Weld-length columns are converted from
      millimetres to metres.
    """
    kind = kind or classify_column(column)
    text = clean_text(raw)
    if kind == "string" or text == "":
        return text

    number = _parse_number(text)
    if kind == "integer":
        return int(number) if number is not None else 0

    if number is None:
        return text
    if any(f in column.lower() for f in MILLIMETRE_FIELDS):
        return number / 1000
    return number


def normalize_rows(rows: list[dict], headers: list[str]) -> tuple[list[dict], list[str]]:
    """Type every cell of every row.

    Rows whose cells do not line up with the header are dropped.

    Returns
    -------
    (typed_rows, warnings). Each typed row carries its 1-based source line
    number under "_line" (header is line 1).
    """
    kinds = {h: classify_column(h) for h in headers}
    header_set = set(headers)
    typed_rows = []
    warnings = []

    for idx, row in enumerate(rows):
        line = idx + 2
        if set(row) != header_set or any(v is None for v in row.values()):
            warnings.append(f"Row {line}: column count mismatch, row dropped")
            continue
        typed = {h: coerce_value(h, row[h], kinds[h]) for h in headers}
        typed["_line"] = line
        typed_rows.append(typed)

    return typed_rows, warnings


# ---------------------------------------------------------------------------
# Alias resolution and coefficients
# ---------------------------------------------------------------------------

def first_populated(row: dict, aliases: list[str]):
    """Return the value of the first alias with a non-blank value, else None."""
    for alias in aliases:
        val = row.get(alias)
        if val is None:
            continue
        if isinstance(val, str) and not val.strip():
            continue
        return val
    return None


def cutting_coefficient(cutting_type: str) -> float:
    """Complexity coefficient from the first letter of the cutting type."""
    text = clean_text(cutting_type)
    if not text:
        return DEFAULT_CUTTING_COEFFICIENT
    return CUTTING_COEFFICIENTS.get(text[0].upper(), DEFAULT_CUTTING_COEFFICIENT)


def material_coefficient(wire_material: str) -> float:
    """1.0 for carbon-steel wire codes, stainless coefficient otherwise."""
    text = clean_text(wire_material)
    if any(code in text for code in CARBON_WIRE_CODES):
        return CARBON_MATERIAL_COEFFICIENT
    return STAINLESS_MATERIAL_COEFFICIENT


def stage_category(stage: str) -> str:
    return STAGE_LABELS.get(clean_text(stage).lower(), STAGE_OTHER)


# ---------------------------------------------------------------------------
# Frame builders
# ---------------------------------------------------------------------------

def _validated_date(row: dict, aliases: list[str]):
    """Return (date_text, key) or raise ValueError for a malformed date."""
    text = clean_text(first_populated(row, aliases))
    if not text:
        return None, None
    key = date_key(text)
    if key is None:
        raise ValueError(f"Row {row['_line']}: invalid date {text!r}, row dropped")
    return text, key


def _finish_frame(records: list[dict], headers: list[str], canonical: list[str]) -> pd.DataFrame:
    columns = list(headers) + [c for c in canonical if c not in headers]
    df = pd.DataFrame(records, columns=columns)
    return df.astype(object).where(df.notna(), None)


def normalize_main(rows: list[dict], headers: list[str]) -> tuple[pd.DataFrame, list[str], list[str]]:
    """Normalise the weld operations table.

    Parameters
    ----------
    rows : raw rows (header -> cell text) from loaders.read_table().
    headers : ordered source headers.

    Returns
    -------
    (frame, headers, warnings). frame holds the typed source columns plus
    WELD_COLUMNS; rows with a column-count mismatch or a malformed date are
    dropped and reported in warnings. Rows with a blank date are kept with
    date None.
    """
    typed_rows, warnings = normalize_rows(rows, headers)
    records = []

    for row in typed_rows:
        try:
            date_text, key = _validated_date(row, DATE_ALIASES)
        except ValueError as exc:
            warnings.append(str(exc))
            continue

        order_id = clean_text(first_populated(row, ORDER_ALIASES))
        component_id = clean_text(first_populated(row, COMPONENT_ALIASES))
        welder_raw = clean_text(first_populated(row, WELDER_ALIASES))
        cutting_type = clean_text(first_populated(row, CUTTING_ALIASES))
        wire_material = clean_text(first_populated(row, WIRE_MATERIAL_ALIASES))
        length = lenient_float(first_populated(row, WELD_LENGTH_ALIASES))
        if length < 0:
            warnings.append(f"Row {row['_line']}: negative weld length {length}, set to 0")
            length = 0.0

        record = {h: row[h] for h in headers}
        record.update({
            "date": date_text,
            "date_key": key,
            "order_id": order_id,
            "component_id": component_id,
            "component_key": composite_key(order_id, component_id),
            "welder_raw": welder_raw,
            "welder_normalized": normalise_welder_name(welder_raw),
            "weld_length_m": length,
            "wire_total": lenient_float(first_populated(row, WIRE_TOTAL_ALIASES)),
            "diameter": first_populated(row, DIAMETER_ALIASES),
            "thickness": first_populated(row, THICKNESS_ALIASES),
            "cutting_type": cutting_type,
            "wire_material": wire_material,
            "cutting_coefficient": cutting_coefficient(cutting_type),
            "material_coefficient": material_coefficient(wire_material),
        })
        records.append(record)

    for message in warnings:
        logger.warning("Main dataset: %s", message)

    df = _finish_frame(records, headers, WELD_COLUMNS)
    for col in ("weld_length_m", "wire_total", "cutting_coefficient", "material_coefficient"):
        df[col] = df[col].astype(float)
    df["date_key"] = df["date_key"].astype("Int64")

    logger.info("Normalised main dataset: %d of %d rows kept", len(df), len(rows))
    return df, list(headers), warnings


def normalize_defects(rows: list[dict], headers: list[str]) -> tuple[pd.DataFrame, list[str], list[str]]:
    """Normalise the defect (quality event) table.

    Returns
    -------
    (frame, headers, warnings) with DEFECT_COLUMNS added. stage_category is
    'primary-rejection', 'rework' or 'other'.
    """
    typed_rows, warnings = normalize_rows(rows, headers)
    records = []

    for row in typed_rows:
        try:
            date_text, key = _validated_date(row, DETECTION_DATE_ALIASES)
        except ValueError as exc:
            warnings.append(str(exc))
            continue

        order_id = clean_text(first_populated(row, ORDER_ALIASES))
        component_id = clean_text(first_populated(row, COMPONENT_ALIASES))
        stage = clean_text(first_populated(row, STAGE_ALIASES))
        executor = first_populated(row, EXECUTOR_ALIASES)

        record = {h: row[h] for h in headers}
        record.update({
            "order_id": order_id,
            "component_id": component_id,
            "component_key": composite_key(order_id, component_id),
            "stage": stage,
            "stage_category": stage_category(stage),
            "detection_date": date_text,
            "detection_date_key": key,
            "executor_normalized": normalise_welder_name(executor),
        })
        records.append(record)

    for message in warnings:
        logger.warning("Defect dataset: %s", message)

    df = _finish_frame(records, headers, DEFECT_COLUMNS)
    df["detection_date_key"] = df["detection_date_key"].astype("Int64")

    logger.info("Normalised defect dataset: %d of %d rows kept", len(df), len(rows))
    return df, list(headers), warnings
