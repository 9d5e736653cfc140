"""Data ingestion for the weld operations and defect spreadsheets."""

from .tables import RawTable, read_table
from .utils import (
    clean_text,
    date_key,
    is_valid_date_format,
    lenient_float,
    normalise_welder_name,
    parse_date,
    safe_float,
)

__all__ = [
    "RawTable",
    "read_table",
    "clean_text",
    "date_key",
    "is_valid_date_format",
    "lenient_float",
    "normalise_welder_name",
    "parse_date",
    "safe_float",
]
