"""
Raw table reader for the weld operations and defect spreadsheets.

Sources are CSV exports (local file or published Google Sheets URL) or
Excel workbooks. Every cell is read as a string; typing happens in
transforms.normalize_rows.

Assumptions
-----------
- The first non-blank line is the header row.
- Blank lines are skipped.
- A UTF-8 BOM on the header is tolerated.
- A row with more cells than the header is dropped with a warning.
- A CSV row with fewer cells is passed on padded with None so that the
  normaliser can reject it as a column-count mismatch. Workbook rows are
  padded with empty cells.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import openpyxl
import pandas as pd

logger = logging.getLogger(__name__)

_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


@dataclass
class RawTable:
    rows: list[dict]
    headers: list[str]
    warnings: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _excel_cell_text(val) -> str:
    """Render an Excel cell the way the CSV export of the same sheet would."""
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return ""
    if isinstance(val, (pd.Timestamp, datetime)):
        return val.strftime("%d.%m.%Y")
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val)


def _read_workbook(path, warnings: list[str]) -> tuple[list[dict], list[str]]:
    """First worksheet as string rows; the first non-blank row is the header."""
    try:
        wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
    except Exception:
        logger.exception("Failed to open workbook: %s", path)
        raise

    try:
        ws = wb.worksheets[0]
        lines = [
            [_excel_cell_text(cell) for cell in row]
            for row in ws.iter_rows(values_only=True)
        ]
    finally:
        wb.close()

    lines = [line for line in lines if any(line)]
    if not lines:
        return [], []

    headers = [h.strip() for h in lines[0]]
    while headers and not headers[-1]:
        headers.pop()

    rows = []
    for line in lines[1:]:
        if any(line[len(headers):]):
            warnings.append(f"Dropped row with {len(line)} cells: column count mismatch")
            continue
        line = line + [""] * (len(headers) - len(line))
        rows.append(dict(zip(headers, line)))
    return rows, headers


def read_table(source) -> RawTable:
    """Read a CSV or Excel source into string rows.

    Parameters
    ----------
    source : Path, path string, URL, or file-like object.

    Returns
    -------
    RawTable with one dict per data row (header -> cell text or None).

    Raises
    ------
    FileNotFoundError, OSError, pandas.errors.ParserError or an openpyxl
    error on unreadable input.
    """
    warnings: list[str] = []

    def _drop_long_row(bad_line: list[str]) -> None:
        warnings.append(f"Dropped row with {len(bad_line)} cells: column count mismatch")
        return None

    is_excel = (
        isinstance(source, (str, Path))
        and not _is_url(str(source))
        and Path(source).suffix.lower() in _EXCEL_SUFFIXES
    )

    if is_excel:
        rows, headers = _read_workbook(source, warnings)
    else:
        df = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
            engine="python",
            on_bad_lines=_drop_long_row,
        )
        df.columns = [str(c).strip() for c in df.columns]
        headers = list(df.columns)
        df = df.astype(object).where(df.notna(), None)
        rows = df.to_dict(orient="records")

    for message in warnings:
        logger.warning("%s: %s", source, message)
    logger.info("Read %d rows x %d columns from %s", len(rows), len(headers), source)
    return RawTable(rows=rows, headers=headers, warnings=warnings)
