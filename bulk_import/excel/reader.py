from __future__ import annotations

import csv
import io
import math
from collections.abc import Sequence
from datetime import date, datetime, time
from typing import Any

import pandas as pd

from ..models.raw_table import RawTable

"""Tabular parser: uploaded file bytes -> RawTable.

Rules:
- Supported formats: CSV (comma-delimited) and xlsx/xlsm workbooks (first sheet only).
- Size and row ceilings are enforced before any row-level state exists.
- Fully blank lines are skipped; the first non-empty line is the header row
  (or, with header_strategy="detect", the most label-like of the first lines,
  for HR exports carrying title rows above the real header).
- Data rows are truncated/padded to the header width; cells are trimmed, case preserved.
- Duplicate header names are disambiguated positionally, never collapsed.
"""

__all__ = [
    "IngestionError",
    "UnsupportedFormat",
    "EmptyFile",
    "TooManyRows",
    "FileTooLarge",
    "SUPPORTED_EXTENSIONS",
    "DEFAULT_MAX_ROWS",
    "DEFAULT_MAX_BYTES",
    "parse_file",
    "normalize_extension",
]

CSV_EXTENSIONS = frozenset({".csv"})
WORKBOOK_EXTENSIONS = frozenset({".xlsx", ".xlsm"})
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | WORKBOOK_EXTENSIONS

DEFAULT_MAX_ROWS = 500
DEFAULT_MAX_BYTES = 10 * 1024 * 1024

HEADER_STRATEGIES = ("first_non_empty", "detect")
HEADER_SCAN_LINES = 10
HEADER_LABEL_MAX_LEN = 60


class IngestionError(Exception):
    """Base class for "fix your file" errors raised before any row state exists."""


class UnsupportedFormat(IngestionError):
    pass


class EmptyFile(IngestionError):
    pass


class TooManyRows(IngestionError):
    pass


class FileTooLarge(IngestionError):
    pass


def normalize_extension(extension: str) -> str:
    ext = extension.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def parse_file(
    data: bytes,
    extension: str,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_bytes: int = DEFAULT_MAX_BYTES,
    header_strategy: str = "first_non_empty",
) -> RawTable:
    """Parse uploaded bytes into a RawTable.

    Parameters
    ----------
    data: raw file content
    extension: declared extension (".csv", "xlsx", ...)
    max_rows: data row ceiling (header excluded)
    max_bytes: file size ceiling
    header_strategy: "first_non_empty" or "detect"

    Raises
    ------
    UnsupportedFormat, FileTooLarge, EmptyFile, TooManyRows
    """
    ext = normalize_extension(extension)
    if ext not in SUPPORTED_EXTENSIONS:
        allowed = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise UnsupportedFormat(f"unsupported file type '{extension}' (expected one of: {allowed})")
    if header_strategy not in HEADER_STRATEGIES:
        raise ValueError(f"unknown header_strategy: {header_strategy!r}")
    if len(data) > max_bytes:
        raise FileTooLarge(
            f"file is {len(data) / (1024 * 1024):.1f} MB; the limit is "
            f"{max_bytes / (1024 * 1024):.0f} MB"
        )

    grid = _read_csv_grid(data) if ext in CSV_EXTENSIONS else _read_workbook_grid(data)
    return _grid_to_table(grid, max_rows=max_rows, header_strategy=header_strategy)


def _decode_csv(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Excel "Save as CSV" on Windows
        return data.decode("cp1252", errors="replace")


def _read_csv_grid(data: bytes) -> list[list[str]]:
    text = _decode_csv(data)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=",")
    return [[cell.strip() for cell in line] for line in reader]


def _read_workbook_grid(data: bytes) -> list[list[str]]:
    try:
        # sheet_name=0: first sheet only; header=None: header row chosen below
        df = pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=None,
            engine="openpyxl",
            keep_default_na=False,
            na_values=[],
        )
    except Exception as e:
        raise UnsupportedFormat(f"could not read workbook: {e}") from e
    return [[_cell_to_text(v) for v in row] for row in df.itertuples(index=False, name=None)]


def _cell_to_text(value: Any) -> str:
    """Render a workbook cell the way it would look in a CSV export."""
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value).strip()


def _is_blank(line: Sequence[str]) -> bool:
    return all(cell == "" for cell in line)


def _label_score(line: Sequence[str]) -> int:
    """Distinct non-numeric, reasonably short cells: how header-like a line looks."""
    seen: set[str] = set()
    for cell in line:
        if not cell or len(cell) > HEADER_LABEL_MAX_LEN:
            continue
        try:
            float(cell)
            continue
        except ValueError:
            pass
        seen.add(cell.lower())
    return len(seen)


def _pick_header(lines: list[list[str]], header_strategy: str) -> int:
    if header_strategy == "first_non_empty":
        return 0
    best_idx, best_score = 0, -1
    for idx, line in enumerate(lines[:HEADER_SCAN_LINES]):
        score = _label_score(line)
        if score > best_score:
            best_idx, best_score = idx, score
    return best_idx


def _disambiguate_headers(raw_headers: Sequence[str]) -> list[str]:
    headers: list[str] = []
    seen: set[str] = set()
    for idx, text in enumerate(raw_headers):
        name = text or f"Column {idx + 1}"
        if name in seen:
            name = f"{name} ({idx + 1})"
        # pathological: "Email (3)" already present as a literal header
        while name in seen:
            name = f"{name}*"
        seen.add(name)
        headers.append(name)
    return headers


def _grid_to_table(grid: list[list[str]], *, max_rows: int, header_strategy: str) -> RawTable:
    lines = [line for line in grid if not _is_blank(line)]
    if not lines:
        raise EmptyFile("the file is empty")

    header_idx = _pick_header(lines, header_strategy)
    header_line = list(lines[header_idx])
    # trailing blank header cells belong to ragged data, not to real columns
    while header_line and header_line[-1] == "":
        header_line.pop()
    headers = _disambiguate_headers(header_line)
    width = len(headers)

    data_lines = lines[header_idx + 1:]
    if not data_lines:
        raise EmptyFile("no data rows found below the header row")
    if len(data_lines) > max_rows:
        raise TooManyRows(
            f"the file has {len(data_lines)} data rows; at most {max_rows} can be imported at once"
        )

    rows: list[dict[str, str]] = []
    for line in data_lines:
        cells = list(line[:width]) + [""] * max(0, width - len(line))
        rows.append(dict(zip(headers, cells, strict=True)))
    return RawTable(headers=tuple(headers), rows=tuple(rows))
