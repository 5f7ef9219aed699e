"""File parsing functions for CSV, XLSX and XLS imports.

Every parser returns ``(headers, rows)``: headers lower-cased and trimmed,
rows as dicts keyed by those headers. Only the first sheet of a workbook is
read, fully blank rows are skipped, and at most ``max_rows`` rows are kept.
"""

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time
from typing import Any

import xlrd
from openpyxl import load_workbook

from .constants import MAX_ROWS

logger = logging.getLogger(__name__)


def _normalize_headers(raw_headers: Sequence[Any]) -> list[tuple[int, str]]:
    """Pair each non-empty header with its column position."""
    columns: list[tuple[int, str]] = []
    for index, header in enumerate(raw_headers):
        name = str(header).strip().lower() if header is not None else ""
        if name:
            columns.append((index, name))
    return columns


def _clean_cell(value: Any) -> Any:
    """Trim strings; keep numbers, booleans and dates as typed values."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _build_rows(
    columns: list[tuple[int, str]],
    row_values: Iterable[Sequence[Any]],
    max_rows: int,
) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for values in row_values:
        row = {
            header: _clean_cell(values[index] if index < len(values) else None)
            for index, header in columns
        }
        if not any(value != "" for value in row.values()):
            continue
        if len(rows) >= max_rows:
            logger.warning("Import truncated at %d rows", max_rows)
            break
        rows.append(row)
    return rows


def _decode(file_content: bytes) -> str:
    """Decode CSV bytes as UTF-8 (BOM tolerated), falling back to Latin-1."""
    try:
        return file_content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_content.decode("latin-1")


def parse_csv(file_content: bytes, max_rows: int = MAX_ROWS) -> tuple[list[str], list[dict[str, Any]]]:
    """Parse CSV file content into headers and rows.

    Args:
        file_content: Raw CSV file bytes.
        max_rows: Maximum number of data rows kept.

    Returns:
        Tuple of (headers, rows) where rows are dicts keyed by header name.

    Raises:
        ValueError: If the CSV is empty or has no headers.
    """
    text = _decode(file_content)
    reader = csv.reader(io.StringIO(text, newline=""))

    try:
        raw_headers = next(reader)
    except StopIteration:
        raise ValueError("CSV file is empty")
    except csv.Error as e:
        raise ValueError(f"CSV file could not be read: {e}") from e

    columns = _normalize_headers(raw_headers)
    if not columns:
        raise ValueError("CSV file has no valid headers")

    try:
        rows = _build_rows(columns, reader, max_rows)
    except csv.Error as e:
        raise ValueError(f"CSV file could not be read: {e}") from e

    return [header for _, header in columns], rows


def parse_xlsx(file_content: bytes, max_rows: int = MAX_ROWS) -> tuple[list[str], list[dict[str, Any]]]:
    """Parse XLSX file content into headers and rows (first sheet only).

    Uses openpyxl read_only mode and iterates rows lazily.

    Raises:
        ValueError: If the workbook is empty or has no headers.
    """
    wb = load_workbook(filename=io.BytesIO(file_content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            raise ValueError("XLSX file has no worksheets")

        row_iter = ws.iter_rows(values_only=True)
        try:
            raw_headers = next(row_iter)
        except StopIteration:
            raise ValueError("XLSX file is empty")

        columns = _normalize_headers(raw_headers)
        if not columns:
            raise ValueError("XLSX file has no valid headers")

        rows = _build_rows(columns, row_iter, max_rows)
    finally:
        wb.close()

    return [header for _, header in columns], rows


def _xls_cell_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    return cell.value


def parse_xls(file_content: bytes, max_rows: int = MAX_ROWS) -> tuple[list[str], list[dict[str, Any]]]:
    """Parse a legacy Excel 97-2003 workbook (first sheet only).

    Raises:
        ValueError: If the workbook cannot be read, is empty or has no headers.
    """
    try:
        book = xlrd.open_workbook(file_contents=file_content)
    except xlrd.XLRDError as e:
        raise ValueError(f"XLS file could not be read: {e}") from e

    try:
        if book.nsheets == 0:
            raise ValueError("XLS file has no worksheets")
        sheet = book.sheet_by_index(0)
        if sheet.nrows == 0:
            raise ValueError("XLS file is empty")

        def values(row_index: int) -> list[Any]:
            return [_xls_cell_value(cell, book.datemode) for cell in sheet.row(row_index)]

        columns = _normalize_headers(values(0))
        if not columns:
            raise ValueError("XLS file has no valid headers")

        rows = _build_rows(columns, (values(i) for i in range(1, sheet.nrows)), max_rows)
    finally:
        book.release_resources()

    return [header for _, header in columns], rows

