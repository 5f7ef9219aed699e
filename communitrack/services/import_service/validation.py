"""Row validation for imported files."""

import logging
from typing import Any

from communitrack.schemas.import_schemas import ImportPreview

from .dates import is_ambiguous_date, normalize_date
from .mapping import is_blank, resolve_field

logger = logging.getLogger(__name__)

# Data rows start below the header row
FIRST_DATA_ROW = 2


def validate_row(row: dict[str, Any], row_number: int) -> list[str]:
    """Return the validation errors of one row (empty when valid)."""
    errors: list[str] = []

    if is_blank(resolve_field(row, "title")):
        errors.append(f"Row {row_number}: title missing.")
    if is_blank(resolve_field(row, "description")):
        errors.append(f"Row {row_number}: description missing.")

    date_value = resolve_field(row, "date")
    if not is_blank(date_value) and normalize_date(date_value) is None:
        errors.append(f"Row {row_number}: invalid date format ({date_value}).")

    return errors


def validate_rows(
    rows: list[dict[str, Any]],
    headers: list[str] | None = None,
    flag_ambiguous_dates: bool = True,
) -> ImportPreview:
    """Split parsed rows into valid and invalid, collecting every error.

    Args:
        rows: Raw rows in file order.
        headers: Lower-cased column headers, carried into the preview.
        flag_ambiguous_dates: Add a warning for valid rows whose date reads
            both as day/month and month/day.

    Returns:
        ImportPreview holding the valid rows in order and all error messages.
    """
    preview = ImportPreview(headers=list(headers or []))

    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW
        row_errors = validate_row(row, row_number)
        if row_errors:
            preview.invalid_rows += 1
            preview.errors.extend(row_errors)
            continue

        preview.valid_rows += 1
        preview.rows.append(row)

        if flag_ambiguous_dates:
            date_value = resolve_field(row, "date")
            if is_ambiguous_date(date_value):
                parsed = normalize_date(date_value)
                preview.ambiguous_dates.append(
                    f"Row {row_number}: date {date_value} is ambiguous, read as {parsed.isoformat()}."
                )

    logger.debug(
        "Validated %d rows: %d valid, %d invalid",
        len(rows), preview.valid_rows, preview.invalid_rows,
    )
    return preview
