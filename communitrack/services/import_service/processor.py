"""Preview and commit of entry imports.

``build_preview`` turns an uploaded file into an ImportPreview; the preview
is stored as an import batch until the user confirms it. ``commit_preview``
then creates one entry per valid row, sequentially and best-effort.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from communitrack.models.import_batch import ImportStatus
from communitrack.schemas.import_schemas import ImportBatchRecord, ImportPreview, ImportResult
from communitrack.storage.base import EntryStore

from .constants import FILE_ERROR_MESSAGE, MAX_ROWS
from .converters import _coerce_text, candidate_to_entry_data, row_to_entry_candidate
from .mapping import resolve_field
from .parsers import parse_csv, parse_xls, parse_xlsx
from .validation import validate_rows

logger = logging.getLogger(__name__)


class ImportStateError(Exception):
    """Raised when committing a batch that is not in the previewed state."""


def get_file_extension(filename: str | None) -> str:
    """Extract the lower-cased file extension from a filename."""
    if not filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def parse_file(
    filename: str,
    content: bytes,
    max_rows: int = MAX_ROWS,
) -> tuple[list[str], list[dict[str, Any]]]:
    """Dispatch to the parser for the file's extension.

    ``.csv`` and ``.xls`` have their own parsers; everything else is read
    as an xlsx workbook.
    """
    ext = get_file_extension(filename)
    if ext == "csv":
        return parse_csv(content, max_rows)
    if ext == "xls":
        return parse_xls(content, max_rows)
    return parse_xlsx(content, max_rows)


def build_preview(
    filename: str,
    content: bytes,
    max_rows: int = MAX_ROWS,
    flag_ambiguous_dates: bool = True,
) -> ImportPreview:
    """Parse and validate an uploaded file.

    Never raises: a file that cannot be parsed yields an empty preview with
    the single error ``FILE_ERROR_MESSAGE``.
    """
    try:
        headers, rows = parse_file(filename, content, max_rows)
    except Exception as e:
        logger.warning("Could not parse import file %s: %s", filename, e)
        return ImportPreview(errors=[FILE_ERROR_MESSAGE], file_error=True)

    preview = validate_rows(rows, headers, flag_ambiguous_dates=flag_ambiguous_dates)
    logger.info(
        "Import preview for %s: %d valid, %d invalid",
        filename, preview.valid_rows, preview.invalid_rows,
    )
    return preview


async def store_preview(
    store: EntryStore,
    owner_id: str,
    filename: str,
    preview: ImportPreview,
) -> ImportBatchRecord:
    """Persist a preview as an import batch awaiting confirmation."""
    return await store.create_batch(
        owner_id,
        {
            "filename": filename,
            "file_type": get_file_extension(filename) or "xlsx",
            "status": ImportStatus.FAILED if preview.file_error else ImportStatus.PREVIEWED,
            "headers": preview.headers,
            "rows": preview.rows,
            "valid_rows": preview.valid_rows,
            "invalid_rows": preview.invalid_rows,
            "errors": preview.errors,
            "ambiguous_dates": preview.ambiguous_dates,
        },
    )


def _failure_reason(error: Exception) -> str:
    if isinstance(error, ValidationError):
        details = error.errors()
        if details:
            location = ".".join(str(part) for part in details[0].get("loc", ()))
            message = details[0].get("msg", "invalid value")
            return f"{location}: {message}" if location else message
    return str(error) or error.__class__.__name__


async def commit_preview(
    store: EntryStore,
    batch: ImportBatchRecord,
    owner_id: str,
    now: datetime | None = None,
) -> ImportResult:
    """Create an entry for every valid row of a previewed batch.

    Rows are saved one at a time in file order. A row that fails to save is
    counted and reported; the remaining rows are still attempted. The batch
    ends in the completed state, or failed if the run was interrupted, and
    cannot be committed again.

    Raises:
        ImportStateError: If the batch is not in the previewed state, or another
            commit claimed it first.
    """
    if batch.status != ImportStatus.PREVIEWED:
        raise ImportStateError(f"Batch is in '{batch.status.value}' state, cannot commit")
    claimed = await store.claim_batch(owner_id, batch.id, ImportStatus.PREVIEWED, ImportStatus.COMMITTING)
    if not claimed:
        raise ImportStateError("Batch is already being committed, cannot commit")
    batch.status = ImportStatus.COMMITTING

    now = now or datetime.now(timezone.utc)
    success = 0
    failed = 0
    errors: list[str] = []
    finished = False
    try:
        for index, row in enumerate(batch.rows):
            try:
                candidate = row_to_entry_candidate(row, now=now)
                await store.create_entry(owner_id, candidate_to_entry_data(candidate, owner_id, now=now))
                success += 1
            except Exception as e:
                failed += 1
                title = _coerce_text(resolve_field(row, "title"))
                errors.append(f"Error saving entry: {title} ({_failure_reason(e)})")
                logger.warning("Import error on row %d of batch %s: %s", index + 1, batch.id, e)
        finished = True
    finally:
        # Never leave the batch claimed; an interrupted run is not retried
        batch.status = ImportStatus.COMPLETED if finished else ImportStatus.FAILED
        batch.success_count = success
        batch.failed_count = failed
        batch.commit_errors = list(errors)
        await store.save_batch(batch)

    result = ImportResult(success=success, failed=failed, errors=errors)
    logger.info("Import batch %s committed: %d saved, %d failed", batch.id, success, failed)
    return result
