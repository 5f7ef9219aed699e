"""Import endpoints for spreadsheet entry import."""

import logging

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status

from communitrack.config import settings
from communitrack.schemas.import_schemas import (
    ImportBatchRecord,
    ImportBatchSummary,
    ImportPreviewResponse,
    ImportResultResponse,
)
from communitrack.services.auth import RequireAuth
from communitrack.services.import_service import (
    ALLOWED_EXTENSIONS,
    TEMPLATE_FILENAME,
    ImportStateError,
    build_import_template,
    build_preview,
    commit_preview,
    get_file_extension,
    store_preview,
)
from communitrack.storage import EntryStore, Store

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _summary(batch: ImportBatchRecord) -> ImportBatchSummary:
    return ImportBatchSummary(
        id=batch.id,
        filename=batch.filename,
        imported_at=batch.imported_at,
        status=batch.status.value,
        valid_rows=batch.valid_rows,
        invalid_rows=batch.invalid_rows,
        success_count=batch.success_count,
        failed_count=batch.failed_count,
    )


async def _read_upload(file: UploadFile) -> bytes:
    """Read an upload in chunks, rejecting files over the size limit."""
    max_size = settings.storage.max_upload_bytes
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(64 * 1024)  # 64 KB chunks
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File exceeds maximum size of {max_size // (1024 * 1024)} MB",
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/upload", response_model=ImportPreviewResponse)
async def upload_spreadsheet(
    current_user: RequireAuth,
    store: Store,
    file: UploadFile = File(..., description="CSV, XLSX or XLS spreadsheet"),
) -> ImportPreviewResponse:
    """Upload a spreadsheet and get the import preview.

    The file is parsed and validated; valid rows are held in an import batch
    until the preview is committed. A file that cannot be parsed still
    returns a preview, with a single error and a failed batch.
    """
    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '.{ext}'. Allowed: CSV, XLSX, XLS",
        )

    content = await _read_upload(file)
    filename = file.filename or f"upload.{ext}"

    preview = build_preview(
        filename,
        content,
        max_rows=settings.imports.max_rows,
        flag_ambiguous_dates=settings.imports.flag_ambiguous_dates,
    )
    batch = await store_preview(store, current_user.id, filename, preview)

    return ImportPreviewResponse(
        batch_id=batch.id,
        filename=batch.filename,
        status=batch.status.value,
        headers=batch.headers,
        valid_rows=batch.valid_rows,
        invalid_rows=batch.invalid_rows,
        errors=batch.errors,
        ambiguous_dates=batch.ambiguous_dates,
        preview_rows=batch.rows[:settings.imports.preview_rows],
    )


@router.post("/{batch_id}/commit", response_model=ImportResultResponse)
async def commit_batch(
    batch_id: str,
    current_user: RequireAuth,
    store: Store,
) -> ImportResultResponse:
    """Create entries from the valid rows of a previewed batch."""
    batch = await _get_user_batch(store, batch_id, current_user.id)

    try:
        result = await commit_preview(store, batch, current_user.id)
    except ImportStateError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    return ImportResultResponse(
        batch_id=batch.id,
        success=result.success,
        failed=result.failed,
        errors=list(result.errors),
        status=batch.status.value,
    )


@router.get("/template")
async def download_template(current_user: RequireAuth) -> Response:
    """Download the import template (German and English sheets)."""
    return Response(
        content=build_import_template(current_user.language),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.get("/batches", response_model=list[ImportBatchSummary])
async def list_batches(current_user: RequireAuth, store: Store) -> list[ImportBatchSummary]:
    """List the current user's import batches."""
    return [_summary(batch) for batch in await store.list_batches(current_user.id)]


@router.get("/batches/{batch_id}", response_model=ImportBatchSummary)
async def get_batch(batch_id: str, current_user: RequireAuth, store: Store) -> ImportBatchSummary:
    """Get details of an import batch."""
    return _summary(await _get_user_batch(store, batch_id, current_user.id))


@router.delete("/batches/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_batch(batch_id: str, current_user: RequireAuth, store: Store) -> None:
    """Delete an import batch (does not delete entries created from it)."""
    if not await store.delete_batch(current_user.id, batch_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import batch '{batch_id}' not found",
        )


async def _get_user_batch(store: EntryStore, batch_id: str, owner_id: str) -> ImportBatchRecord:
    """Get an import batch by ID, verifying ownership.

    Raises:
        HTTPException: If batch not found or not owned by user.
    """
    batch = await store.get_batch(owner_id, batch_id)
    if not batch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import batch '{batch_id}' not found",
        )
    return batch
