"""ImportBatch document model for tracking spreadsheet imports."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field


class ImportStatus(str, Enum):
    """Status of an import batch.

    previewed -> committing -> completed. A file that could not be parsed
    goes straight to failed. Completed and failed batches are never
    committed again.
    """

    PREVIEWED = "previewed"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportBatch(Document):
    """Holds an import preview between upload and confirmation, then its result."""

    owner_id: Indexed(PydanticObjectId)
    filename: str
    file_type: str  # "csv", "xlsx" or "xls"
    imported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: ImportStatus = ImportStatus.PREVIEWED

    # Preview: valid rows in source order plus validation outcome
    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    valid_rows: int = 0
    invalid_rows: int = 0
    errors: list[str] = Field(default_factory=list)
    ambiguous_dates: list[str] = Field(default_factory=list)

    # Commit result
    success_count: int = 0
    failed_count: int = 0
    commit_errors: list[str] = Field(default_factory=list)

    class Settings:
        name = "import_batches"
