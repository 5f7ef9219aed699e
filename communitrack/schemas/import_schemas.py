"""Pydantic schemas for spreadsheet import functionality."""

from datetime import date as date_type, datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from communitrack.models.entry import EntryCategory
from communitrack.models.import_batch import ImportStatus

# One unparsed row, keyed by lower-cased column header
RawRow = dict[str, Any]


class ParsedEntryCandidate(BaseModel):
    """A RawRow after field, category and date normalization."""

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: EntryCategory = EntryCategory.SONSTIGES
    tags: list[str] = Field(default_factory=list)
    is_important: bool = False
    date: date_type
    initiator: str | None = None
    mediation_attempt: str | None = None
    chat_extract: str | None = None


class ImportPreview(BaseModel):
    """Validation outcome for one uploaded file."""

    rows: list[RawRow] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    valid_rows: int = 0
    invalid_rows: int = 0
    errors: list[str] = Field(default_factory=list)
    ambiguous_dates: list[str] = Field(default_factory=list)
    file_error: bool = False  # the file itself could not be parsed


class ImportResult(BaseModel):
    """Outcome of committing a preview. Never mutated after the commit loop."""

    model_config = ConfigDict(frozen=True)

    success: int
    failed: int
    errors: list[str] = Field(default_factory=list)


class ImportBatchRecord(BaseModel):
    """Stored preview plus (after commit) its result."""

    id: str
    owner_id: str
    filename: str
    file_type: str
    imported_at: datetime
    status: ImportStatus = ImportStatus.PREVIEWED
    headers: list[str] = Field(default_factory=list)
    rows: list[RawRow] = Field(default_factory=list)
    valid_rows: int = 0
    invalid_rows: int = 0
    errors: list[str] = Field(default_factory=list)
    ambiguous_dates: list[str] = Field(default_factory=list)
    success_count: int = 0
    failed_count: int = 0
    commit_errors: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> str:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v


class ImportPreviewResponse(BaseModel):
    """Response after uploading a spreadsheet."""

    batch_id: str
    filename: str
    status: str
    headers: list[str]
    valid_rows: int
    invalid_rows: int
    errors: list[str]
    ambiguous_dates: list[str]
    preview_rows: list[dict[str, Any]]


class ImportResultResponse(BaseModel):
    """Response after committing an import batch."""

    batch_id: str
    success: int
    failed: int
    errors: list[str]
    status: str


class ImportBatchSummary(BaseModel):
    """Summary of an import batch for listing."""

    id: str
    filename: str
    imported_at: datetime
    status: str
    valid_rows: int
    invalid_rows: int
    success_count: int
    failed_count: int
