"""Pydantic schemas for Entry records."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from communitrack.models.entry import Attachment, EntryCategory


def _clean_tags(value: Any) -> Any:
    """Trim tags and drop empty ones, keeping order."""
    if isinstance(value, list):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    return value


class EntryBase(BaseModel):
    """Base entry schema with common fields."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    category: EntryCategory = EntryCategory.SONSTIGES
    tags: list[str] = Field(default_factory=list)
    is_important: bool = False
    date: datetime
    initiator: str | None = Field(None, max_length=200)
    mediation_attempt: str | None = None
    chat_extract: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> Any:
        return _clean_tags(v)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        """Trim surrounding whitespace so blank text fails min_length."""
        return v.strip() if isinstance(v, str) else v


class EntryCreate(EntryBase):
    """Schema for creating an entry."""

    attachments: list[Attachment] = Field(default_factory=list)


class EntryUpdate(BaseModel):
    """Schema for a partial entry update."""

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = Field(None, min_length=1)
    category: EntryCategory | None = None
    tags: list[str] | None = None
    is_important: bool | None = None
    date: datetime | None = None
    initiator: str | None = Field(None, max_length=200)
    mediation_attempt: str | None = None
    chat_extract: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> Any:
        return _clean_tags(v)


class EntryRead(EntryBase):
    """Entry as returned by the store and the API."""

    id: str
    owner_id: str
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> str:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v


class BulkDeleteRequest(BaseModel):
    """Bulk delete by explicit ids; an empty id list deletes by the query filters."""

    ids: list[str] = Field(default_factory=list)


class BulkDeleteResponse(BaseModel):
    """Outcome of a bulk delete."""

    requested: int
    deleted: int
    failed_ids: list[str] = Field(default_factory=list)


class EntryStats(BaseModel):
    """Dashboard counters."""

    total: int
    important: int
    this_month: int
    by_category: dict[str, int]
