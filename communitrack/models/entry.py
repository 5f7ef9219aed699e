"""Entry document model for MongoDB with embedded attachment metadata."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field


class EntryCategory(str, Enum):
    """Canonical entry categories, independent of the import language."""

    KONFLIKT = "konflikt"
    GESPRAECH = "gespraech"
    VERHALTEN = "verhalten"
    BEWEIS = "beweis"
    KINDBETREUUNG = "kindbetreuung"
    SONSTIGES = "sonstiges"

    @property
    def label(self) -> str:
        """German display label."""
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[EntryCategory, str] = {
    EntryCategory.KONFLIKT: "Konflikt",
    EntryCategory.GESPRAECH: "Gespräch",
    EntryCategory.VERHALTEN: "Verhalten",
    EntryCategory.BEWEIS: "Beweis",
    EntryCategory.KINDBETREUUNG: "Kindbetreuung",
    EntryCategory.SONSTIGES: "Sonstiges",
}


class Attachment(BaseModel):
    """Embedded subdocument describing a stored attachment."""

    file_name: str
    file_path: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    is_important: bool = False
    context: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Entry(Document):
    """A single logged communication incident."""

    # Owner reference for data isolation
    owner_id: Indexed(PydanticObjectId)

    title: str
    description: str
    category: EntryCategory = EntryCategory.SONSTIGES
    tags: list[str] = Field(default_factory=list)
    is_important: bool = False
    date: Indexed(datetime)

    initiator: Optional[str] = None
    mediation_attempt: Optional[str] = None
    chat_extract: Optional[str] = None

    attachments: list[Attachment] = Field(default_factory=list)

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "entries"
        indexes = [
            [("owner_id", 1), ("date", -1)],  # Compound index for the timeline
            [("owner_id", 1), ("category", 1)],
            [
                ("title", "text"),
                ("description", "text"),
                ("tags", "text"),
                ("initiator", "text"),
            ],
        ]

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, title={self.title}, date={self.date})>"
