"""MongoDB document models for CommuniTrack."""

from communitrack.models.entry import CATEGORY_LABELS, Attachment, Entry, EntryCategory
from communitrack.models.import_batch import ImportBatch, ImportStatus
from communitrack.models.user import User

__all__ = [
    # Main documents
    "Entry",
    "User",
    "ImportBatch",
    # Embedded subdocuments
    "Attachment",
    # Enums
    "EntryCategory",
    "CATEGORY_LABELS",
    "ImportStatus",
]
