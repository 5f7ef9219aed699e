"""Storage protocol shared by the MongoDB and in-memory backends."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from communitrack.models.import_batch import ImportStatus
from communitrack.schemas.entry import EntryRead
from communitrack.schemas.import_schemas import ImportBatchRecord
from communitrack.schemas.user import UserRecord
from communitrack.services.entry_filter import EntryFilter

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for storage failures."""


class EntryNotFoundError(StorageError):
    """Raised when an entry or batch does not exist for the given owner."""


class DuplicateUserError(StorageError):
    """Raised when the email or username is already registered."""


class EntryStore(ABC):
    """Persistence for users, entries and import batches.

    Every entry and batch operation is scoped to an owner id; records of
    other owners behave as if they did not exist.
    """

    name: str = "abstract"

    async def connect(self) -> None:
        """Open connections. Called once at application startup."""

    async def close(self) -> None:
        """Release connections. Called once at application shutdown."""

    # Users

    @abstractmethod
    async def create_user(self, data: dict[str, Any]) -> UserRecord:
        """Insert a user; raises DuplicateUserError on email/username clash."""

    @abstractmethod
    async def get_user(self, user_id: str) -> UserRecord | None: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> UserRecord | None: ...

    @abstractmethod
    async def update_user(self, user_id: str, changes: dict[str, Any]) -> UserRecord | None: ...

    @abstractmethod
    async def list_users(self) -> list[UserRecord]: ...

    # Entries

    @abstractmethod
    async def list_entries(self, owner_id: str, filters: EntryFilter | None = None) -> list[EntryRead]:
        """List an owner's entries, newest date first."""

    @abstractmethod
    async def get_entry(self, owner_id: str, entry_id: str) -> EntryRead | None: ...

    @abstractmethod
    async def create_entry(self, owner_id: str, data: dict[str, Any]) -> EntryRead:
        """Insert a new entry; the store assigns id and timestamps when missing."""

    @abstractmethod
    async def update_entry(self, owner_id: str, entry_id: str, changes: dict[str, Any]) -> EntryRead | None:
        """Apply a partial update and bump updated_at; None if not found."""

    @abstractmethod
    async def delete_entry(self, owner_id: str, entry_id: str) -> bool: ...

    # Import batches

    @abstractmethod
    async def create_batch(self, owner_id: str, data: dict[str, Any]) -> ImportBatchRecord: ...

    @abstractmethod
    async def get_batch(self, owner_id: str, batch_id: str) -> ImportBatchRecord | None: ...

    @abstractmethod
    async def save_batch(self, batch: ImportBatchRecord) -> ImportBatchRecord:
        """Persist the current state of a batch; raises EntryNotFoundError if gone."""

    @abstractmethod
    async def claim_batch(
        self,
        owner_id: str,
        batch_id: str,
        expected: ImportStatus,
        new: ImportStatus,
    ) -> bool:
        """Move a batch from ``expected`` to ``new`` in one atomic step.

        Returns False, and changes nothing, when the batch is missing, owned
        by someone else or not in ``expected``.
        """

    @abstractmethod
    async def list_batches(self, owner_id: str) -> list[ImportBatchRecord]:
        """List an owner's batches, newest first."""

    @abstractmethod
    async def delete_batch(self, owner_id: str, batch_id: str) -> bool: ...
