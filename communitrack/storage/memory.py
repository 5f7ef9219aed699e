"""In-memory store used when MongoDB is not configured, and in tests.

All state lives on the store instance. The application creates one store at
startup and hands it to request handlers; tests call ``reset()`` between runs.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from bson import ObjectId

from communitrack.models.entry import EntryCategory
from communitrack.models.import_batch import ImportStatus
from communitrack.schemas.entry import EntryRead
from communitrack.schemas.import_schemas import ImportBatchRecord
from communitrack.schemas.user import UserRecord
from communitrack.services.entry_filter import EntryFilter, filter_entries
from communitrack.storage.base import DuplicateUserError, EntryNotFoundError, EntryStore

logger = logging.getLogger(__name__)


def _utc(value: Any) -> Any:
    """Treat naive datetimes as UTC so records stay comparable."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _new_id() -> str:
    return str(ObjectId())


class InMemoryStore(EntryStore):
    """Dictionary-backed store. Not shared between processes."""

    name = "memory"

    def __init__(self, seed_demo_entries: bool = False) -> None:
        self.seed_demo_entries = seed_demo_entries
        self._users: dict[str, UserRecord] = {}
        self._entries: dict[str, EntryRead] = {}
        self._batches: dict[str, ImportBatchRecord] = {}

    def reset(self) -> None:
        """Drop all users, entries and batches."""
        self._users.clear()
        self._entries.clear()
        self._batches.clear()

    # Users

    async def create_user(self, data: dict[str, Any]) -> UserRecord:
        email = data["email"].lower()
        for user in self._users.values():
            if user.email == email or user.username == data["username"]:
                raise DuplicateUserError("Email or username already registered")

        now = datetime.now(timezone.utc)
        user = UserRecord(
            **{**data, "email": email},
            id=_new_id(),
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        logger.debug("Created user %s in memory store", user.id)

        if self.seed_demo_entries:
            await self._seed_entries(user.id)
        return user

    async def get_user(self, user_id: str) -> UserRecord | None:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        email = email.lower()
        return next((user for user in self._users.values() if user.email == email), None)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> UserRecord | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update={**changes, "updated_at": datetime.now(timezone.utc)})
        self._users[user_id] = updated
        return updated

    async def list_users(self) -> list[UserRecord]:
        return sorted(self._users.values(), key=lambda user: user.username)

    # Entries

    async def list_entries(self, owner_id: str, filters: EntryFilter | None = None) -> list[EntryRead]:
        owned = [entry for entry in self._entries.values() if entry.owner_id == owner_id]
        owned.sort(key=lambda entry: entry.date, reverse=True)
        return filter_entries(owned, filters)

    async def get_entry(self, owner_id: str, entry_id: str) -> EntryRead | None:
        entry = self._entries.get(entry_id)
        if entry is None or entry.owner_id != owner_id:
            return None
        return entry

    async def create_entry(self, owner_id: str, data: dict[str, Any]) -> EntryRead:
        now = datetime.now(timezone.utc)
        values = {key: _utc(value) for key, value in {"created_at": now, "updated_at": now, **data}.items()}
        entry = EntryRead(**{**values, "id": _new_id(), "owner_id": owner_id})
        self._entries[entry.id] = entry
        return entry

    async def update_entry(self, owner_id: str, entry_id: str, changes: dict[str, Any]) -> EntryRead | None:
        entry = await self.get_entry(owner_id, entry_id)
        if entry is None:
            return None
        changes = {key: _utc(value) for key, value in changes.items()}
        changes["updated_at"] = datetime.now(timezone.utc)
        updated = EntryRead.model_validate({**entry.model_dump(), **changes})
        self._entries[entry_id] = updated
        return updated

    async def delete_entry(self, owner_id: str, entry_id: str) -> bool:
        if await self.get_entry(owner_id, entry_id) is None:
            return False
        del self._entries[entry_id]
        return True

    async def _seed_entries(self, owner_id: str) -> None:
        """Give a fresh user two example entries."""
        now = datetime.now(timezone.utc)
        await self.create_entry(
            owner_id,
            {
                "title": "Willkommen bei CommuniTrack",
                "description": (
                    "Dies ist Ihr erster Beispiel-Eintrag. Sie können ihn bearbeiten oder löschen "
                    "und mit der Dokumentation Ihrer Kommunikation beginnen."
                ),
                "category": EntryCategory.SONSTIGES,
                "tags": ["willkommen", "beispiel"],
                "date": now,
            },
        )
        yesterday = now - timedelta(days=1)
        await self.create_entry(
            owner_id,
            {
                "title": "Beispiel-Konflikt",
                "description": "Ein Beispiel für einen Konflikt-Eintrag.",
                "category": EntryCategory.KONFLIKT,
                "tags": ["wichtig", "dokumentation"],
                "is_important": True,
                "date": yesterday,
                "created_at": yesterday,
                "updated_at": yesterday,
            },
        )

    # Import batches

    async def create_batch(self, owner_id: str, data: dict[str, Any]) -> ImportBatchRecord:
        values = {"imported_at": datetime.now(timezone.utc), **data}
        batch = ImportBatchRecord(**{**values, "id": _new_id(), "owner_id": owner_id})
        self._batches[batch.id] = batch
        return batch

    async def get_batch(self, owner_id: str, batch_id: str) -> ImportBatchRecord | None:
        batch = self._batches.get(batch_id)
        if batch is None or batch.owner_id != owner_id:
            return None
        return batch.model_copy(deep=True)

    async def save_batch(self, batch: ImportBatchRecord) -> ImportBatchRecord:
        if batch.id not in self._batches:
            raise EntryNotFoundError(f"Import batch '{batch.id}' not found")
        self._batches[batch.id] = batch.model_copy(deep=True)
        return batch

    async def claim_batch(
        self,
        owner_id: str,
        batch_id: str,
        expected: ImportStatus,
        new: ImportStatus,
    ) -> bool:
        # Check and write happen without an await in between
        batch = self._batches.get(batch_id)
        if batch is None or batch.owner_id != owner_id or batch.status != expected:
            return False
        batch.status = new
        return True

    async def list_batches(self, owner_id: str) -> list[ImportBatchRecord]:
        owned = [batch for batch in self._batches.values() if batch.owner_id == owner_id]
        return sorted(owned, key=lambda batch: batch.imported_at, reverse=True)

    async def delete_batch(self, owner_id: str, batch_id: str) -> bool:
        if await self.get_batch(owner_id, batch_id) is None:
            return False
        del self._batches[batch_id]
        return True
