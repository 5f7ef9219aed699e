"""MongoDB store backed by the Beanie documents."""

import logging
from datetime import datetime, timezone
from typing import Any

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from communitrack.database import close_db, init_db
from communitrack.models import Entry, ImportBatch, User
from communitrack.models.import_batch import ImportStatus
from communitrack.schemas.entry import EntryRead
from communitrack.schemas.import_schemas import ImportBatchRecord
from communitrack.schemas.user import UserRecord
from communitrack.services.entry_filter import EntryFilter, build_mongo_query
from communitrack.storage.base import DuplicateUserError, EntryNotFoundError, EntryStore

logger = logging.getLogger(__name__)


def _object_id(value: str) -> PydanticObjectId | None:
    """Parse an id from a URL or token; None when it is not an ObjectId."""
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        return None


class MongoStore(EntryStore):
    """Store that persists to MongoDB through Beanie."""

    name = "mongodb"

    def __init__(self, mongodb_url: str, mongodb_database: str) -> None:
        self.mongodb_url = mongodb_url
        self.mongodb_database = mongodb_database

    async def connect(self) -> None:
        await init_db(self.mongodb_url, self.mongodb_database)
        logger.info("Connected to MongoDB database %s", self.mongodb_database)

    async def close(self) -> None:
        await close_db()
        logger.info("MongoDB connection closed")

    # Users

    async def create_user(self, data: dict[str, Any]) -> UserRecord:
        user = User(**{**data, "email": data["email"].lower()})
        try:
            await user.insert()
        except DuplicateKeyError as e:
            raise DuplicateUserError("Email or username already registered") from e
        return UserRecord.model_validate(user)

    async def _get_user_document(self, user_id: str) -> User | None:
        oid = _object_id(user_id)
        if oid is None:
            return None
        return await User.get(oid)

    async def get_user(self, user_id: str) -> UserRecord | None:
        user = await self._get_user_document(user_id)
        return UserRecord.model_validate(user) if user else None

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        user = await User.find_one(User.email == email.lower())
        return UserRecord.model_validate(user) if user else None

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> UserRecord | None:
        user = await self._get_user_document(user_id)
        if user is None:
            return None
        await user.set({**changes, "updated_at": datetime.now(timezone.utc)})
        return UserRecord.model_validate(user)

    async def list_users(self) -> list[UserRecord]:
        users = await User.find_all().sort("+username").to_list()
        return [UserRecord.model_validate(user) for user in users]

    # Entries

    async def _get_entry_document(self, owner_id: str, entry_id: str) -> Entry | None:
        oid = _object_id(entry_id)
        owner = _object_id(owner_id)
        if oid is None or owner is None:
            return None
        return await Entry.find_one(Entry.id == oid, Entry.owner_id == owner)

    async def list_entries(self, owner_id: str, filters: EntryFilter | None = None) -> list[EntryRead]:
        owner = _object_id(owner_id)
        if owner is None:
            return []
        query = build_mongo_query(owner, filters)
        entries = await Entry.find(query).sort(-Entry.date).to_list()
        return [EntryRead.model_validate(entry) for entry in entries]

    async def get_entry(self, owner_id: str, entry_id: str) -> EntryRead | None:
        entry = await self._get_entry_document(owner_id, entry_id)
        return EntryRead.model_validate(entry) if entry else None

    async def create_entry(self, owner_id: str, data: dict[str, Any]) -> EntryRead:
        entry = Entry(**{**data, "owner_id": PydanticObjectId(owner_id)})
        await entry.insert()
        return EntryRead.model_validate(entry)

    async def update_entry(self, owner_id: str, entry_id: str, changes: dict[str, Any]) -> EntryRead | None:
        entry = await self._get_entry_document(owner_id, entry_id)
        if entry is None:
            return None
        for field, value in changes.items():
            setattr(entry, field, value)
        entry.updated_at = datetime.now(timezone.utc)
        await entry.save()
        return EntryRead.model_validate(entry)

    async def delete_entry(self, owner_id: str, entry_id: str) -> bool:
        entry = await self._get_entry_document(owner_id, entry_id)
        if entry is None:
            return False
        await entry.delete()
        return True

    # Import batches

    async def _get_batch_document(self, owner_id: str, batch_id: str) -> ImportBatch | None:
        oid = _object_id(batch_id)
        owner = _object_id(owner_id)
        if oid is None or owner is None:
            return None
        return await ImportBatch.find_one(ImportBatch.id == oid, ImportBatch.owner_id == owner)

    async def create_batch(self, owner_id: str, data: dict[str, Any]) -> ImportBatchRecord:
        batch = ImportBatch(**{**data, "owner_id": PydanticObjectId(owner_id)})
        await batch.insert()
        return ImportBatchRecord.model_validate(batch)

    async def get_batch(self, owner_id: str, batch_id: str) -> ImportBatchRecord | None:
        batch = await self._get_batch_document(owner_id, batch_id)
        return ImportBatchRecord.model_validate(batch) if batch else None

    async def save_batch(self, batch: ImportBatchRecord) -> ImportBatchRecord:
        document = await self._get_batch_document(batch.owner_id, batch.id)
        if document is None:
            raise EntryNotFoundError(f"Import batch '{batch.id}' not found")
        changes = batch.model_dump(exclude={"id", "owner_id", "imported_at"})
        changes["status"] = batch.status.value
        await document.set(changes)
        return batch

    async def claim_batch(
        self,
        owner_id: str,
        batch_id: str,
        expected: ImportStatus,
        new: ImportStatus,
    ) -> bool:
        oid = _object_id(batch_id)
        owner = _object_id(owner_id)
        if oid is None or owner is None:
            return False
        # Conditional update: only one caller can match the expected status
        result = await ImportBatch.find_one(
            ImportBatch.id == oid,
            ImportBatch.owner_id == owner,
            ImportBatch.status == expected.value,
        ).update({"$set": {"status": new.value}})
        return result is not None and result.modified_count == 1

    async def list_batches(self, owner_id: str) -> list[ImportBatchRecord]:
        owner = _object_id(owner_id)
        if owner is None:
            return []
        batches = (
            await ImportBatch.find(ImportBatch.owner_id == owner)
            .sort(-ImportBatch.imported_at)
            .to_list()
        )
        return [ImportBatchRecord.model_validate(batch) for batch in batches]

    async def delete_batch(self, owner_id: str, batch_id: str) -> bool:
        batch = await self._get_batch_document(owner_id, batch_id)
        if batch is None:
            return False
        await batch.delete()
        return True
