"""Tests for the MongoDB store against a real server.

Skipped when no MongoDB is reachable at TEST_MONGODB_URL.
"""

import asyncio
import os
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from communitrack.models.entry import EntryCategory
from communitrack.models.import_batch import ImportStatus
from communitrack.services.entry_filter import EntryFilter
from communitrack.services.import_service import (
    ImportStateError,
    build_preview,
    commit_preview,
    store_preview,
)
from communitrack.storage import DuplicateUserError
from communitrack.storage.mongo import MongoStore

# MongoDB connection URL for tests (can be overridden with env var)
TEST_MONGODB_URL = os.environ.get("TEST_MONGODB_URL", "mongodb://localhost:27017")


def _mongodb_available() -> bool:
    client = MongoClient(TEST_MONGODB_URL, serverSelectionTimeoutMS=500)
    try:
        client.admin.command("ping")
        return True
    except PyMongoError:
        return False
    finally:
        client.close()


pytestmark = pytest.mark.skipif(not _mongodb_available(), reason="MongoDB not reachable")


@pytest_asyncio.fixture
async def mongo_store() -> AsyncGenerator[MongoStore, None]:
    """A MongoStore on a unique database, dropped after the test."""
    db_name = f"test_communitrack_{uuid.uuid4().hex[:8]}"
    store = MongoStore(TEST_MONGODB_URL, db_name)
    await store.connect()
    yield store

    from communitrack.database import get_database

    await get_database().client.drop_database(db_name)
    await store.close()


async def _user(store: MongoStore, email: str = "anna@example.com", username: str = "anna"):
    return await store.create_user({"email": email, "username": username, "hashed_password": "hash"})


@pytest.mark.asyncio
async def test_users(mongo_store: MongoStore) -> None:
    user = await _user(mongo_store, email="Anna@Example.com")
    assert user.email == "anna@example.com"
    assert (await mongo_store.get_user_by_email("anna@example.com")).id == user.id
    assert await mongo_store.get_user("not-an-object-id") is None

    with pytest.raises(DuplicateUserError):
        await _user(mongo_store, username="anna2")

    updated = await mongo_store.update_user(user.id, {"language": "en"})
    assert updated.language == "en"


@pytest.mark.asyncio
async def test_entries_scoped_and_filtered(mongo_store: MongoStore) -> None:
    anna = await _user(mongo_store)
    bert = await _user(mongo_store, "bert@example.com", "bert")

    await mongo_store.create_entry(anna.id, {
        "title": "Streit", "description": "Laut", "category": EntryCategory.KONFLIKT,
        "date": datetime(2024, 3, 10, tzinfo=timezone.utc), "tags": ["kinder"],
    })
    telefonat = await mongo_store.create_entry(anna.id, {
        "title": "Telefonat", "description": "Kurz",
        "date": datetime(2024, 3, 15, tzinfo=timezone.utc),
    })

    entries = await mongo_store.list_entries(anna.id)
    assert [entry.title for entry in entries] == ["Telefonat", "Streit"]
    assert await mongo_store.list_entries(bert.id) == []

    found = await mongo_store.list_entries(anna.id, EntryFilter(search="STREIT"))
    assert [entry.title for entry in found] == ["Streit"]
    found = await mongo_store.list_entries(anna.id, EntryFilter(date_to=datetime(2024, 3, 10).date()))
    assert [entry.title for entry in found] == ["Streit"]

    assert await mongo_store.get_entry(bert.id, telefonat.id) is None
    updated = await mongo_store.update_entry(anna.id, telefonat.id, {"is_important": True})
    assert updated.is_important is True
    assert await mongo_store.delete_entry(anna.id, telefonat.id) is True
    assert await mongo_store.delete_entry(anna.id, telefonat.id) is False


@pytest.mark.asyncio
async def test_import_round_trip(mongo_store: MongoStore) -> None:
    anna = await _user(mongo_store)
    content = b"title,description,date\nCall,Short,15.03.2024\nMeeting,Long,16.03.2024\n"
    batch = await store_preview(mongo_store, anna.id, "a.csv", build_preview("a.csv", content))

    result = await commit_preview(mongo_store, batch, anna.id)
    assert result.success == 2

    stored = await mongo_store.get_batch(anna.id, batch.id)
    assert stored.status == ImportStatus.COMPLETED
    assert stored.success_count == 2
    assert [b.id for b in await mongo_store.list_batches(anna.id)] == [batch.id]
    assert len(await mongo_store.list_entries(anna.id)) == 2


@pytest.mark.asyncio
async def test_claim_batch_is_conditional(mongo_store: MongoStore) -> None:
    anna = await _user(mongo_store)
    bert = await _user(mongo_store, "bert@example.com", "bert")
    batch = await mongo_store.create_batch(anna.id, {"filename": "a.csv", "file_type": "csv"})

    assert await mongo_store.claim_batch(bert.id, batch.id, ImportStatus.PREVIEWED, ImportStatus.COMMITTING) is False
    assert await mongo_store.claim_batch(anna.id, batch.id, ImportStatus.PREVIEWED, ImportStatus.COMMITTING) is True
    assert await mongo_store.claim_batch(anna.id, batch.id, ImportStatus.PREVIEWED, ImportStatus.COMMITTING) is False
    assert await mongo_store.claim_batch(anna.id, "not-an-object-id", ImportStatus.PREVIEWED, ImportStatus.COMMITTING) is False
    assert (await mongo_store.get_batch(anna.id, batch.id)).status == ImportStatus.COMMITTING


@pytest.mark.asyncio
async def test_concurrent_commits_import_once(mongo_store: MongoStore) -> None:
    anna = await _user(mongo_store)
    content = b"title,description\nCall,Short\nMeeting,Long\n"
    batch = await store_preview(mongo_store, anna.id, "a.csv", build_preview("a.csv", content))
    first = await mongo_store.get_batch(anna.id, batch.id)
    second = await mongo_store.get_batch(anna.id, batch.id)

    results = await asyncio.gather(
        commit_preview(mongo_store, first, anna.id),
        commit_preview(mongo_store, second, anna.id),
        return_exceptions=True,
    )

    assert sum(isinstance(r, ImportStateError) for r in results) == 1
    assert len(await mongo_store.list_entries(anna.id)) == 2
