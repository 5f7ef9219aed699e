"""MongoDB connection and Beanie ODM setup used by the Mongo store."""

import logging
from typing import TYPE_CHECKING

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from communitrack.config import settings

if TYPE_CHECKING:
    from beanie import Document

logger = logging.getLogger(__name__)

# Set by init_db, cleared by close_db
client: AsyncIOMotorClient | None = None
database: AsyncIOMotorDatabase | None = None


def get_document_models() -> list[type["Document"]]:
    """Documents registered with Beanie: users, entries and import batches."""
    from communitrack.models import Entry, ImportBatch, User

    return [User, Entry, ImportBatch]


async def init_db(
    mongodb_url: str,
    mongodb_database: str,
    motor_client: AsyncIOMotorClient | None = None,
) -> AsyncIOMotorDatabase:
    """Connect to MongoDB, register the documents and build their indexes.

    The client is timezone-aware so stored entry dates come back as UTC,
    the same as in the in-memory store. Pool sizes come from the database
    configuration unless an existing ``motor_client`` is passed in.
    """
    global client, database

    client = motor_client or AsyncIOMotorClient(
        mongodb_url,
        minPoolSize=settings.database.min_pool_size,
        maxPoolSize=settings.database.max_pool_size,
        tz_aware=True,
    )
    database = client[mongodb_database]

    models = get_document_models()
    await init_beanie(database=database, document_models=models)
    logger.debug("Beanie initialized on %s with %d document models", mongodb_database, len(models))
    return database


async def close_db() -> None:
    global client, database

    if client is not None:
        client.close()
    client = None
    database = None


def get_database() -> AsyncIOMotorDatabase:
    """Get the database opened by init_db.

    Raises:
        RuntimeError: If init_db has not been called.
    """
    if database is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return database
