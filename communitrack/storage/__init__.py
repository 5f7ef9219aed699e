"""Entry storage backends.

``create_store`` picks MongoDB when a connection URL is configured and falls
back to the in-memory store otherwise. Request handlers get the active store
through the ``get_store`` dependency.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from communitrack.config import Settings
from communitrack.storage.base import DuplicateUserError, EntryNotFoundError, EntryStore, StorageError
from communitrack.storage.memory import InMemoryStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> EntryStore:
    """Build the store selected by the database configuration."""
    backend = settings.database_backend
    if backend == "mongodb":
        if not settings.mongodb_url:
            raise StorageError("database.backend is 'mongodb' but no MongoDB URL is configured")
        from communitrack.storage.mongo import MongoStore

        return MongoStore(settings.mongodb_url, settings.database.mongodb_database)

    logger.warning("No MongoDB configured; entries are kept in memory and lost on restart")
    return InMemoryStore(seed_demo_entries=settings.database.seed_demo_entries)


def get_store(request: Request) -> EntryStore:
    """FastAPI dependency returning the application's store."""
    return request.app.state.store


Store = Annotated[EntryStore, Depends(get_store)]

__all__ = [
    "DuplicateUserError",
    "EntryNotFoundError",
    "EntryStore",
    "InMemoryStore",
    "Store",
    "StorageError",
    "create_store",
    "get_store",
]
