"""Entry endpoints: timeline listing, CRUD, bulk delete and statistics."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from communitrack.models.entry import EntryCategory
from communitrack.schemas.entry import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    EntryCreate,
    EntryRead,
    EntryStats,
    EntryUpdate,
)
from communitrack.services.auth import RequireAuth
from communitrack.services.entry_filter import EntryFilter, compute_stats
from communitrack.storage import Store

logger = logging.getLogger(__name__)

router = APIRouter()


def entry_filter_params(
    date_from: date | None = None,
    date_to: date | None = None,
    category: EntryCategory | None = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    is_important: bool | None = None,
    has_attachments: bool | None = None,
    tags: Annotated[list[str] | None, Query()] = None,
) -> EntryFilter:
    """Collect the timeline filter from query parameters."""
    return EntryFilter(
        date_from=date_from,
        date_to=date_to,
        category=category,
        search=search,
        is_important=is_important,
        has_attachments=has_attachments,
        tags=tags or [],
    )


Filters = Annotated[EntryFilter, Depends(entry_filter_params)]


def _not_found(entry_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Entry with ID {entry_id} not found",
    )


@router.get("", response_model=list[EntryRead])
async def list_entries(
    current_user: RequireAuth,
    store: Store,
    filters: Filters,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> list[EntryRead]:
    """List the current user's entries, newest first, with optional filters."""
    entries = await store.list_entries(current_user.id, filters)
    return entries[skip:skip + limit]


@router.get("/stats", response_model=EntryStats)
async def entry_stats(current_user: RequireAuth, store: Store) -> EntryStats:
    """Dashboard counters for the current user."""
    return compute_stats(await store.list_entries(current_user.id))


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_entries(
    request: BulkDeleteRequest,
    current_user: RequireAuth,
    store: Store,
    filters: Filters,
) -> BulkDeleteResponse:
    """Delete several entries, by explicit ids or by filter.

    With an empty id list the query filters select the entries; at least one
    filter criterion is then required. Entries are deleted one at a time and
    ids that cannot be deleted are reported back.
    """
    if request.ids:
        ids = list(dict.fromkeys(request.ids))
    else:
        if filters.is_empty():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Provide entry ids or at least one filter criterion",
            )
        ids = [entry.id for entry in await store.list_entries(current_user.id, filters)]

    deleted = 0
    failed_ids: list[str] = []
    for entry_id in ids:
        if await store.delete_entry(current_user.id, entry_id):
            deleted += 1
        else:
            failed_ids.append(entry_id)

    logger.info(
        "Bulk delete for user %s: %d of %d entries deleted (filters: %s)",
        current_user.id, deleted, len(ids), filters.applied(),
    )
    return BulkDeleteResponse(requested=len(ids), deleted=deleted, failed_ids=failed_ids)


@router.post("", response_model=EntryRead, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry_in: EntryCreate,
    current_user: RequireAuth,
    store: Store,
) -> EntryRead:
    """Create a new entry owned by the current user."""
    return await store.create_entry(current_user.id, entry_in.model_dump())


@router.get("/{entry_id}", response_model=EntryRead)
async def get_entry(entry_id: str, current_user: RequireAuth, store: Store) -> EntryRead:
    """Get a single entry."""
    entry = await store.get_entry(current_user.id, entry_id)
    if entry is None:
        raise _not_found(entry_id)
    return entry


@router.put("/{entry_id}", response_model=EntryRead)
async def update_entry(
    entry_id: str,
    entry_update: EntryUpdate,
    current_user: RequireAuth,
    store: Store,
) -> EntryRead:
    """Update an entry; only the provided fields change."""
    changes = entry_update.model_dump(exclude_unset=True)
    # Required fields cannot be cleared
    for field in ("title", "description", "category", "date", "is_important", "tags"):
        if field in changes and changes[field] is None:
            del changes[field]

    entry = await store.update_entry(current_user.id, entry_id, changes)
    if entry is None:
        raise _not_found(entry_id)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(entry_id: str, current_user: RequireAuth, store: Store) -> None:
    """Delete an entry."""
    if not await store.delete_entry(current_user.id, entry_id):
        raise _not_found(entry_id)
