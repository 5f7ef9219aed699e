"""Entry filtering and search.

The same ``EntryFilter`` drives the timeline listing and the bulk-delete
selection. ``filter_entries`` evaluates it in Python (in-memory store);
``build_mongo_query`` translates it to a MongoDB query document.
"""

import re
from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, Field

from communitrack.models.entry import EntryCategory
from communitrack.schemas.entry import EntryRead, EntryStats


class EntryFilter(BaseModel):
    """Timeline filter. Unset fields do not restrict the result."""

    date_from: date | None = None
    date_to: date | None = None  # inclusive
    category: EntryCategory | None = None
    search: str | None = None
    is_important: bool | None = None
    has_attachments: bool | None = None
    tags: list[str] = Field(default_factory=list)  # match any

    def is_empty(self) -> bool:
        """True when no criterion is set."""
        return not any(
            value not in (None, [], "")
            for value in self.model_dump().values()
        )

    def applied(self) -> dict[str, Any]:
        """The criteria that are set, JSON-ready (for logging and responses)."""
        return {
            key: value
            for key, value in self.model_dump(mode="json").items()
            if value not in (None, [], "")
        }


def _matches_search(entry: EntryRead, needle: str) -> bool:
    needle = needle.lower()
    if needle in entry.title.lower() or needle in entry.description.lower():
        return True
    if any(needle in tag.lower() for tag in entry.tags):
        return True
    return bool(entry.initiator and needle in entry.initiator.lower())


def matches(entry: EntryRead, filters: EntryFilter) -> bool:
    """Check a single entry against the filter."""
    entry_day = entry.date.date()

    if filters.date_from and entry_day < filters.date_from:
        return False
    if filters.date_to and entry_day > filters.date_to:
        return False
    if filters.category and entry.category != filters.category:
        return False
    if filters.search and filters.search.strip():
        if not _matches_search(entry, filters.search.strip()):
            return False
    if filters.is_important is not None and entry.is_important != filters.is_important:
        return False
    if filters.has_attachments is not None:
        if bool(entry.attachments) != filters.has_attachments:
            return False
    if filters.tags and not any(tag in entry.tags for tag in filters.tags):
        return False
    return True


def filter_entries(entries: Iterable[EntryRead], filters: EntryFilter | None) -> list[EntryRead]:
    """Return the entries matching the filter, order preserved."""
    if filters is None or filters.is_empty():
        return list(entries)
    return [entry for entry in entries if matches(entry, filters)]


def build_mongo_query(owner_id: PydanticObjectId, filters: EntryFilter | None) -> dict[str, Any]:
    """Translate a filter to a MongoDB query scoped to one owner."""
    conditions: dict[str, Any] = {"owner_id": owner_id}
    if filters is None:
        return conditions

    # Entry dates are stored as UTC datetimes; compare on whole days
    if filters.date_from:
        conditions.setdefault("date", {})
        conditions["date"]["$gte"] = datetime.combine(filters.date_from, time.min, tzinfo=timezone.utc)
    if filters.date_to:
        conditions.setdefault("date", {})
        conditions["date"]["$lt"] = datetime.combine(
            filters.date_to + timedelta(days=1), time.min, tzinfo=timezone.utc
        )

    if filters.category:
        conditions["category"] = filters.category.value

    if filters.search and filters.search.strip():
        pattern = re.compile(re.escape(filters.search.strip()), re.IGNORECASE)
        conditions["$or"] = [
            {"title": {"$regex": pattern}},
            {"description": {"$regex": pattern}},
            {"tags": {"$regex": pattern}},
            {"initiator": {"$regex": pattern}},
        ]

    if filters.is_important is not None:
        conditions["is_important"] = filters.is_important

    if filters.has_attachments is True:
        conditions["attachments.0"] = {"$exists": True}
    elif filters.has_attachments is False:
        conditions["attachments"] = {"$size": 0}

    if filters.tags:
        conditions["tags"] = {"$in": filters.tags}

    return conditions


def compute_stats(entries: Iterable[EntryRead], today: date | None = None) -> EntryStats:
    """Dashboard counters: total, important, this month, per category."""
    today = today or datetime.now(timezone.utc).date()
    entries = list(entries)
    per_category = Counter(entry.category.value for entry in entries)

    return EntryStats(
        total=len(entries),
        important=sum(1 for entry in entries if entry.is_important),
        this_month=sum(
            1
            for entry in entries
            if entry.date.year == today.year and entry.date.month == today.month
        ),
        by_category={category.value: per_category.get(category.value, 0) for category in EntryCategory},
    )
