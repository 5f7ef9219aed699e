"""Row conversion functions for entry imports."""

from datetime import datetime, time, timezone
from typing import Any

from communitrack.schemas.import_schemas import ParsedEntryCandidate

from .categories import map_category
from .constants import TRUTHY_VALUES
from .dates import normalize_date
from .mapping import is_blank, resolve_field


def _coerce_text(value: Any) -> str:
    """Trim a cell value to text; blank cells become an empty string."""
    if is_blank(value):
        return ""
    return str(value).strip()


def _coerce_optional_text(value: Any) -> str | None:
    text = _coerce_text(value)
    return text or None


def _coerce_bool(value: Any) -> bool:
    """Interpret an "important" cell (``ja``, ``yes``, ``x``, ``1``, True ...)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_VALUES


def _split_tags(value: Any) -> list[str]:
    """Comma-split a tags cell, trimming and dropping empty tags."""
    if is_blank(value):
        return []
    return [tag.strip() for tag in str(value).split(",") if tag.strip()]


def row_to_entry_candidate(row: dict[str, Any], now: datetime | None = None) -> ParsedEntryCandidate:
    """Convert a validated raw row to a normalized entry candidate.

    Args:
        row: Raw row keyed by lower-cased header.
        now: Clock used when the date is missing or unparseable.

    Returns:
        ParsedEntryCandidate with mapped category, split tags and parsed date.

    Raises:
        pydantic.ValidationError: If title or description is empty.
    """
    now = now or datetime.now(timezone.utc)
    fields = {field: resolve_field(row, field) for field in (
        "title", "description", "category", "tags", "is_important", "date",
        "initiator", "mediation_attempt", "chat_extract",
    )}

    return ParsedEntryCandidate(
        title=_coerce_text(fields["title"]),
        description=_coerce_text(fields["description"]),
        category=map_category(fields["category"]),
        tags=_split_tags(fields["tags"]),
        is_important=_coerce_bool(fields["is_important"]),
        date=normalize_date(fields["date"]) or now.date(),
        initiator=_coerce_optional_text(fields["initiator"]),
        mediation_attempt=_coerce_optional_text(fields["mediation_attempt"]),
        chat_extract=_coerce_optional_text(fields["chat_extract"]),
    )


def candidate_to_entry_data(
    candidate: ParsedEntryCandidate,
    owner_id: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the create-entry payload for a candidate.

    The calendar date becomes midnight UTC. Attachments start empty and both
    timestamps are set to ``now``.
    """
    now = now or datetime.now(timezone.utc)
    data = candidate.model_dump()
    data["date"] = datetime.combine(candidate.date, time.min, tzinfo=timezone.utc)
    data["owner_id"] = owner_id
    data["attachments"] = []
    data["created_at"] = now
    data["updated_at"] = now
    return data
