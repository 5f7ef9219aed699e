"""Category mapping for imported rows."""

from typing import Any

from communitrack.models.entry import EntryCategory

from .constants import CATEGORY_SYNONYMS


def map_category(value: Any) -> EntryCategory:
    """Map a free-text category label to a canonical category.

    Matching is case-insensitive and ignores surrounding whitespace. German
    and English labels are both accepted; anything unrecognized becomes
    ``EntryCategory.SONSTIGES`` so an import never fails on a category.
    """
    if value is None:
        return EntryCategory.SONSTIGES
    return CATEGORY_SYNONYMS.get(str(value).strip().lower(), EntryCategory.SONSTIGES)
