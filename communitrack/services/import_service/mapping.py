"""Column alias resolution for imported rows."""

from typing import Any

from .constants import FIELD_ALIASES


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def resolve_field(row: dict[str, Any], field: str, default: Any = "") -> Any:
    """Return the first non-empty value among a field's header aliases.

    Args:
        row: Raw row keyed by lower-cased header. Not modified.
        field: Canonical field name, a key of FIELD_ALIASES.
        default: Value returned when no alias holds a value.

    Returns:
        The cell value as found in the row, or ``default``.

    Raises:
        KeyError: If ``field`` is not a known canonical field.
    """
    for alias in FIELD_ALIASES[field]:
        value = row.get(alias)
        if not is_blank(value):
            return value
    return default


def map_row(row: dict[str, Any]) -> dict[str, Any]:
    """Resolve every canonical field of a row."""
    return {field: resolve_field(row, field) for field in FIELD_ALIASES}
