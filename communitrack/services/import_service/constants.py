"""Constants for the entry import service."""

from datetime import date

from communitrack.models.entry import EntryCategory

# Maximum rows per import batch (safety limit for MongoDB 16MB doc size)
MAX_ROWS = 5000

# Spreadsheet serial day 0 (includes the 1900 leap-year quirk)
SERIAL_DATE_EPOCH = date(1899, 12, 30)
SERIAL_DATE_MIN = 1
SERIAL_DATE_MAX = 100000

# Dates at or before this year are rejected
MIN_YEAR = 1900

# Two-digit years below the pivot land in the 2000s, the rest in the 1900s
TWO_DIGIT_YEAR_PIVOT = 50

# Canonical field -> accepted lower-cased headers, English first
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "titel"),
    "description": ("description", "beschreibung"),
    "date": ("date", "datum"),
    "category": ("category", "kategorie"),
    "tags": ("tags", "schlagworte"),
    "is_important": ("isimportant", "important", "wichtig"),
    "initiator": ("initiator",),
    "mediation_attempt": ("mediation_attempt", "schlichtungsversuch"),
    "chat_extract": ("chat_extract", "chat-auszug"),
}

# Lower-cased label -> canonical category
CATEGORY_SYNONYMS: dict[str, EntryCategory] = {
    # German
    "konflikt": EntryCategory.KONFLIKT,
    "gespraech": EntryCategory.GESPRAECH,
    "gespräch": EntryCategory.GESPRAECH,
    "verhalten": EntryCategory.VERHALTEN,
    "beweis": EntryCategory.BEWEIS,
    "kindbetreuung": EntryCategory.KINDBETREUUNG,
    "sonstiges": EntryCategory.SONSTIGES,
    # English
    "conflict": EntryCategory.KONFLIKT,
    "conversation": EntryCategory.GESPRAECH,
    "behavior": EntryCategory.VERHALTEN,
    "evidence": EntryCategory.BEWEIS,
    "childcare": EntryCategory.KINDBETREUUNG,
    "other": EntryCategory.SONSTIGES,
}

# Spellings accepted as "important"
TRUTHY_VALUES = {"true", "1", "ja", "yes", "x", "wahr"}

# File types the orchestrator dispatches on
ALLOWED_EXTENSIONS = {"csv", "xlsx", "xls"}

# Single error reported when a file cannot be parsed at all
FILE_ERROR_MESSAGE = "Error processing file."
