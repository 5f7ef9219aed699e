"""Date normalization for imported cells.

Spreadsheet and CSV cells carry dates in many shapes: serial day numbers,
ISO strings, German ``15.03.2024``, European or US slashed dates, and
hyphenated variants. ``normalize_date`` tries each interpretation in a fixed
order and returns the first valid calendar date.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any

from dateutil import parser as dateutil_parser

from .constants import (
    MIN_YEAR,
    SERIAL_DATE_EPOCH,
    SERIAL_DATE_MAX,
    SERIAL_DATE_MIN,
    TWO_DIGIT_YEAR_PIVOT,
)

logger = logging.getLogger(__name__)

_NUMERIC_DATE = re.compile(r"^[\d\s./-]+$")


class _BilingualParserInfo(dateutil_parser.parserinfo):
    """English and German month names for free-text dates."""

    MONTHS = [
        ("Jan", "January", "Januar", "Jänner"),
        ("Feb", "February", "Februar"),
        ("Mar", "March", "Mär", "März", "Maerz"),
        ("Apr", "April"),
        ("May", "Mai"),
        ("Jun", "June", "Juni"),
        ("Jul", "July", "Juli"),
        ("Aug", "August"),
        ("Sep", "Sept", "September"),
        ("Oct", "October", "Okt", "Oktober"),
        ("Nov", "November"),
        ("Dec", "December", "Dez", "Dezember"),
    ]


_TEXT_PARSER = dateutil_parser.parser(_BilingualParserInfo(dayfirst=True))


def _expand_year(year: int) -> int:
    """Resolve a two-digit year via the pivot; longer years pass through."""
    if year < 100:
        return 2000 + year if year < TWO_DIGIT_YEAR_PIVOT else 1900 + year
    return year


def _make_date(year: int, month: int, day: int) -> date | None:
    """Build a date, or None for impossible calendar dates and out-of-range years."""
    if not MIN_YEAR < year <= date.max.year:
        return None
    try:
        return date(year, month, day)
    except (ValueError, OverflowError):
        return None


def _split_ints(text: str, separator: str) -> tuple[int, int, int] | None:
    parts = [part.strip() for part in text.split(separator)]
    if len(parts) != 3:
        return None
    try:
        first, second, third = (int(part) for part in parts)
    except ValueError:
        return None
    return first, second, third


def _from_serial(text: str) -> date | None:
    try:
        serial = float(text)
    except ValueError:
        return None
    if not SERIAL_DATE_MIN < serial < SERIAL_DATE_MAX:
        return None
    # Fractional days carry a time of day; the calendar date is the whole part
    return SERIAL_DATE_EPOCH + timedelta(days=int(serial))


def _from_iso(text: str) -> date | None:
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.year <= MIN_YEAR:
        return None
    return parsed.date()


def _from_text(text: str) -> date | None:
    """Free-form dates such as ``March 15, 2024`` or ``15 Mar 2024 10:30``.

    Purely numeric values are left to the explicit day-first attempts below.
    """
    if _NUMERIC_DATE.match(text) or not any(ch.isdigit() for ch in text):
        return None
    try:
        parsed = _TEXT_PARSER.parse(text, default=datetime(date.today().year, 1, 1), ignoretz=True)
    except (ValueError, OverflowError):
        return None
    if parsed.year <= MIN_YEAR:
        return None
    return parsed.date()


def _year_first(first: int, second: int, third: int) -> date | None:
    # 2024/03/15 or 2024.03.15; four-digit years only
    if first > MIN_YEAR:
        return _make_date(first, second, third)
    return None


def _from_dotted(text: str) -> date | None:
    parts = _split_ints(text, ".")
    if parts is None:
        return None
    day, month, year = parts
    return _make_date(_expand_year(year), month, day) or _year_first(*parts)


def _from_slashed(text: str) -> date | None:
    parts = _split_ints(text, "/")
    if parts is None:
        return None
    if parts[0] > MIN_YEAR:
        return _year_first(*parts)
    first, second, year = parts
    year = _expand_year(year)

    # European day/month first, then US month/day
    if first <= 31 and second <= 12:
        parsed = _make_date(year, second, first)
        if parsed:
            return parsed
    if first <= 12 and second <= 31:
        return _make_date(year, first, second)
    return None


def _from_hyphenated(text: str) -> date | None:
    parts = _split_ints(text, "-")
    if parts is None:
        return None
    first, second, third = parts
    if first > MIN_YEAR:
        parsed = _make_date(first, second, third)
        if parsed:
            return parsed
    if third > MIN_YEAR:
        return _make_date(third, second, first)
    return None


def normalize_date(value: Any) -> date | None:
    """Convert a cell value to a calendar date.

    Attempts, first success wins:

    1. blank -> None
    2. plain number between 1 and 100000 -> spreadsheet serial day
    3. ISO 8601 date or date-time, then free text with a month name
       (year after 1900)
    4. ``D.M.Y``, then ``Y.M.D``
    5. ``Y/M/D``; otherwise ``D/M/Y``, then ``M/D/Y``
    6. ``Y-M-D``, then ``D-M-Y``

    Two-digit years pivot at 50. Dates that do not exist in the calendar
    are rejected by every attempt. Never raises.

    Args:
        value: Raw cell value (string, number, bool, date or None).

    Returns:
        The parsed date, or None if no interpretation succeeds.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date() if value.year > MIN_YEAR else None
    if isinstance(value, date):
        return value if value.year > MIN_YEAR else None

    text = str(value).strip()
    if not text:
        return None

    for attempt in (_from_serial, _from_iso, _from_text):
        parsed = attempt(text)
        if parsed:
            return parsed

    if "." in text:
        parsed = _from_dotted(text)
        if parsed:
            return parsed
    if "/" in text:
        parsed = _from_slashed(text)
        if parsed:
            return parsed
    if "-" in text:
        parsed = _from_hyphenated(text)
        if parsed:
            return parsed

    logger.debug("Unparseable date value: %r", text)
    return None


def is_ambiguous_date(value: Any) -> bool:
    """True when a dotted or slashed date reads validly as both D/M and M/D.

    ``03/04/2024`` is ambiguous (3 April or 4 March); ``15/04/2024`` and
    ``04/04/2024`` are not.
    """
    if value is None or isinstance(value, (bool, date, int, float)):
        return False
    text = str(value).strip()
    separator = "/" if "/" in text else "." if "." in text else None
    if separator is None:
        return False
    parts = _split_ints(text, separator)
    if parts is None:
        return False
    first, second, year = parts
    if first == second:
        return False
    year = _expand_year(year)
    return _make_date(year, second, first) is not None and _make_date(year, first, second) is not None
