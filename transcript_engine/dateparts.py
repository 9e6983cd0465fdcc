"""Calendar tables and the low-level date/clock parsers shared by the resolver and anchor.

Everything here works on timezone-aware datetimes in a caller-supplied zone
and returns None instead of raising when the text does not fit.
"""

import re
from datetime import date, datetime, timezone, tzinfo

from dateutil import parser as dateutil_parser

MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# Full month names plus three-letter abbreviations ("Sept" included)
MONTH_PATTERN = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
WEEKDAY_PATTERN = r"(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"
TIME_PATTERN = r"\d{1,2}:\d{2}(?::\d{2})?(?:\s*[ap]\.?m\.?)?"

_CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*([ap])\.?m\.?)?", re.I)
_MONTH_RE = re.compile(rf"\b({MONTH_PATTERN})\b", re.I)
_SLASH_RE = re.compile(
    rf"^(\d{{1,2}})/(\d{{1,2}})/(\d{{2,4}})(?:,?\s+(?:at\s+)?({TIME_PATTERN}))?",
    re.I,
)
_AT_RE = re.compile(r"\sat\s", re.I)

# Two different defaults: a field the text leaves out shows up as a difference
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def month_index(name: str) -> int | None:
    """1-based month for a full or abbreviated month name."""
    prefix = (name or "").strip().lower()[:3]
    for i, month in enumerate(MONTHS, start=1):
        if month.startswith(prefix) and len(prefix) == 3:
            return i
    return None


def find_month(text: str) -> int | None:
    """1-based month of the first month name appearing in *text*."""
    m = _MONTH_RE.search(text or "")
    return month_index(m.group(1)) if m else None


def weekday_index(name: str) -> int | None:
    """Python weekday (Monday=0) for a full weekday name."""
    try:
        return WEEKDAYS.index((name or "").strip().lower())
    except ValueError:
        return None


def infer_year(month: int | None, anchor: datetime | None, today: date) -> int:
    """Pick the year for a year-less date in *month*, relative to *anchor*.

    A month half a year or more ahead of the anchor belongs to the previous
    year, one more than half a year behind belongs to the next year.
    """
    if anchor is None:
        return today.year
    if month is None:
        return anchor.year
    delta = month - anchor.month
    if delta >= 6:
        return anchor.year - 1
    if delta < -6:
        return anchor.year + 1
    return anchor.year


def expand_year(year: int) -> int:
    """Two-digit years: 70-99 -> 19xx, 00-69 -> 20xx."""
    if year < 100:
        return year + (1900 if year >= 70 else 2000)
    return year


def parse_clock(text: str) -> tuple[int, int, int] | None:
    """Find 'H:MM[:SS][am|pm]' in *text* and return 24h (hour, minute, second), or None."""
    m = _CLOCK_RE.search(text or "")
    if not m:
        return None
    hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    meridiem = (m.group(4) or "").lower()
    if minute > 59 or second > 59:
        return None
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "p" and hour < 12:
            hour += 12
        elif meridiem == "a" and hour == 12:
            hour = 0
    elif hour > 23:
        return None
    return hour, minute, second


def apply_time(base: datetime, text: str | None) -> datetime:
    """Return *base* with the clock found in *text*; *base* unchanged if none."""
    clock = parse_clock(text) if text else None
    if clock is None:
        return base
    hour, minute, second = clock
    return base.replace(hour=hour, minute=minute, second=second, microsecond=0)


def start_of_day(instant: datetime) -> datetime:
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Attach *tz* to a naive datetime, convert an aware one into *tz*."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def at_variants(text: str) -> list[str]:
    """The text itself, plus a copy with ' at ' collapsed to a space."""
    variants = [text]
    if _AT_RE.search(text):
        variants.append(_AT_RE.sub(" ", text, count=1))
    return variants


def parse_slash_date(text: str, tz: tzinfo = timezone.utc) -> datetime | None:
    """Parse 'M/D/Y[ H:MM[:SS][am|pm]]' (US order, two-digit years expanded)."""
    m = _SLASH_RE.match((text or "").strip())
    if not m:
        return None
    month, day, year = int(m.group(1)), int(m.group(2)), expand_year(int(m.group(3)))
    try:
        base = datetime(year, month, day, tzinfo=tz)
    except ValueError:
        return None
    if m.group(4) and parse_clock(m.group(4)) is None:
        return None
    return apply_time(base, m.group(4))


def parse_native(text: str, tz: tzinfo = timezone.utc) -> datetime | None:
    """Parse a complete date with dateutil, trying the ' at ' variant as well.

    Only accepted when the text itself supplies year, month and day.
    """
    cleaned = (text or "").strip()
    if not cleaned:
        return None
    for candidate in at_variants(cleaned):
        try:
            first = dateutil_parser.parse(candidate, default=_DEFAULT_A)
            second = dateutil_parser.parse(candidate, default=_DEFAULT_B)
        except (ValueError, OverflowError):
            continue
        if first != second:
            continue
        return localize(first, tz)
    return None
