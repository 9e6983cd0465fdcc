"""Timestamp literal resolution: one text + optional anchor -> absolute instant.

Format families, tried in priority order (first match wins):
  1. Slash-numeric date       6/2/25 3:04 PM
  2. Canonical textual date   June 2[, 2025][ at 3:04 PM]
  3. Native parse (dateutil)  2025-06-02T15:04:00Z, Monday, 2 June 2025
  4. Today / Yesterday        Yesterday at 9:15 AM
  5. Elapsed                  5 minutes ago
  6. Weekday                  Wednesday 17:00
  7. Time only                10:02 AM

Anchor-relative families use the anchor's date; "N ago" always uses now.
"""

import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable

from transcript_engine.dateparts import (
    MONTH_PATTERN,
    TIME_PATTERN,
    WEEKDAY_PATTERN,
    apply_time,
    infer_year,
    localize,
    month_index,
    parse_clock,
    parse_native,
    parse_slash_date,
    weekday_index,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Compiled regex patterns
# ---------------------------------------------------------------------------

_TEXTUAL_RE = re.compile(
    rf"\b({MONTH_PATTERN})\b\.?\s+(\d{{1,2}})(?!\d)(?:st|nd|rd|th)?"
    rf"(?:,?\s*(\d{{4}}))?"
    rf"(?:,?\s+(?:at\s+)?({TIME_PATTERN}))?",
    re.I,
)

_DAY_KEYWORD_RE = re.compile(
    rf"^(today|yesterday)\b(?:,?\s*(?:at\s+)?({TIME_PATTERN}))?",
    re.I,
)

_ELAPSED_RE = re.compile(r"(\d+)\s*(minute|hour|day)s?\s+ago\b", re.I)

_WEEKDAY_RE = re.compile(
    rf"^({WEEKDAY_PATTERN})\b(?:,?\s+(?:at\s+)?({TIME_PATTERN}))?",
    re.I,
)

_TIME_ONLY_RE = re.compile(rf"^({TIME_PATTERN})$", re.I)

_ELAPSED_UNITS = {
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
}

# ---------------------------------------------------------------------------
# Format families
# ---------------------------------------------------------------------------


def _clock_ok(time_text: str | None) -> bool:
    return not time_text or parse_clock(time_text) is not None


def resolve_slash(text: str, anchor, resolver) -> datetime | None:
    return parse_slash_date(text, resolver.tz)


def resolve_textual(text: str, anchor, resolver) -> datetime | None:
    m = _TEXTUAL_RE.search(text)
    if not m or not _clock_ok(m.group(4)):
        return None
    month = month_index(m.group(1))
    if m.group(3):
        year = int(m.group(3))
    else:
        year = infer_year(month, anchor, resolver.now().date())
    try:
        base = datetime(year, month, int(m.group(2)), tzinfo=resolver.tz)
    except ValueError:
        return None
    return apply_time(base, m.group(4))


def resolve_native(text: str, anchor, resolver) -> datetime | None:
    return parse_native(text, resolver.tz)


def resolve_day_keyword(text: str, anchor, resolver) -> datetime | None:
    m = _DAY_KEYWORD_RE.match(text)
    if not m or not _clock_ok(m.group(2)):
        return None
    base = anchor if anchor is not None else resolver.now()
    if m.group(1).lower() == "yesterday":
        base = base - timedelta(days=1)
    return apply_time(base, m.group(2))


def resolve_elapsed(text: str, anchor, resolver) -> datetime | None:
    m = _ELAPSED_RE.search(text)
    if not m:
        return None
    amount = int(m.group(1))
    return resolver.now() - amount * _ELAPSED_UNITS[m.group(2).lower()]


def resolve_weekday(text: str, anchor, resolver) -> datetime | None:
    m = _WEEKDAY_RE.match(text)
    if not m or not _clock_ok(m.group(2)):
        return None
    target = weekday_index(m.group(1))
    base = anchor if anchor is not None else resolver.now()
    diff = (base.weekday() - target) % 7
    # Same weekday as the base but later in the day would be in the future
    if diff == 0 and m.group(2) and apply_time(base, m.group(2)) > base:
        diff = 7
    return apply_time(base - timedelta(days=diff), m.group(2))


def resolve_time_only(text: str, anchor, resolver) -> datetime | None:
    m = _TIME_ONLY_RE.match(text)
    if not m or not _clock_ok(m.group(1)):
        return None
    base = anchor if anchor is not None else resolver.now()
    return apply_time(base, m.group(1))


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class RelativeTimeResolver:
    """Resolves timestamp literals in a fixed zone against an injectable clock."""

    FAMILIES = [
        ("slash", resolve_slash),
        ("textual", resolve_textual),
        ("native", resolve_native),
        ("day_keyword", resolve_day_keyword),
        ("elapsed", resolve_elapsed),
        ("weekday", resolve_weekday),
        ("time_only", resolve_time_only),
    ]

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        now: Callable[[], datetime] | None = None,
    ):
        self.tz = tz
        self._clock = now or (lambda: datetime.now(tz))

    def now(self) -> datetime:
        return localize(self._clock(), self.tz)

    def resolve(self, text: str, anchor: datetime | None = None) -> datetime | None:
        """Resolve *text* to an aware datetime, or None if no family matches."""
        cleaned = (text or "").strip()
        if not cleaned:
            return None
        if anchor is not None:
            anchor = localize(anchor, self.tz)

        for name, family in self.FAMILIES:
            result = family(cleaned, anchor, self)
            if result is not None:
                logger.debug("Resolved %r via %s -> %s", cleaned, name, result.isoformat())
                return result

        logger.debug("Unresolved timestamp %r", cleaned)
        return None


def resolve_timestamp(text: str, anchor: datetime | None = None) -> datetime | None:
    """Resolve with a UTC resolver on the real clock."""
    return RelativeTimeResolver().resolve(text, anchor)
