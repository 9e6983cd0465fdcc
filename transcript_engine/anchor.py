"""Date anchor: the most recently resolved date of a transcript walk.

Date dividers ("Monday, June 2") often omit the year, so the year is
inferred from the anchor's month: a divider month half a year or more ahead
of the anchor belongs to the previous year, one more than half a year
behind belongs to the next year.

Relative headers ("Today", "Yesterday", "Wednesday") are rendered against
the day the client was viewed, so they resolve from the clock, not the anchor.
"""

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Callable

from transcript_engine.dateparts import (
    find_month,
    infer_year,
    localize,
    parse_native,
    parse_slash_date,
    start_of_day,
)
from transcript_engine.resolver import (
    RelativeTimeResolver,
    resolve_day_keyword,
    resolve_weekday,
)

logger = logging.getLogger(__name__)

_FOUR_DIGIT_YEAR = re.compile(r"\d{4}")

_RELATIVE_HEADERS = (resolve_day_keyword, resolve_weekday)


class DateAnchorTracker:
    """Holds the single current anchor of one left-to-right walk.

    Dividers are authoritative date headers and replace the anchor outright;
    message timestamps only move it forward.
    """

    def __init__(
        self,
        anchor: datetime | None = None,
        tz: tzinfo = timezone.utc,
        now: Callable[[], datetime] | None = None,
    ):
        self._tz = tz
        self._now = now or (lambda: datetime.now(tz))
        self._clock = RelativeTimeResolver(tz, now=self._now)
        self.current = localize(anchor, tz) if anchor is not None else None

    def reset(self, instant: datetime) -> None:
        self.current = instant

    def advance(self, instant: datetime) -> bool:
        """Move the anchor to *instant* unless that would move it backward."""
        if self.current is not None and instant < self.current:
            return False
        self.current = instant
        return True

    def resolve_divider_date(
        self, text: str, anchor: datetime | None = None
    ) -> datetime | None:
        """Resolve a divider label to midnight of its date, or None.

        Text carrying a four-digit year is parsed directly; otherwise the
        year is inferred from *anchor* and appended before parsing.
        """
        cleaned = (text or "").strip()
        if not cleaned:
            return None

        slash = parse_slash_date(cleaned, self._tz)
        if slash is not None:
            return start_of_day(slash)

        candidate = cleaned
        if not _FOUR_DIGIT_YEAR.search(cleaned):
            month = find_month(cleaned)
            if month is None:
                for family in _RELATIVE_HEADERS:
                    relative = family(cleaned, None, self._clock)
                    if relative is not None:
                        return start_of_day(relative)
            if anchor is not None:
                anchor = localize(anchor, self._tz)
            year = infer_year(month, anchor, self._now().date())
            candidate = f"{cleaned}, {year}"

        parsed = parse_native(candidate, self._tz)
        if parsed is None:
            logger.debug("Divider %r did not resolve to a date", cleaned)
            return None
        return start_of_day(parsed)

    def observe_divider(self, text: str) -> datetime | None:
        """Resolve a divider against the current anchor and reset it on success."""
        resolved = self.resolve_divider_date(text, self.current)
        if resolved is not None:
            self.reset(resolved)
        return resolved
