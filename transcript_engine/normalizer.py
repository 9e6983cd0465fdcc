"""Record normalization: resolve timestamps while walking records in reading order.

Records must arrive in document order, never pre-sorted: a divider only
anchors the rows that follow it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from transcript_engine.anchor import DateAnchorTracker
from transcript_engine.formatter import format_display, to_iso
from transcript_engine.models import (
    KIND_DIVIDER,
    UNKNOWN_AUTHOR,
    NormalizedMessage,
    RawRecord,
)
from transcript_engine.resolver import RelativeTimeResolver

logger = logging.getLogger(__name__)


@dataclass
class NormalizeResult:
    messages: list[NormalizedMessage] = field(default_factory=list)
    last_anchor: datetime | None = None


def is_noise(record: RawRecord, iso_timestamp: str | None) -> bool:
    """Blank content, no attachments, no author and no resolved time."""
    author = record.author_text.strip()
    return (
        not record.content_text.strip()
        and not record.attachments
        and (not author or author == UNKNOWN_AUTHOR)
        and iso_timestamp is None
    )


class RecordNormalizer:
    def __init__(self, resolver: RelativeTimeResolver | None = None):
        self.resolver = resolver or RelativeTimeResolver()

    def normalize(
        self, records: list[RawRecord], prior_anchor: datetime | None = None
    ) -> NormalizeResult:
        """Resolve every record's timestamp, threading the date anchor forward.

        Returns the normalized rows (still in document order, noise dropped)
        and the final anchor so the next batch can continue from it.
        """
        tracker = DateAnchorTracker(
            prior_anchor, tz=self.resolver.tz, now=self.resolver.now
        )
        messages = []

        for record in records:
            if record.kind == KIND_DIVIDER:
                display, iso = self._divider_timestamps(record, tracker)
            else:
                display, iso = self._message_timestamps(record, tracker)

            if is_noise(record, iso):
                logger.debug("Dropping non-informative %s record (seq=%s)",
                             record.kind, record.observation_seq)
                continue

            messages.append(NormalizedMessage(
                kind=record.kind,
                author_text=record.author_text,
                content_text=record.content_text,
                display_timestamp=display,
                iso_timestamp=iso,
                attachments=record.attachments,
                reactions=record.reactions,
                reply_to=record.reply_to,
                edited=record.edited,
                edited_timestamp=record.edited_timestamp,
                id=record.id,
                observation_seq=record.observation_seq,
            ))

        return NormalizeResult(messages=messages, last_anchor=tracker.current)

    def _divider_timestamps(self, record, tracker):
        text = record.content_text or record.timestamp_text
        resolved = tracker.observe_divider(text)
        if resolved is None:
            return "", None
        return format_display(resolved, include_time=False), to_iso(resolved)

    def _message_timestamps(self, record, tracker):
        raw = record.timestamp_text.strip()
        if not raw:
            # No time-of-day is assumed, so only the date is shown
            if tracker.current is not None:
                return format_display(tracker.current, include_time=False), None
            return "", None

        resolved = self.resolver.resolve(raw, tracker.current)
        if resolved is None:
            return raw, None
        tracker.advance(resolved)
        return format_display(resolved), to_iso(resolved)


def normalize(
    records: list[RawRecord],
    prior_anchor: datetime | None = None,
    resolver: RelativeTimeResolver | None = None,
) -> NormalizeResult:
    """Module-level shortcut for RecordNormalizer(resolver).normalize(...)."""
    return RecordNormalizer(resolver).normalize(records, prior_anchor)
