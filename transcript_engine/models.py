"""Transcript row dataclasses and their JSON-friendly (de)serialization."""

import re
from dataclasses import dataclass, field
from typing import Any

KIND_MESSAGE = "message"
KIND_DIVIDER = "divider"
KIND_SYSTEM = "system"
KINDS = frozenset({KIND_MESSAGE, KIND_DIVIDER, KIND_SYSTEM})

# Placeholder the scraper writes when no author element was found
UNKNOWN_AUTHOR = "Unknown"

_MONTH_WORD = (
    r"(?:january|february|march|april|may|june|july|august|"
    r"september|october|november|december)"
)

_DIVIDER_PATTERNS = [
    re.compile(r"^(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)", re.I),
    re.compile(r"^(?:today|yesterday|tomorrow)\b", re.I),
    re.compile(rf"^{_MONTH_WORD}\s+\d{{1,2}}(?:,\s*\d{{4}})?$", re.I),
    re.compile(rf"^\d{{1,2}}\s+{_MONTH_WORD}(?:,\s*\d{{4}})?$", re.I),
    re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$"),
    re.compile(r"^\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}$"),
]


@dataclass(frozen=True)
class RawRecord:
    """One observation of one transcript row, before timestamp resolution."""

    kind: str = KIND_MESSAGE
    author_text: str = ""
    timestamp_text: str = ""
    content_text: str = ""
    attachments: list = field(default_factory=list)
    reactions: list = field(default_factory=list)
    reply_to: Any = None
    edited: bool = False
    edited_timestamp: str | None = None
    id: str | None = None
    observation_seq: int | None = None


@dataclass(frozen=True)
class NormalizedMessage:
    kind: str = KIND_MESSAGE
    author_text: str = ""
    content_text: str = ""
    display_timestamp: str = ""
    iso_timestamp: str | None = None
    attachments: list = field(default_factory=list)
    reactions: list = field(default_factory=list)
    reply_to: Any = None
    edited: bool = False
    edited_timestamp: str | None = None
    id: str | None = None
    # Not part of equality; message_to_dict never exports it
    observation_seq: int | None = field(default=None, compare=False, repr=False)


def is_likely_date_divider(label: str) -> bool:
    """True if *label* reads like a date header ("Monday", "June 2, 2025", "6/2/25")."""
    text = (label or "").strip()
    if not text:
        return False
    return any(p.search(text) for p in _DIVIDER_PATTERNS)


def _first(data: dict, *keys: str, default=None):
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def record_from_dict(data: dict[str, Any]) -> RawRecord:
    """Build a RawRecord from a scraper dict.

    Accepts the camelCase wire names as well as the scraper's legacy keys
    (type/author/timestamp/message/sequence). A record without an explicit
    kind that has no author or timestamp and whose text looks like a date
    header is classified as a divider.
    """
    author = _text(_first(data, "authorText", "author"))
    timestamp = _text(_first(data, "timestampText", "timestamp"))
    content = _text(_first(data, "contentText", "content", "message"))

    kind = _first(data, "kind", "type")
    if kind not in KINDS:
        if not author and not timestamp and is_likely_date_divider(content):
            kind = KIND_DIVIDER
        else:
            kind = KIND_MESSAGE

    raw_id = data.get("id")
    seq = _first(data, "observationSeq", "sequence", "__sequence")

    return RawRecord(
        kind=kind,
        author_text=author,
        timestamp_text=timestamp,
        content_text=content,
        attachments=list(data.get("attachments") or []),
        reactions=list(data.get("reactions") or []),
        reply_to=_first(data, "replyTo", "reply_to"),
        edited=bool(data.get("edited", False)),
        edited_timestamp=_first(data, "editedTimestamp", "edited_timestamp"),
        id=str(raw_id) if raw_id not in (None, "") else None,
        observation_seq=seq,
    )


def message_to_dict(message: NormalizedMessage) -> dict[str, Any]:
    """Convert a NormalizedMessage to its exported dict.

    None values are dropped for cleaner JSON; observation_seq is internal
    and never exported.
    """
    out = {
        "kind": message.kind,
        "id": message.id,
        "author": message.author_text,
        "content": message.content_text,
        "displayTimestamp": message.display_timestamp,
        "isoTimestamp": message.iso_timestamp,
        "attachments": message.attachments,
        "reactions": message.reactions,
        "replyTo": message.reply_to,
        "edited": message.edited,
        "editedTimestamp": message.edited_timestamp,
    }
    return {k: v for k, v in out.items() if v is not None}
