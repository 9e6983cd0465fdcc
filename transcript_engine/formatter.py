"""Timestamp display/wire formatting and transcript output formatters (json, ndjson, text)."""

import json
from datetime import datetime, timezone
from typing import Callable

from transcript_engine.dateparts import MONTHS, WEEKDAYS
from transcript_engine.models import KIND_DIVIDER, NormalizedMessage, message_to_dict


def format_display(instant: datetime, include_time: bool = True) -> str:
    """'Monday, June 2, 2025 at 10:02 AM' (or without the time part).

    Names come from our own tables so the output does not depend on locale.
    """
    text = (
        f"{WEEKDAYS[instant.weekday()].title()}, "
        f"{MONTHS[instant.month - 1].title()} {instant.day}, {instant.year}"
    )
    if not include_time:
        return text
    hour = instant.hour % 12 or 12
    meridiem = "AM" if instant.hour < 12 else "PM"
    return f"{text} at {hour}:{instant.minute:02d} {meridiem}"


def to_iso(instant: datetime) -> str:
    """Canonical wire format: UTC, millisecond precision, 'Z' suffix."""
    utc = instant.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str | None) -> datetime | None:
    """Inverse of to_iso; naive values are read as UTC. None if malformed."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Transcript formatters, each taking {conversation: [NormalizedMessage]}
# ---------------------------------------------------------------------------


def format_json(conversations: dict[str, list[NormalizedMessage]]) -> str:
    """One JSON object mapping conversation name to its message list."""
    return json.dumps(
        {name: [message_to_dict(m) for m in messages]
         for name, messages in conversations.items()},
        indent=2,
        ensure_ascii=False,
    )


def format_ndjson(conversations: dict[str, list[NormalizedMessage]]) -> str:
    """NDJSON: one message per line, tagged with its conversation."""
    lines = []
    for name, messages in conversations.items():
        for message in messages:
            lines.append(json.dumps(
                {"conversation": name, **message_to_dict(message)},
                ensure_ascii=False,
            ))
    return "\n".join(lines)


def format_line(message: NormalizedMessage) -> str:
    if message.kind == KIND_DIVIDER:
        return f"--- {message.display_timestamp or message.content_text} ---"
    author = message.author_text or "Unknown"
    return f"[{message.display_timestamp}] {author}: {message.content_text}"


def format_text(conversations: dict[str, list[NormalizedMessage]]) -> str:
    """Human-readable transcript, one section per conversation."""
    sections = []
    for name, messages in conversations.items():
        lines = [f"== {name} =="]
        lines.extend(format_line(m) for m in messages)
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


FORMATTERS = {
    "json": format_json,
    "ndjson": format_ndjson,
    "text": format_text,
}


def get_formatter(output_format: str = "json") -> Callable[[dict], str]:
    """Factory that returns the formatter registered under *output_format*."""
    try:
        return FORMATTERS[output_format]
    except KeyError:
        raise ValueError(
            f"Unknown output format {output_format!r} (choose from {', '.join(FORMATTERS)})"
        ) from None
