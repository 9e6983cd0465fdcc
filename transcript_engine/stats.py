"""Statistics: kind counts, resolution rate, collapsed duplicates, per-author and per-day volume."""

import json
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Iterable

from transcript_engine.formatter import parse_iso
from transcript_engine.models import KIND_DIVIDER, NormalizedMessage


@dataclass
class TranscriptStats:
    total_messages: int = 0
    kind_counts: dict[str, int] = field(default_factory=dict)
    resolved_count: int = 0
    unresolved_count: int = 0
    duplicates_collapsed: int = 0
    author_counts: dict[str, int] = field(default_factory=dict)
    messages_per_day: dict[str, int] = field(default_factory=dict)


def compute_stats(
    messages: Iterable[NormalizedMessage], candidate_count: int | None = None
) -> TranscriptStats:
    """Aggregate a merged transcript.

    *candidate_count* is the number of normalized entries that fed the merge;
    the difference to the merged length is reported as collapsed duplicates.
    """
    kinds = Counter()
    authors = Counter()
    days = Counter()
    resolved = 0
    total = 0

    for message in messages:
        total += 1
        kinds[message.kind] += 1
        instant = parse_iso(message.iso_timestamp)
        if instant is not None:
            resolved += 1
        if message.kind == KIND_DIVIDER:
            continue
        if message.author_text:
            authors[message.author_text] += 1
        if instant is not None:
            days[instant.date().isoformat()] += 1

    return TranscriptStats(
        total_messages=total,
        kind_counts=dict(kinds.most_common()),
        resolved_count=resolved,
        unresolved_count=total - resolved,
        duplicates_collapsed=max((candidate_count or total) - total, 0),
        author_counts=dict(authors.most_common()),
        messages_per_day=dict(sorted(days.items())),
    )


def format_stats_text(stats: TranscriptStats, title: str = "") -> str:
    """Human-readable stats summary."""
    lines = []
    if title:
        lines.append(f"== {title} ==")
    lines.append(f"Total messages: {stats.total_messages}")
    lines.append(f"Resolved timestamps: {stats.resolved_count}")
    lines.append(f"Unresolved timestamps: {stats.unresolved_count}")
    lines.append(f"Duplicates collapsed: {stats.duplicates_collapsed}")
    lines.append("")

    lines.append("Kinds:")
    for kind, count in stats.kind_counts.items():
        lines.append(f"  {kind:8s} {count}")
    lines.append("")

    lines.append("Authors:")
    for author, count in stats.author_counts.items():
        lines.append(f"  {author}  {count}")
    lines.append("")

    lines.append("Messages per day:")
    for day, count in stats.messages_per_day.items():
        lines.append(f"  {day}  {count}")

    return "\n".join(lines)


def format_stats_json(stats_by_conversation: dict[str, TranscriptStats]) -> str:
    """JSON stats output keyed by conversation."""
    return json.dumps(
        {name: asdict(stats) for name, stats in stats_by_conversation.items()},
        indent=2,
        ensure_ascii=False,
    )
