"""Shared pytest fixtures for the transcript engine test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from transcript_engine.models import KIND_DIVIDER, KIND_MESSAGE, RawRecord
from transcript_engine.resolver import RelativeTimeResolver

# Wednesday afternoon; June 2, 2025 was a Monday
FIXED_NOW = datetime(2025, 6, 11, 15, 0, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def divider(text: str, seq: int | None = None) -> RawRecord:
    return RawRecord(kind=KIND_DIVIDER, content_text=text, observation_seq=seq)


def message(author: str, timestamp: str, content: str = "", seq: int | None = None,
            **extra) -> RawRecord:
    return RawRecord(
        kind=KIND_MESSAGE,
        author_text=author,
        timestamp_text=timestamp,
        content_text=content,
        observation_seq=seq,
        **extra,
    )


@pytest.fixture()
def resolver() -> RelativeTimeResolver:
    """Resolver in UTC whose clock is frozen at FIXED_NOW."""
    return RelativeTimeResolver(timezone.utc, now=lambda: FIXED_NOW)


@pytest.fixture()
def transcript_records() -> list[RawRecord]:
    """Two days of conversation in reading order."""
    return [
        divider("Monday, June 2", seq=1),
        message("Alice", "10:02 AM", "Morning all", seq=2),
        message("Alice", "10:03 AM", "Standup in 5", seq=3),
        divider("Tuesday, June 3", seq=4),
        message("Bob", "9:00 AM", "Deploy went out", seq=5),
    ]
