"""Deduplicating merge of normalized batches into one chronological transcript.

Total order (compare_messages):
  1. both resolved  -> earlier isoTimestamp first
  2. one resolved   -> the resolved one first
  3. observation_seq ascending (missing/invalid = +inf)
  4. displayTimestamp, lexicographic

Duplicate arbitration is a ConflictPolicy. EARLIEST keeps the first-observed
copy unless another copy is resolved to a strictly earlier instant;
MOST_COMPLETE keeps the copy carrying the most information.
"""

import json
import logging
import math
from enum import Enum
from functools import cmp_to_key

from transcript_engine.formatter import parse_iso
from transcript_engine.models import NormalizedMessage, message_to_dict

logger = logging.getLogger(__name__)


class ConflictPolicy(str, Enum):
    EARLIEST = "earliest"
    MOST_COMPLETE = "most_complete"


def _seq(message: NormalizedMessage) -> float:
    seq = message.observation_seq
    if isinstance(seq, bool) or not isinstance(seq, (int, float)) or math.isnan(seq):
        return math.inf
    return seq


def _sign(a, b) -> int:
    return (a > b) - (a < b)


def compare_messages(a: NormalizedMessage, b: NormalizedMessage) -> int:
    """Return -1, 0 or 1 following the transcript's total order."""
    a_instant = parse_iso(a.iso_timestamp)
    b_instant = parse_iso(b.iso_timestamp)

    if a_instant is not None and b_instant is not None:
        if a_instant != b_instant:
            return _sign(a_instant, b_instant)
    elif a_instant is not None:
        return -1
    elif b_instant is not None:
        return 1

    seq_a, seq_b = _seq(a), _seq(b)
    if seq_a != seq_b:
        return _sign(seq_a, seq_b)

    return _sign(a.display_timestamp or "", b.display_timestamp or "")


def dedup_key(message: NormalizedMessage) -> tuple:
    """Stable id when the UI exposed one, else (time, author, content)."""
    if message.id:
        return ("id", message.id)
    return (
        "composite",
        message.iso_timestamp or message.display_timestamp or "",
        message.author_text or "",
        message.content_text or "",
    )


def completeness(message: NormalizedMessage) -> int:
    """One point per populated informative field."""
    return sum((
        message.iso_timestamp is not None,
        bool(message.author_text),
        bool(message.content_text),
        bool(message.attachments),
        bool(message.reactions),
        message.reply_to is not None,
        bool(message.edited or message.edited_timestamp),
    ))


def _fingerprint(message: NormalizedMessage) -> str:
    return json.dumps(message_to_dict(message), sort_keys=True, default=str)


def _observation_order(message: NormalizedMessage):
    return (_seq(message), cmp_to_key(compare_messages)(message), _fingerprint(message))


def _earlier_instant(challenger: NormalizedMessage, incumbent: NormalizedMessage) -> bool:
    new = parse_iso(challenger.iso_timestamp)
    old = parse_iso(incumbent.iso_timestamp)
    return new is not None and old is not None and new < old


def select_survivor(
    candidates: list[NormalizedMessage],
    policy: ConflictPolicy = ConflictPolicy.EARLIEST,
) -> NormalizedMessage:
    """Pick the copy of one logical message that survives the merge.

    Candidates are visited in first-observed order, so the outcome never
    depends on which batch a copy arrived in.
    """
    ordered = sorted(candidates, key=_observation_order)
    survivor = ordered[0]
    for challenger in ordered[1:]:
        if policy == ConflictPolicy.MOST_COMPLETE:
            gain = completeness(challenger) - completeness(survivor)
            if gain > 0 or (gain == 0 and _earlier_instant(challenger, survivor)):
                survivor = challenger
        elif _earlier_instant(challenger, survivor):
            survivor = challenger
    return survivor


def merge(
    batches: list[list[NormalizedMessage]],
    policy: ConflictPolicy = ConflictPolicy.EARLIEST,
) -> list[NormalizedMessage]:
    """Flatten, deduplicate by dedup_key and sort.

    Survivors keep their observation_seq, so merging a merged result again
    reproduces the same order; message_to_dict leaves it out of exports.
    """
    policy = ConflictPolicy(policy)
    groups: dict[tuple, list[NormalizedMessage]] = {}
    total = 0
    for batch in batches:
        for message in batch:
            groups.setdefault(dedup_key(message), []).append(message)
            total += 1

    survivors = [select_survivor(group, policy) for group in groups.values()]
    survivors.sort(key=cmp_to_key(compare_messages))

    if total != len(survivors):
        logger.debug("Merged %d candidates into %d messages (%s policy)",
                     total, len(survivors), policy.value)
    return survivors
