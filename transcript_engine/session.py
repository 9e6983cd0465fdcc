"""CaptureSession: incremental ingestion of scrape passes for one conversation."""

import logging
import math
from dataclasses import replace
from datetime import datetime

from transcript_engine.merger import ConflictPolicy, merge
from transcript_engine.models import NormalizedMessage, RawRecord
from transcript_engine.normalizer import RecordNormalizer
from transcript_engine.resolver import RelativeTimeResolver
from transcript_engine.sequence import SequenceAllocator

logger = logging.getLogger(__name__)


def _valid_seq(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def record_identity(record: RawRecord) -> tuple:
    if record.id:
        return ("id", record.id)
    return ("row", record.kind, record.author_text, record.timestamp_text, record.content_text)


class CaptureSession:
    """Keeps first-seen sequence numbers, the carried anchor and every batch.

    A row seen again in a later pass (from the row cache or the live view)
    keeps the observation number it got the first time.
    """

    def __init__(
        self,
        policy: ConflictPolicy = ConflictPolicy.EARLIEST,
        resolver: RelativeTimeResolver | None = None,
        allocator: SequenceAllocator | None = None,
    ):
        self.policy = ConflictPolicy(policy)
        self.allocator = allocator or SequenceAllocator()
        self._normalizer = RecordNormalizer(resolver)
        self._first_seen: dict[tuple, int] = {}
        self.batches: list[list[NormalizedMessage]] = []
        self.anchor: datetime | None = None

    def observe(self, records: list[RawRecord]) -> list[RawRecord]:
        """Assign observation_seq to records that do not carry a valid one."""
        observed = []
        for record in records:
            identity = record_identity(record)
            if _valid_seq(record.observation_seq):
                self._first_seen.setdefault(identity, record.observation_seq)
                observed.append(record)
                continue
            seq = self._first_seen.get(identity)
            if seq is None:
                seq = self.allocator.next()
                self._first_seen[identity] = seq
            observed.append(replace(record, observation_seq=seq))
        return observed

    def ingest(self, records: list[RawRecord]) -> list[NormalizedMessage]:
        """Observe and normalize one pass, continuing from the carried anchor."""
        result = self._normalizer.normalize(self.observe(records), self.anchor)
        self.anchor = result.last_anchor
        self.batches.append(result.messages)
        logger.debug("Ingested pass %d: %d records -> %d messages",
                     len(self.batches), len(records), len(result.messages))
        return result.messages

    @property
    def candidate_count(self) -> int:
        return sum(len(batch) for batch in self.batches)

    def transcript(self) -> list[NormalizedMessage]:
        return merge(self.batches, self.policy)
