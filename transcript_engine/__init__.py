"""Chat transcript normalization and deduplication engine."""

from transcript_engine.anchor import DateAnchorTracker, infer_year
from transcript_engine.merger import ConflictPolicy, compare_messages, dedup_key, merge
from transcript_engine.models import NormalizedMessage, RawRecord
from transcript_engine.normalizer import NormalizeResult, RecordNormalizer, normalize
from transcript_engine.resolver import RelativeTimeResolver
from transcript_engine.sequence import SequenceAllocator
from transcript_engine.session import CaptureSession

__all__ = [
    "CaptureSession",
    "ConflictPolicy",
    "DateAnchorTracker",
    "NormalizeResult",
    "NormalizedMessage",
    "RawRecord",
    "RecordNormalizer",
    "RelativeTimeResolver",
    "SequenceAllocator",
    "compare_messages",
    "dedup_key",
    "infer_year",
    "merge",
    "normalize",
]
