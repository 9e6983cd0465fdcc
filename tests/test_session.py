"""Tests for transcript_engine/session.py and transcript_engine/sequence.py"""

import unittest
from datetime import timezone

from tests.conftest import FIXED_NOW, divider, message, utc
from transcript_engine.merger import ConflictPolicy
from transcript_engine.resolver import RelativeTimeResolver
from transcript_engine.sequence import SequenceAllocator
from transcript_engine.session import CaptureSession, record_identity


def _session(policy=ConflictPolicy.EARLIEST, allocator=None):
    resolver = RelativeTimeResolver(timezone.utc, now=lambda: FIXED_NOW)
    return CaptureSession(policy, resolver, allocator)


class TestSequenceAllocator(unittest.TestCase):
    def test_strictly_increasing(self):
        allocator = SequenceAllocator()
        self.assertEqual([allocator.next() for _ in range(3)], [1, 2, 3])

    def test_custom_start(self):
        allocator = SequenceAllocator(start=10)
        self.assertEqual(allocator.last, 10)
        self.assertEqual(allocator.next(), 11)
        self.assertEqual(allocator.last, 11)

    def test_independent_instances(self):
        a, b = SequenceAllocator(), SequenceAllocator()
        a.next()
        a.next()
        self.assertEqual(b.next(), 1)


class TestRecordIdentity(unittest.TestCase):
    def test_id_identity(self):
        self.assertEqual(record_identity(message("Alice", "10:02 AM", id="m1")), ("id", "m1"))

    def test_row_identity(self):
        self.assertEqual(
            record_identity(message("Alice", "10:02 AM", "hi")),
            ("row", "message", "Alice", "10:02 AM", "hi"),
        )


class TestObserve(unittest.TestCase):
    def test_assigns_in_document_order(self):
        session = _session()
        observed = session.observe([message("A", "", "one"), message("B", "", "two")])
        self.assertEqual([r.observation_seq for r in observed], [1, 2])

    def test_repeat_row_keeps_first_seen_number(self):
        session = _session()
        session.observe([message("A", "", "one"), message("B", "", "two")])
        again = session.observe([message("B", "", "two"), message("C", "", "three")])
        self.assertEqual([r.observation_seq for r in again], [2, 3])

    def test_preassigned_seq_kept(self):
        session = _session()
        observed = session.observe([message("A", "", "one", seq=42)])
        self.assertEqual(observed[0].observation_seq, 42)
        again = session.observe([message("A", "", "one")])
        self.assertEqual(again[0].observation_seq, 42)

    def test_invalid_seq_replaced(self):
        session = _session()
        observed = session.observe([message("A", "", "one", seq=True)])
        self.assertEqual(observed[0].observation_seq, 1)

    def test_shared_allocator(self):
        allocator = SequenceAllocator(start=100)
        session = _session(allocator=allocator)
        observed = session.observe([message("A", "", "one")])
        self.assertEqual(observed[0].observation_seq, 101)
        self.assertEqual(allocator.last, 101)


class TestIngest(unittest.TestCase):
    def test_anchor_carried_between_passes(self):
        session = _session()
        session.ingest([divider("Monday, June 2"), message("Alice", "10:02 AM", "Morning all")])
        self.assertEqual(session.anchor, utc(2025, 6, 2, 10, 2))
        second = session.ingest([message("Alice", "10:30 AM", "Back")])
        self.assertEqual(second[0].iso_timestamp, "2025-06-02T10:30:00.000Z")

    def test_overlapping_passes_merge(self):
        session = _session()
        session.ingest([
            divider("Monday, June 2"),
            message("Alice", "10:02 AM", "Morning all"),
            message("Alice", "10:03 AM", "Standup in 5"),
        ])
        session.ingest([
            divider("Monday, June 2"),
            message("Alice", "10:03 AM", "Standup in 5"),
            message("Bob", "10:05 AM", "On my way"),
        ])
        self.assertEqual(session.candidate_count, 6)
        transcript = session.transcript()
        self.assertEqual(
            [m.content_text for m in transcript],
            ["Monday, June 2", "Morning all", "Standup in 5", "On my way"],
        )
        self.assertEqual([m.observation_seq for m in transcript], [1, 2, 3, 4])

    def test_policy_from_string(self):
        session = CaptureSession("most_complete")
        self.assertIs(session.policy, ConflictPolicy.MOST_COMPLETE)

    def test_empty_session(self):
        self.assertEqual(_session().transcript(), [])


if __name__ == "__main__":
    unittest.main()
