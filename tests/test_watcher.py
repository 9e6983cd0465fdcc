"""Tests for transcript_engine/watcher.py"""

import json
import os
import shutil
import tempfile
import unittest
from datetime import timezone
from unittest import mock

from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileModifiedEvent

from tests.conftest import FIXED_NOW
from transcript_engine.merger import ConflictPolicy
from transcript_engine.resolver import RelativeTimeResolver
from transcript_engine.watcher import OUTPUT_NAME, CaptureWatcher

PASS_ONE = [
    {"kind": "divider", "content": "Monday, June 2, 2025"},
    {"author": "Alice", "timestamp": "10:02 AM", "content": "Morning all"},
]
PASS_TWO = [
    {"author": "Alice", "timestamp": "10:02 AM", "content": "Morning all"},
    {"author": "Bob", "timestamp": "10:05 AM", "content": "On my way"},
]


class TestCaptureWatcher(unittest.TestCase):
    def setUp(self):
        self.input_dir = tempfile.mkdtemp()
        self.output_dir = os.path.join(tempfile.mkdtemp(), "out")
        resolver = RelativeTimeResolver(timezone.utc, now=lambda: FIXED_NOW)
        self.watcher = CaptureWatcher(self.output_dir, ConflictPolicy.EARLIEST, resolver)

    def tearDown(self):
        shutil.rmtree(self.input_dir)
        shutil.rmtree(os.path.dirname(self.output_dir))

    def _write(self, name, data):
        path = os.path.join(self.input_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)
        return path

    def _output(self):
        with open(os.path.join(self.output_dir, OUTPUT_NAME), encoding="utf-8") as f:
            return json.load(f)

    def test_process_file_writes_merged_output(self):
        self.assertTrue(self.watcher.process_file(self._write("general.json", PASS_ONE)))
        data = self._output()
        self.assertEqual([m["content"] for m in data["general"]],
                         ["Monday, June 2, 2025", "Morning all"])
        self.assertEqual(data["general"][1]["isoTimestamp"], "2025-06-02T10:02:00.000Z")

    def test_second_file_continues_anchor_and_dedups(self):
        self.watcher.process_file(self._write("general.json", PASS_ONE))
        self.watcher.process_file(self._write("general.json", PASS_TWO))
        data = self._output()
        self.assertEqual([m["content"] for m in data["general"]],
                         ["Monday, June 2, 2025", "Morning all", "On my way"])
        self.assertEqual(data["general"][2]["isoTimestamp"], "2025-06-02T10:05:00.000Z")

    def test_invalid_file_skipped(self):
        self.assertFalse(self.watcher.process_file(self._write("bad.json", "{oops")))
        self.assertEqual(self.watcher.sessions, {})
        self.assertFalse(os.path.exists(os.path.join(self.output_dir, OUTPUT_NAME)))

    def test_missing_file_skipped(self):
        self.assertFalse(self.watcher.process_file(os.path.join(self.input_dir, "gone.json")))

    def test_no_temp_files_left(self):
        self.watcher.process_file(self._write("general.json", PASS_ONE))
        self.assertEqual(os.listdir(self.output_dir), [OUTPUT_NAME])

    def test_process_existing_files_in_name_order(self):
        self._write("a.json", {"general": PASS_ONE})
        self._write("b.json", {"general": PASS_TWO})
        self._write("notes.txt", "ignored")
        self._write(OUTPUT_NAME, {"general": []})
        with mock.patch.object(self.watcher, "process_file") as process:
            self.watcher.process_existing_files(self.input_dir)
        self.assertEqual(
            [os.path.basename(c.args[0]) for c in process.call_args_list],
            ["a.json", "b.json"],
        )

    def test_process_existing_files_missing_dir(self):
        self.watcher.process_existing_files(os.path.join(self.input_dir, "nope"))
        self.assertEqual(self.watcher.sessions, {})


class TestEventHandling(unittest.TestCase):
    def setUp(self):
        self.watcher = CaptureWatcher(tempfile.gettempdir())
        patcher = mock.patch.object(self.watcher, "process_file")
        self.process = patcher.start()
        self.addCleanup(patcher.stop)

    def test_created_json(self):
        self.watcher.on_created(FileCreatedEvent("/captures/general.json"))
        self.process.assert_called_once_with("/captures/general.json")

    def test_ignores_other_extensions_and_directories(self):
        self.watcher.on_created(FileCreatedEvent("/captures/notes.txt"))
        self.watcher.on_created(DirCreatedEvent("/captures/sub.json"))
        self.process.assert_not_called()

    def test_ignores_own_output(self):
        self.watcher.on_modified(FileModifiedEvent(f"/captures/{OUTPUT_NAME}"))
        self.process.assert_not_called()

    def test_debounce(self):
        self.watcher.on_created(FileCreatedEvent("/captures/general.json"))
        self.watcher.on_modified(FileModifiedEvent("/captures/general.json"))
        self.assertEqual(self.process.call_count, 1)


if __name__ == "__main__":
    unittest.main()
