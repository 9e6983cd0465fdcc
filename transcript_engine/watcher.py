"""Capture watcher: ingests scrape-pass files dropped into a directory."""

import logging
import os
import tempfile
import time

from watchdog.events import FileSystemEventHandler

from transcript_engine.formatter import format_json
from transcript_engine.merger import ConflictPolicy
from transcript_engine.reader import CaptureFormatError, load_capture
from transcript_engine.resolver import RelativeTimeResolver
from transcript_engine.session import CaptureSession

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.5
OUTPUT_NAME = "transcripts.json"


class CaptureWatcher(FileSystemEventHandler):
    """Feeds each new .json pass file into per-conversation sessions.

    After every file the merged transcripts are rewritten atomically, so the
    output always reflects the most recent merge.
    """

    def __init__(
        self,
        output_dir: str,
        policy: ConflictPolicy = ConflictPolicy.EARLIEST,
        resolver: RelativeTimeResolver | None = None,
    ):
        super().__init__()
        self._output_dir = output_dir
        self._policy = policy
        self._resolver = resolver or RelativeTimeResolver()
        self._last_processed: dict[str, float] = {}
        self.sessions: dict[str, CaptureSession] = {}

    def on_created(self, event):
        if not event.is_directory and event.src_path.endswith(".json"):
            self._handle(event.src_path)

    def on_modified(self, event):
        if not event.is_directory and event.src_path.endswith(".json"):
            self._handle(event.src_path)

    def _handle(self, filepath: str):
        """Debounce and process a pass file."""
        if os.path.basename(filepath) == OUTPUT_NAME:
            return
        now = time.time()
        last = self._last_processed.get(filepath, 0)
        if now - last < DEBOUNCE_SECONDS:
            return
        self._last_processed[filepath] = now
        self.process_file(filepath)

    def session_for(self, conversation: str) -> CaptureSession:
        if conversation not in self.sessions:
            self.sessions[conversation] = CaptureSession(self._policy, self._resolver)
        return self.sessions[conversation]

    def process_file(self, filepath: str) -> bool:
        """Ingest every pass in *filepath*, then rewrite the output. False if skipped."""
        logger.info("Processing: %s", filepath)
        try:
            capture = load_capture(filepath)
        except (OSError, CaptureFormatError) as e:
            logger.error("Skipping %s: %s", filepath, e)
            return False

        for conversation, passes in capture.items():
            session = self.session_for(conversation)
            for records in passes:
                session.ingest(records)
            logger.info("  -> %s: %d pass(es), %d candidates so far",
                        conversation, len(passes), session.candidate_count)

        self.write_output()
        return True

    def transcripts(self) -> dict:
        return {name: session.transcript() for name, session in self.sessions.items()}

    def write_output(self) -> str:
        """Write all merged transcripts to OUTPUT_NAME atomically."""
        os.makedirs(self._output_dir, exist_ok=True)
        target = os.path.join(self._output_dir, OUTPUT_NAME)
        tmp_fd, tmp_path = tempfile.mkstemp(dir=self._output_dir, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                f.write(format_json(self.transcripts()))
                f.write("\n")
            os.replace(tmp_path, target)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        return target

    def process_existing_files(self, input_dir: str):
        """Scan input directory for existing pass files at startup."""
        if not os.path.isdir(input_dir):
            return
        for name in sorted(os.listdir(input_dir)):
            if name.endswith(".json") and name != OUTPUT_NAME:
                self.process_file(os.path.join(input_dir, name))
