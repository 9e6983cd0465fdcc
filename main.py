#!/usr/bin/env python3
"""transcript-merge: normalize, deduplicate and export captured chat transcripts."""

import logging
import os
import signal
import sys
import time
from argparse import ArgumentParser

from watchdog.observers import Observer

from transcript_engine.config import ConfigError, get_tz, load_config, load_yaml_config
from transcript_engine.formatter import FORMATTERS, get_formatter
from transcript_engine.merger import ConflictPolicy
from transcript_engine.reader import CaptureFormatError, expand_paths, load_capture
from transcript_engine.resolver import RelativeTimeResolver
from transcript_engine.session import CaptureSession
from transcript_engine.stats import compute_stats, format_stats_json, format_stats_text
from transcript_engine.watcher import CaptureWatcher

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [TRANSCRIPT] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="transcript-merge",
        description="Normalize, deduplicate and export captured chat transcripts.",
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="Capture file path(s) or glob pattern(s), ingested in order",
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("TRANSCRIPT_CONFIG"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--timezone",
        help="IANA zone the chat client displays times in (default: UTC)",
    )
    parser.add_argument(
        "--policy",
        dest="conflict_policy",
        choices=[p.value for p in ConflictPolicy],
        help="Which copy of a duplicated message survives (default: earliest)",
    )
    parser.add_argument(
        "--output",
        dest="output_format",
        choices=sorted(FORMATTERS),
        help="Output format (default: json)",
    )
    parser.add_argument(
        "--out",
        help="Write the result to this file instead of stdout",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show statistics instead of transcripts",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Watch --input-dir for pass files and keep --output-dir updated",
    )
    parser.add_argument("--input-dir", help="Directory watched in --watch mode")
    parser.add_argument("--output-dir", help="Directory written in --watch mode")
    return parser


def _emit(text: str, out_path: str | None):
    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(text)
            f.write("\n")
        logger.info("Wrote %s", out_path)
    else:
        print(text)


def run_pipeline(args):
    """Ingest every capture file, merge per conversation, print or write the result."""
    if not args.files:
        print("Error: at least one capture file is required (or use --watch)", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args, load_yaml_config(args.config))
        paths = expand_paths(args.files)
        resolver = RelativeTimeResolver(get_tz(config.timezone))
        sessions: dict[str, CaptureSession] = {}
        for path in paths:
            for conversation, passes in load_capture(path).items():
                if conversation not in sessions:
                    sessions[conversation] = CaptureSession(config.conflict_policy, resolver)
                for records in passes:
                    sessions[conversation].ingest(records)
    except (ConfigError, CaptureFormatError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    transcripts = {name: session.transcript() for name, session in sessions.items()}
    logger.info("Merged %d conversation(s) from %d file(s)", len(transcripts), len(paths))

    if args.stats:
        stats = {
            name: compute_stats(messages, sessions[name].candidate_count)
            for name, messages in transcripts.items()
        }
        if config.output_format == "text":
            text = "\n\n".join(format_stats_text(s, title=name) for name, s in stats.items())
        else:
            text = format_stats_json(stats)
        _emit(text, args.out)
        return

    _emit(get_formatter(config.output_format)(transcripts), args.out)


def run_watch(args):
    """Watch the input directory until SIGINT/SIGTERM."""
    try:
        config = load_config(args, load_yaml_config(args.config))
        resolver = RelativeTimeResolver(get_tz(config.timezone))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    logger.info("Config: input_dir=%s, output_dir=%s, timezone=%s, policy=%s",
                config.input_dir, config.output_dir, config.timezone, config.conflict_policy)
    os.makedirs(config.input_dir, exist_ok=True)

    watcher = CaptureWatcher(config.output_dir, ConflictPolicy(config.conflict_policy), resolver)
    watcher.process_existing_files(config.input_dir)

    observer = Observer()
    observer.schedule(watcher, config.input_dir, recursive=False)
    observer.start()
    logger.info("Transcript watcher running. Watching: %s", config.input_dir)

    try:
        while _running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass

    logger.info("Shutting down...")
    observer.stop()
    observer.join(timeout=5)
    logger.info("Transcript watcher stopped.")


def main():
    parser = build_parser()
    args = parser.parse_args()
    if args.watch:
        run_watch(args)
    else:
        run_pipeline(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)
