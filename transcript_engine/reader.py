"""Capture file discovery and loading.

A capture file is JSON in one of three shapes:
  [record, ...]                          one conversation (file stem), one pass
  [[record, ...], [record, ...]]         one conversation, several passes
  {"name": <either of the above>, ...}   several conversations
"""

import glob
import json
import os

import jsonschema

from transcript_engine.models import RawRecord, record_from_dict

_NULLABLE_TEXT = {"type": ["string", "null"]}
_NULLABLE_SEQ = {"type": ["number", "null"]}

RECORD_SCHEMA = {
    "type": "object",
    "properties": {
        "kind": _NULLABLE_TEXT,
        "type": _NULLABLE_TEXT,
        "id": {"type": ["string", "integer", "null"]},
        "attachments": {"type": ["array", "null"]},
        "reactions": {"type": ["array", "null"]},
        "edited": {"type": ["boolean", "null"]},
        "observationSeq": _NULLABLE_SEQ,
        "sequence": _NULLABLE_SEQ,
        "__sequence": _NULLABLE_SEQ,
    },
}

_validator = jsonschema.Draft202012Validator(RECORD_SCHEMA)


class CaptureFormatError(ValueError):
    """Raised when a capture file is not valid JSON or has an unsupported shape."""


def expand_paths(raw_paths: list[str]) -> list[str]:
    """Expand globs, deduplicate, and validate that files exist.

    Raises FileNotFoundError if a non-glob path doesn't exist.
    Raises FileNotFoundError if expansion produces zero files.
    """
    expanded = []
    seen = set()

    for raw in raw_paths:
        if any(c in raw for c in ("*", "?", "[")):
            matches = sorted(glob.glob(raw))
        else:
            if not os.path.isfile(raw):
                raise FileNotFoundError(f"File not found: {raw}")
            matches = [raw]
        for m in matches:
            if m not in seen:
                seen.add(m)
                expanded.append(m)

    if not expanded:
        raise FileNotFoundError("No capture files found matching the given paths")

    return expanded


def _passes(value, where: str) -> list[list[RawRecord]]:
    if not isinstance(value, list):
        raise CaptureFormatError(f"{where}: expected a list of records or passes")
    if not value:
        return []
    if all(isinstance(item, list) for item in value):
        return [_records(item, where) for item in value]
    return [_records(value, where)]


def _records(items: list, where: str) -> list[RawRecord]:
    records = []
    for i, item in enumerate(items):
        error = jsonschema.exceptions.best_match(_validator.iter_errors(item))
        if error is not None:
            raise CaptureFormatError(f"{where}: record {i}: {error.message}")
        records.append(record_from_dict(item))
    return records


def load_capture(path: str) -> dict[str, list[list[RawRecord]]]:
    """Read one capture file into {conversation: [pass, ...]}."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CaptureFormatError(f"{path}: invalid JSON ({e})") from e

    if isinstance(data, dict):
        return {str(name): _passes(value, f"{path}[{name}]") for name, value in data.items()}

    stem = os.path.splitext(os.path.basename(path))[0]
    return {stem: _passes(data, path)}
