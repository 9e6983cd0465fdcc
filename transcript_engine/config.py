"""Configuration loading from an optional YAML file, env vars, and CLI args."""

import logging
import os
from dataclasses import dataclass, fields
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from transcript_engine.formatter import FORMATTERS
from transcript_engine.merger import ConflictPolicy

logger = logging.getLogger(__name__)

ENV_VARS = {
    "timezone": "TRANSCRIPT_TIMEZONE",
    "conflict_policy": "TRANSCRIPT_CONFLICT_POLICY",
    "output_format": "TRANSCRIPT_OUTPUT_FORMAT",
    "input_dir": "TRANSCRIPT_INPUT_DIR",
    "output_dir": "TRANSCRIPT_OUTPUT_DIR",
}


class ConfigError(ValueError):
    """Raised for unreadable config files and invalid setting values."""


@dataclass(frozen=True)
class Config:
    timezone: str = "UTC"
    conflict_policy: str = ConflictPolicy.EARLIEST.value
    output_format: str = "json"
    input_dir: str = "./captures"
    output_dir: str = "./transcripts"


def get_tz(name: str) -> tzinfo:
    """UTC is built in; anything else is looked up in the IANA database."""
    if name.upper() in ("UTC", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone: {name}") from e


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def load_config(cli_args=None, yaml_data: dict | None = None) -> Config:
    """Build Config: defaults < YAML < env vars < CLI flags.

    CLI attributes that are None (flag not given) do not override.
    """
    values = {f.name: f.default for f in fields(Config)}
    for name in values:
        if (yaml_data or {}).get(name) is not None:
            values[name] = str(yaml_data[name])
        env_value = os.environ.get(ENV_VARS[name])
        if env_value:
            values[name] = env_value
        cli_value = getattr(cli_args, name, None)
        if cli_value is not None:
            values[name] = cli_value

    values["conflict_policy"] = values["conflict_policy"].replace("-", "_").lower()
    try:
        ConflictPolicy(values["conflict_policy"])
    except ValueError as e:
        raise ConfigError(f"Unknown conflict policy: {values['conflict_policy']}") from e
    if values["output_format"] not in FORMATTERS:
        raise ConfigError(f"Unknown output format: {values['output_format']}")
    get_tz(values["timezone"])

    return Config(**values)
