"""Configuration loading and duration parsing for upsetter."""

import json
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "url": "http://localhost:9091",
    "refresh": "20s",
    "ttl": "24h",
    "primary_label": "job",
    "instance_label": "instance",
    "ignored_metrics": ["up", "push_time_seconds", "push_failure_time_seconds"],
    "request_timeout": "10s",
    "redis_url": None,
    "log_file": None,
}

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def load_config(config_path: str, defaults: dict[str, Any] | None = None) -> dict[str, Any]:
    """Read a JSON config file and lay it over ``defaults`` (DEFAULT_CONFIG if omitted).

    Keys unknown to the defaults are rejected.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the file is not a JSON object or has unknown keys.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        config = json.load(f)
    if not isinstance(config, dict):
        raise ValueError(f"Config must be a JSON object: {config_path}")

    base = DEFAULT_CONFIG if defaults is None else defaults
    unknown = sorted(set(config) - set(base))
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {', '.join(unknown)}")
    return {**base, **config}


def parse_duration(value: str | int | float | None) -> timedelta | None:
    """Parse seconds or a Go-style duration string such as "1h30m".

    Zero, empty and None mean "no duration" and return None.

    Raises:
        ValueError: If the value is negative or not a valid duration.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if text == "0":
            return None
        pos = 0
        seconds = 0.0
        for match in _COMPONENT.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _UNITS[match.group(2)]
            pos = match.end()
        if pos != len(text) or pos == 0:
            raise ValueError(f"Invalid duration: {value!r}")
    else:
        raise ValueError(f"Invalid duration: {value!r}")

    if seconds < 0:
        raise ValueError(f"Negative duration: {value!r}")
    if seconds == 0:
        return None
    return timedelta(seconds=seconds)
