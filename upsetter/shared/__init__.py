"""Shared utilities for upsetter."""

from upsetter.shared.bus import RedisBus
from upsetter.shared.logger import get_logger
from upsetter.shared.config import DEFAULT_CONFIG, load_config, parse_duration

__all__ = ["RedisBus", "get_logger", "DEFAULT_CONFIG", "load_config", "parse_duration"]
