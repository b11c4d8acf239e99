"""Configuration loading from an optional YAML file, env vars, and CLI overrides."""

import logging
import os
from dataclasses import dataclass, field, replace

import yaml

from logscope.models import LogFormat

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_workers() -> int:
    return os.cpu_count() or 1


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_positive_int(value, name: str, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s '%s', using %d", name, value, default)
        return default
    if parsed < 1:
        logger.warning("%s must be positive, got %d, using %d", name, parsed, default)
        return default
    return parsed


def _parse_format(value, default: str) -> str:
    try:
        return LogFormat.from_str(str(value)).value
    except ValueError:
        logger.warning("Invalid log format '%s', falling back to '%s'", value, default)
        return default


def _parse_log_level(value, default: str) -> str:
    level = str(value).strip().upper()
    if level not in LOG_LEVELS:
        logger.warning("Invalid log level '%s', falling back to '%s'", value, default)
        return default
    return level


@dataclass(frozen=True)
class Config:
    log_format: str = "auto"
    top_n: int = 10
    workers: int = field(default_factory=_default_workers)
    color: bool = True
    heatmap: bool = False
    log_level: str = "WARNING"

    @property
    def format(self) -> LogFormat:
        return LogFormat.from_str(self.log_format)


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or file."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring it", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def load_config(yaml_data: dict | None = None) -> Config:
    """Build Config from defaults, then YAML data, then environment variables."""
    defaults = Config()
    settings = {
        "format": defaults.log_format,
        "top": defaults.top_n,
        "workers": defaults.workers,
        "color": defaults.color,
        "heatmap": defaults.heatmap,
        "log_level": defaults.log_level,
    }
    settings.update({k: v for k, v in (yaml_data or {}).items() if k in settings})

    env = {
        "format": os.environ.get("LOGSCOPE_FORMAT"),
        "top": os.environ.get("LOGSCOPE_TOP"),
        "workers": os.environ.get("LOGSCOPE_WORKERS"),
        "log_level": os.environ.get("LOGSCOPE_LOG_LEVEL"),
    }
    settings.update({k: v for k, v in env.items() if v is not None})
    # https://no-color.org: any non-empty value disables colour
    if os.environ.get("NO_COLOR"):
        settings["color"] = False

    return Config(
        log_format=_parse_format(settings["format"], defaults.log_format),
        top_n=_parse_positive_int(settings["top"], "top", defaults.top_n),
        workers=_parse_positive_int(settings["workers"], "workers", defaults.workers),
        color=_parse_bool(settings["color"]),
        heatmap=_parse_bool(settings["heatmap"]),
        log_level=_parse_log_level(settings["log_level"], defaults.log_level),
    )


def apply_cli_overrides(config: Config, args) -> Config:
    """CLI flags win over file and environment settings."""
    overrides = {}
    if getattr(args, "format", None):
        overrides["log_format"] = LogFormat.from_str(args.format).value
    if getattr(args, "top", None) is not None:
        overrides["top_n"] = args.top
    if getattr(args, "workers", None) is not None:
        overrides["workers"] = args.workers
    if getattr(args, "no_color", False):
        overrides["color"] = False
    if getattr(args, "heatmap", False):
        overrides["heatmap"] = True
    if getattr(args, "verbose", False):
        overrides["log_level"] = "DEBUG"
    return replace(config, **overrides)
