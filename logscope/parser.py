"""Format detection and line parsing for Bracket, JSON, Apache, and Syslog logs.

Auto-detect order (first match wins, order is fixed):
  1. Bracket  — [YYYY-MM-DD HH:MM:SS] LEVEL message
  2. JSON     — one object per line
  3. Apache   — access log, whole line kept as the message
  4. Syslog   — BSD style, no year; level inferred from message text

Lines that match no grammar, or match but fail field coercion, are dropped
and counted as unparsed. Only I/O errors reach the caller.
"""

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable

from logscope.models import LogEntry, LogFormat, LogLevel
from logscope.reader import read_all

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Compiled regex patterns
# ---------------------------------------------------------------------------

_BRACKET_RE = re.compile(
    r"^\[([0-9]{4}-[0-9]{2}-[0-9]{2}[ T][0-9]{2}:[0-9]{2}:[0-9]{2})\]\s+(\w+)\s+(.+)$"
)

_SYSLOG_RE = re.compile(
    r"^(\w{3}\s+[0-9]{1,2}\s+[0-9]{2}:[0-9]{2}:[0-9]{2})\s+\S+\s+(\S+?)(?:\[[0-9]+\])?:\s+(.+)$"
)

_APACHE_RE = re.compile(
    r'^\S+\s+\S+\s+\S+\s+\[([^\]]+)\]\s+"[^"]*"\s+([0-9]{3})\s+\S+'
)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Tried in order, first success wins
_JSON_TIME_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S")

# strptime matches runs of whitespace, so "Jan  5" and "Jan 15" both parse
_SYSLOG_TIME_FORMATS = ("%Y %b %d %H:%M:%S",)

_APACHE_TIME_FORMATS = ("%d/%b/%Y:%H:%M:%S %z",)

_JSON_TIME_KEYS = ("timestamp", "time", "@timestamp")
_JSON_LEVEL_KEYS = ("level", "severity", "lvl")
_JSON_MESSAGE_KEYS = ("message", "msg")
_JSON_SOURCE_KEYS = ("logger", "source", "service")

AUTO_DETECT_ORDER = (
    LogFormat.BRACKET,
    LogFormat.JSON,
    LogFormat.APACHE,
    LogFormat.SYSLOG,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _strptime_any(value: str, formats: Iterable[str]) -> datetime | None:
    """Parse *value* with the first format that fits, or None.

    strptime accepts any Unicode digit, so non-ASCII input is rejected first.
    """
    if not value.isascii():
        return None
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def _first_present(obj: dict, keys: tuple[str, ...]):
    """Value of the first key present in *obj*, or None."""
    for key in keys:
        if key in obj:
            return obj[key]
    return None


def _level_from_status(status: int) -> LogLevel:
    if 200 <= status <= 399:
        return LogLevel.INFO
    if 400 <= status <= 499:
        return LogLevel.WARN
    if 500 <= status <= 599:
        return LogLevel.ERROR
    return LogLevel.UNKNOWN


def _level_from_text(message: str) -> LogLevel:
    lowered = message.lower()
    if "error" in lowered or "fail" in lowered:
        return LogLevel.ERROR
    if "warn" in lowered:
        return LogLevel.WARN
    return LogLevel.INFO


# ---------------------------------------------------------------------------
# Format-specific parsers
# ---------------------------------------------------------------------------


def _parse_bracket(line: str, line_number: int) -> LogEntry | None:
    m = _BRACKET_RE.match(line)
    if not m:
        return None
    ts_str, level, message = m.groups()
    try:
        timestamp = datetime.strptime(ts_str.replace("T", " "), TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.from_str(level),
        message=message,
        source=None,
        line_number=line_number,
    )


def _parse_json(line: str, line_number: int) -> LogEntry | None:
    try:
        data = json.loads(line)
    except (ValueError, TypeError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None

    ts_value = _first_present(data, _JSON_TIME_KEYS)
    if not isinstance(ts_value, str):
        return None
    timestamp = _strptime_any(ts_value, _JSON_TIME_FORMATS)
    if timestamp is None:
        return None

    level = _first_present(data, _JSON_LEVEL_KEYS)
    message = _first_present(data, _JSON_MESSAGE_KEYS)
    source = _first_present(data, _JSON_SOURCE_KEYS)

    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.from_str(level if isinstance(level, str) else "UNKNOWN"),
        message=message if isinstance(message, str) else "",
        source=source if isinstance(source, str) else None,
        line_number=line_number,
    )


def _parse_apache(line: str, line_number: int) -> LogEntry | None:
    m = _APACHE_RE.match(line)
    if not m:
        return None
    ts_str, status_str = m.groups()
    timestamp = _strptime_any(ts_str, _APACHE_TIME_FORMATS)
    if timestamp is None:
        return None
    status = int(status_str)
    return LogEntry(
        # Offset is dropped, wall-clock time is kept as written
        timestamp=timestamp.replace(tzinfo=None),
        level=_level_from_status(status),
        message=line,
        source="apache",
        line_number=line_number,
    )


def _parse_syslog(line: str, line_number: int) -> LogEntry | None:
    m = _SYSLOG_RE.match(line)
    if not m:
        return None
    ts_str, process, message = m.groups()
    year = datetime.now().year
    timestamp = _strptime_any(f"{year} {ts_str}", _SYSLOG_TIME_FORMATS)
    if timestamp is None:
        return None
    return LogEntry(
        timestamp=timestamp,
        level=_level_from_text(message),
        message=message,
        source=process,
        line_number=line_number,
    )


_GRAMMARS: dict[LogFormat, Callable[[str, int], LogEntry | None]] = {
    LogFormat.BRACKET: _parse_bracket,
    LogFormat.JSON: _parse_json,
    LogFormat.APACHE: _parse_apache,
    LogFormat.SYSLOG: _parse_syslog,
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_line(line: str, line_number: int = 1, fmt: LogFormat = LogFormat.AUTO) -> LogEntry | None:
    """Parse one raw line. Returns None for blank or unrecognized lines."""
    stripped = line.strip()
    if not stripped:
        return None

    if fmt is not LogFormat.AUTO:
        return _GRAMMARS[fmt](stripped, line_number)

    for candidate in AUTO_DETECT_ORDER:
        entry = _GRAMMARS[candidate](stripped, line_number)
        if entry is not None:
            return entry
    return None


def _parse_chunk(chunk: list[tuple[int, str]], fmt: LogFormat) -> list[LogEntry]:
    entries = []
    for number, line in chunk:
        entry = parse_line(line, number, fmt)
        if entry is not None:
            entries.append(entry)
        elif line.strip():
            logger.debug("Unparsed line %d: %.80s", number, line)
    return entries


def _chunked(items: list, n: int) -> list[list]:
    size = max(1, -(-len(items) // n))
    return [items[i:i + size] for i in range(0, len(items), size)]


def sort_entries(entries: Iterable[LogEntry]) -> list[LogEntry]:
    """Ascending by timestamp, ties broken by original line order."""
    return sorted(entries, key=lambda e: (e.timestamp, e.line_number))


def parse_lines(
    lines: Iterable[tuple[int, str]],
    fmt: LogFormat = LogFormat.AUTO,
    workers: int = 1,
) -> tuple[list[LogEntry], int]:
    """Parse numbered lines into sorted entries plus the unparsed-line count.

    Lines are independent, so with ``workers > 1`` they are split into chunks
    and parsed on a thread pool. The final sort makes the result identical
    to a sequential run.
    """
    numbered = list(lines)
    non_empty = sum(1 for _, line in numbered if line.strip())

    if workers > 1 and len(numbered) > 1:
        chunks = _chunked(numbered, workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            parts = list(pool.map(lambda c: _parse_chunk(c, fmt), chunks))
        parsed = [entry for part in parts for entry in part]
    else:
        parsed = _parse_chunk(numbered, fmt)

    entries = sort_entries(parsed)
    return entries, non_empty - len(entries)


def parse_file(
    filepath: str,
    fmt: LogFormat = LogFormat.AUTO,
    workers: int = 1,
) -> tuple[list[LogEntry], int]:
    """Read *filepath* and parse it. OSError (missing file, permissions) propagates."""
    lines = read_all(filepath)
    entries, unparsed = parse_lines(lines, fmt, workers)
    logger.info(
        "Parsed %s: %d entries, %d unparsed lines (format=%s)",
        filepath, len(entries), unparsed, fmt.value,
    )
    return entries, unparsed
