"""Filter predicates for log entries — keyword, pattern, time range, level, source."""

import re
from datetime import datetime
from typing import Callable, Iterable

from logscope.models import LogEntry, LogLevel


def filter_by_keyword(entry: LogEntry, keyword: str) -> bool:
    """True if keyword appears in the message (case-insensitive)."""
    return keyword.lower() in entry.message.lower()


def filter_by_pattern(entry: LogEntry, pattern: re.Pattern) -> bool:
    """True if the compiled regex matches anywhere in the message."""
    return pattern.search(entry.message) is not None


def filter_by_time_range(entry: LogEntry, start: datetime | None, end: datetime | None) -> bool:
    """True if entry falls within [start, end]; either bound may be open."""
    if start is not None and entry.timestamp < start:
        return False
    if end is not None and entry.timestamp > end:
        return False
    return True


def filter_by_min_level(entry: LogEntry, level: LogLevel) -> bool:
    """True if entry severity is at least that of *level*."""
    return entry.level.severity >= level.severity


def filter_by_source(entry: LogEntry, source: str) -> bool:
    """True if source contains the substring (case-insensitive). No source never matches."""
    if entry.source is None:
        return False
    return source.lower() in entry.source.lower()


def build_filter_chain(args) -> Callable[[LogEntry], bool]:
    """Combine all active filters from parsed args into a single callable.

    Returns a function that ANDs all active predicates together.
    """
    predicates = []

    if getattr(args, "keyword", None):
        keyword = args.keyword
        predicates.append(lambda entry, k=keyword: filter_by_keyword(entry, k))

    if getattr(args, "pattern", None):
        pattern = re.compile(args.pattern, re.IGNORECASE)
        predicates.append(lambda entry, p=pattern: filter_by_pattern(entry, p))

    start = getattr(args, "since", None)
    end = getattr(args, "until", None)
    if start is not None or end is not None:
        predicates.append(lambda entry, s=start, e=end: filter_by_time_range(entry, s, e))

    if getattr(args, "level", None):
        level = LogLevel.from_str(args.level)
        predicates.append(lambda entry, l=level: filter_by_min_level(entry, l))

    if getattr(args, "source", None):
        source = args.source
        predicates.append(lambda entry, s=source: filter_by_source(entry, s))

    if not predicates:
        return lambda entry: True

    def combined(entry: LogEntry) -> bool:
        return all(p(entry) for p in predicates)

    return combined


def apply_filters(entries: Iterable[LogEntry], predicate: Callable[[LogEntry], bool]) -> list[LogEntry]:
    """Keep matching entries, preserving order."""
    return [e for e in entries if predicate(e)]
