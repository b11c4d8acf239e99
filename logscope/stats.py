"""Corpus statistics — time span, rate, hourly histogram, error rate, bursts, MTBF."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Sequence

from logscope.models import LogEntry

BURST_WINDOW_SECONDS = 60
BURST_THRESHOLD = 3


@dataclass(frozen=True)
class TimeSpan:
    start: datetime
    end: datetime
    span_seconds: int
    span_human: str


@dataclass(frozen=True)
class ErrorBurst:
    window_start: datetime
    count: int


@dataclass(frozen=True)
class Stats:
    total: int = 0
    time: TimeSpan | None = None
    rate_per_minute: float = 0.0
    hourly_counts: tuple[int, ...] = (0,) * 24
    peak_hour: int | None = None
    error_count: int = 0
    error_rate: float = 0.0
    error_bursts: tuple[ErrorBurst, ...] = field(default_factory=tuple)
    mtbf_seconds: float | None = None


def format_duration(seconds: int) -> str:
    """Render seconds as '1h 2m 3s', '2m 3s' or '3s'."""
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    if h > 0:
        return f"{h}h {m}m {s}s"
    if m > 0:
        return f"{m}m {s}s"
    return f"{s}s"


def detect_bursts(errors: Sequence[LogEntry]) -> list[ErrorBurst]:
    """Greedy, non-overlapping 60s windows anchored at each unconsumed error.

    *errors* must be the time-ordered ERROR/FATAL subsequence. A window holds
    every error at most BURST_WINDOW_SECONDS after its anchor (inclusive).
    An error belongs to at most one burst.
    """
    bursts = []
    window = timedelta(seconds=BURST_WINDOW_SECONDS)
    i = 0
    while i < len(errors):
        window_end = errors[i].timestamp + window
        j = i
        while j < len(errors) and errors[j].timestamp <= window_end:
            j += 1
        count = j - i

        if count >= BURST_THRESHOLD:
            bursts.append(ErrorBurst(window_start=errors[i].timestamp, count=count))
            i += count
        else:
            i += 1
    return bursts


def compute_mtbf(error_count: int, span_seconds: int) -> float | None:
    """Mean spacing: corpus span over the number of gaps between errors."""
    if error_count < 2:
        return None
    return span_seconds / (error_count - 1)


def compute_stats(entries: Sequence[LogEntry]) -> Stats:
    """Aggregate a timestamp-sorted entry sequence. The input is not modified."""
    total = len(entries)
    if total == 0:
        return Stats()

    first = entries[0].timestamp
    last = entries[-1].timestamp
    span_seconds = max(1, int((last - first).total_seconds()))

    hourly = [0] * 24
    for entry in entries:
        hourly[entry.timestamp.hour] += 1
    # max() keeps the first bucket on ties
    peak_hour = max(range(24), key=lambda h: hourly[h])

    errors = [e for e in entries if e.level.is_error]
    error_count = len(errors)

    return Stats(
        total=total,
        time=TimeSpan(
            start=first,
            end=last,
            span_seconds=span_seconds,
            span_human=format_duration(span_seconds),
        ),
        rate_per_minute=total / (span_seconds / 60.0),
        hourly_counts=tuple(hourly),
        peak_hour=peak_hour,
        error_count=error_count,
        error_rate=error_count / total * 100.0,
        error_bursts=tuple(detect_bursts(errors)),
        mtbf_seconds=compute_mtbf(error_count, span_seconds),
    )
