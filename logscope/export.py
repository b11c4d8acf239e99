"""Export sinks — full analysis as JSON, retained entries as CSV."""

import csv
import json
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Sequence

from logscope.analyzer import LogAnalysis
from logscope.models import LogEntry

EXPORT_FORMATS = ("json", "csv")
CSV_HEADER = ("timestamp", "level", "source", "message")
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _json_default(value):
    if isinstance(value, datetime):
        return value.strftime(TIME_FORMAT)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def analysis_to_dict(analysis: LogAnalysis) -> dict:
    return asdict(analysis)


def export_json(analysis: LogAnalysis, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(analysis_to_dict(analysis), f, indent=2, default=_json_default)
        f.write("\n")


def export_csv(entries: Sequence[LogEntry], path: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for entry in entries:
            writer.writerow([
                entry.timestamp.strftime(TIME_FORMAT),
                entry.level.label,
                entry.source or "",
                entry.message,
            ])


def export_analysis(analysis: LogAnalysis, entries: Sequence[LogEntry], fmt: str, path: str) -> None:
    """Write *analysis* (json) or *entries* (csv) to *path*.

    Raises ValueError for an unknown format; OSError from writing propagates.
    """
    fmt = fmt.strip().lower()
    if fmt == "json":
        export_json(analysis, path)
    elif fmt == "csv":
        export_csv(entries, path)
    else:
        raise ValueError(f"Unknown export format: {fmt}")
