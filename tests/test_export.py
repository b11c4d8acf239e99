"""Tests for logscope/export.py"""

import csv
import json
from datetime import datetime, timedelta

import pytest

from logscope.analyzer import run_analysis
from logscope.export import CSV_HEADER, analysis_to_dict, export_analysis
from logscope.models import LogEntry, LogLevel

BASE = datetime(2025, 5, 15, 14, 0, 0)


def _entries():
    return [
        LogEntry(BASE, LogLevel.INFO, "service started", "api", 1),
        LogEntry(BASE + timedelta(seconds=5), LogLevel.ERROR, 'bad "quoted", value', None, 2),
        LogEntry(BASE + timedelta(seconds=10), LogLevel.ERROR, "second failure", "api", 3),
    ]


class TestJsonExport:
    def test_full_analysis_written(self, tmp_path):
        entries = _entries()
        analysis = run_analysis(entries, unparsed_lines=1, top_n=5)
        out = tmp_path / "report.json"
        export_analysis(analysis, entries, "json", str(out))

        data = json.loads(out.read_text())
        assert data["stats"]["total"] == 3
        assert data["stats"]["time"]["start"] == "2025-05-15 14:00:00"
        assert data["stats"]["time"]["span_seconds"] == 10
        assert len(data["stats"]["hourly_counts"]) == 24
        assert data["stats"]["mtbf_seconds"] == pytest.approx(10.0)
        assert data["level_counts"] == {"INFO": 1, "ERROR": 2}
        assert data["unparsed_lines"] == 1
        assert data["anomaly_score"] == pytest.approx(analysis.anomaly_score)
        assert {"word", "count", "error_ratio"} <= set(data["top_keywords"][0])

    def test_empty_analysis(self, tmp_path):
        out = tmp_path / "empty.json"
        export_analysis(run_analysis([]), [], "JSON", str(out))
        data = json.loads(out.read_text())
        assert data["stats"]["time"] is None
        assert data["stats"]["peak_hour"] is None
        assert data["stats"]["error_bursts"] == []

    def test_analysis_to_dict_is_plain(self):
        data = analysis_to_dict(run_analysis(_entries()))
        assert isinstance(data["stats"], dict)
        assert isinstance(data["stats"]["time"]["end"], datetime)


class TestCsvExport:
    def test_rows_and_escaping(self, tmp_path):
        entries = _entries()
        out = tmp_path / "entries.csv"
        export_analysis(run_analysis(entries), entries, "csv", str(out))

        with open(out, newline="") as f:
            rows = list(csv.reader(f))
        assert tuple(rows[0]) == CSV_HEADER
        assert len(rows) == 4
        assert rows[1] == ["2025-05-15 14:00:00", "INFO", "api", "service started"]
        assert rows[2] == ["2025-05-15 14:00:05", "ERROR", "", 'bad "quoted", value']


class TestUnknownFormat:
    def test_raises(self, tmp_path):
        with pytest.raises(ValueError):
            export_analysis(run_analysis([]), [], "xml", str(tmp_path / "out.xml"))
