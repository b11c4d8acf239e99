"""Tests for logscope/analyzer.py"""

import itertools
import random
from collections import Counter
from dataclasses import replace
from datetime import datetime, timedelta
from functools import reduce

import pytest

from logscope.analyzer import (
    KeywordCounts,
    LogAnalysis,
    anomaly_label,
    analyze,
    compute_anomaly_score,
    count_by_level,
    count_keywords,
    extract_keywords,
    merge_keyword_counts,
    run_analysis,
    tokenize,
)
from logscope.models import LogEntry, LogLevel
from logscope.stats import ErrorBurst, Stats, compute_stats

BASE = datetime(2025, 5, 15, 14, 0, 0)

MESSAGES = [
    (LogLevel.INFO, "User login successful for alice"),
    (LogLevel.ERROR, "Database connection timeout after 30s"),
    (LogLevel.ERROR, "Database query failed: timeout"),
    (LogLevel.WARN, "Connection pool nearly exhausted"),
    (LogLevel.FATAL, "Database unreachable, shutting down"),
    (LogLevel.INFO, "User logout for alice"),
    (LogLevel.DEBUG, "Cache hit for key user:42"),
]


def _corpus(repeat=1) -> list[LogEntry]:
    entries = []
    for i, (level, message) in enumerate(MESSAGES * repeat):
        entries.append(LogEntry(
            timestamp=BASE + timedelta(seconds=i * 10),
            level=level,
            message=message,
            source=None,
            line_number=i + 1,
        ))
    return entries


def _empty_counts() -> KeywordCounts:
    return KeywordCounts(total=Counter(), errors=Counter())


class TestTokenize:
    def test_strips_edges_and_lowercases(self):
        assert list(tokenize('"Database" (connection), TIMEOUT!')) == ["database", "connection", "timeout"]

    def test_drops_short_and_stop_words(self):
        assert list(tokenize("the DB is up and was fine")) == ["fine"]

    def test_inner_punctuation_kept(self):
        assert list(tokenize("user:42 failed")) == ["user:42", "failed"]

    def test_all_punctuation_token_dropped(self):
        assert list(tokenize("--- *** ok")) == []


class TestKeywordCounting:
    def test_counts_total_and_error_occurrences(self):
        counts = count_keywords(_corpus())
        assert counts.total["database"] == 3
        assert counts.errors["database"] == 3
        assert counts.total["alice"] == 2
        assert counts.errors["alice"] == 0
        assert counts.total["timeout"] == 2

    def test_merge_is_commutative(self):
        entries = _corpus(3)
        a = count_keywords(entries[:5])
        b = count_keywords(entries[5:])
        assert merge_keyword_counts(a, b) == merge_keyword_counts(b, a)

    def test_merge_is_associative(self):
        entries = _corpus(3)
        a, b, c = (count_keywords(entries[i::3]) for i in range(3))
        left = merge_keyword_counts(merge_keyword_counts(a, b), c)
        right = merge_keyword_counts(a, merge_keyword_counts(b, c))
        assert left == right

    @pytest.mark.parametrize("parts", [1, 2, 3, 5, 7, 21])
    def test_any_partition_matches_single_pass(self, parts):
        entries = _corpus(3)
        single = count_keywords(entries)
        shuffled = list(entries)
        random.Random(parts).shuffle(shuffled)
        size = -(-len(shuffled) // parts)
        partials = [count_keywords(shuffled[i:i + size]) for i in range(0, len(shuffled), size)]
        for order in itertools.islice(itertools.permutations(partials), 6):
            merged = reduce(merge_keyword_counts, order, _empty_counts())
            assert merged.total == single.total
            assert merged.errors == single.errors


class TestExtractKeywords:
    def test_ranking_and_ratio(self):
        top = extract_keywords(_corpus(), top_n=3)
        assert [k.word for k in top] == ["database", "timeout", "connection"]
        assert top[0].count == 3
        assert top[0].error_ratio == pytest.approx(1.0)
        assert top[1].error_ratio == pytest.approx(1.0)
        assert top[2].error_ratio == pytest.approx(0.5)

    def test_error_ratio_breaks_count_ties(self):
        top = extract_keywords(_corpus(), top_n=10)
        twos = [k for k in top if k.count == 2]
        assert [k.word for k in twos] == ["timeout", "connection", "alice", "user"]

    def test_ranking_monotonic(self):
        top = extract_keywords(_corpus(4), top_n=50)
        for prev, cur in zip(top, top[1:]):
            assert prev.count >= cur.count
            if prev.count == cur.count:
                assert prev.error_ratio >= cur.error_ratio

    def test_truncated_to_top_n(self):
        assert len(extract_keywords(_corpus(), top_n=2)) == 2
        assert extract_keywords(_corpus(), top_n=0) == []

    def test_every_keyword_has_occurrences(self):
        assert all(k.count > 0 for k in extract_keywords(_corpus(), top_n=100))

    def test_parallel_matches_sequential(self):
        entries = _corpus(20)
        sequential = extract_keywords(entries, top_n=20, workers=1)
        for workers in (2, 4, 9):
            assert extract_keywords(entries, top_n=20, workers=workers) == sequential

    def test_empty_corpus(self):
        assert extract_keywords([], top_n=10, workers=4) == []


class TestLevelCounts:
    def test_counts_by_label(self):
        counts = count_by_level(_corpus())
        assert counts == {"INFO": 2, "ERROR": 2, "WARN": 1, "FATAL": 1, "DEBUG": 1}

    def test_empty(self):
        assert count_by_level([]) == {}


class TestAnomalyScore:
    def test_documented_scenario(self):
        stats = Stats(total=4, error_rate=50.0, mtbf_seconds=30.0)
        assert compute_anomaly_score(stats, {"FATAL": 1, "ERROR": 1, "INFO": 2}) == pytest.approx(55.0)

    def test_zero_for_clean_corpus(self):
        assert compute_anomaly_score(Stats(total=10), {"INFO": 10}) == 0.0

    def test_burst_penalty(self):
        bursts = tuple(ErrorBurst(window_start=BASE, count=3) for _ in range(2))
        stats = Stats(total=10, error_rate=0.0, error_bursts=bursts)
        assert compute_anomaly_score(stats, {}) == pytest.approx(10.0)

    @pytest.mark.parametrize("mtbf, expected", [
        (None, 0.0),
        (59.9, 15.0),
        (60.0, 8.0),
        (299.0, 8.0),
        (300.0, 0.0),
        (5000.0, 0.0),
    ])
    def test_mtbf_bands(self, mtbf, expected):
        stats = Stats(total=10, mtbf_seconds=mtbf)
        assert compute_anomaly_score(stats, {}) == pytest.approx(expected)

    def test_clamped_to_100(self):
        bursts = tuple(ErrorBurst(window_start=BASE, count=3) for _ in range(10))
        stats = Stats(total=10, error_rate=100.0, error_bursts=bursts, mtbf_seconds=1.0)
        assert compute_anomaly_score(stats, {"FATAL": 3}) == 100.0

    @pytest.mark.parametrize("score, label", [
        (0.0, "Healthy"), (20.9, "Healthy"), (21.0, "Moderate"),
        (50.5, "Moderate"), (51.0, "Elevated"), (79.9, "Elevated"), (80.0, "Critical"),
    ])
    def test_labels(self, score, label):
        assert anomaly_label(score) == label


class TestAnalyze:
    def test_findings(self):
        entries = _corpus()
        stats = compute_stats(entries)
        findings = analyze(entries, stats, top_n=5)
        assert findings.level_counts["FATAL"] == 1
        assert len(findings.top_keywords) == 5
        assert 0.0 <= findings.anomaly_score <= 100.0

    def test_run_analysis(self):
        entries = _corpus()
        analysis = run_analysis(entries, unparsed_lines=4, top_n=3)
        assert isinstance(analysis, LogAnalysis)
        assert analysis.stats.total == len(entries)
        assert analysis.unparsed_lines == 4
        assert len(analysis.top_keywords) == 3

    def test_run_analysis_is_idempotent(self):
        entries = _corpus(5)
        first = run_analysis(entries, 0, 10, workers=1)
        second = run_analysis(entries, 0, 10, workers=4)
        assert first == second

    def test_empty_corpus(self):
        analysis = run_analysis([], unparsed_lines=2)
        assert analysis.stats.total == 0
        assert analysis.level_counts == {}
        assert analysis.top_keywords == []
        assert analysis.anomaly_score == 0.0

    def test_single_error(self):
        entry = _corpus()[1]
        analysis = run_analysis([replace(entry, line_number=1)])
        assert analysis.stats.mtbf_seconds is None
        assert analysis.anomaly_score == pytest.approx(40.0)
