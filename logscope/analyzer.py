"""Keyword mining and anomaly scoring over a parsed, sorted corpus."""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import reduce
from typing import Iterator, Sequence

from logscope.models import LogEntry, LogLevel
from logscope.stats import Stats, compute_stats

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({
    "the", "and", "for", "with", "from", "that", "this", "have", "has",
    "been", "was", "were", "are", "will", "would", "could", "should",
    "not", "but", "can", "into", "its", "just", "when", "then", "also",
    "than", "more", "some", "over", "such", "after", "before", "while",
})

MIN_TOKEN_LENGTH = 3

# Anomaly rubric
ERROR_RATE_WEIGHT = 0.4
BURST_PENALTY = 5.0
FATAL_PENALTY = 20.0
MTBF_CRITICAL_SECONDS = 60.0
MTBF_CRITICAL_PENALTY = 15.0
MTBF_WARNING_SECONDS = 300.0
MTBF_WARNING_PENALTY = 8.0
MAX_SCORE = 100.0


@dataclass(frozen=True)
class KeywordEntry:
    word: str
    count: int
    error_ratio: float


@dataclass(frozen=True)
class KeywordCounts:
    """Partial per-token counts for one slice of the corpus."""
    total: Counter
    errors: Counter


@dataclass(frozen=True)
class Findings:
    level_counts: dict[str, int]
    top_keywords: list[KeywordEntry]
    anomaly_score: float


@dataclass(frozen=True)
class LogAnalysis:
    stats: Stats
    level_counts: dict[str, int]
    top_keywords: list[KeywordEntry]
    anomaly_score: float
    unparsed_lines: int


def tokenize(message: str) -> Iterator[str]:
    """Whitespace tokens, edge punctuation stripped, lowercased, stop words dropped."""
    for word in message.split():
        start, end = 0, len(word)
        while start < end and not word[start].isalnum():
            start += 1
        while end > start and not word[end - 1].isalnum():
            end -= 1
        token = word[start:end].lower()
        if len(token) < MIN_TOKEN_LENGTH or token in STOPWORDS:
            continue
        yield token


def count_keywords(entries: Sequence[LogEntry]) -> KeywordCounts:
    """Map phase: count tokens in a slice of entries."""
    total = Counter()
    errors = Counter()
    for entry in entries:
        tokens = list(tokenize(entry.message))
        total.update(tokens)
        if entry.level.is_error:
            errors.update(tokens)
    return KeywordCounts(total=total, errors=errors)


def merge_keyword_counts(a: KeywordCounts, b: KeywordCounts) -> KeywordCounts:
    """Reduce phase: sum matching keys. Commutative and associative."""
    return KeywordCounts(total=a.total + b.total, errors=a.errors + b.errors)


def rank_keywords(counts: KeywordCounts, top_n: int) -> list[KeywordEntry]:
    """Sort by count desc, then error ratio desc, then token; keep top_n."""
    ranked = [
        KeywordEntry(word=word, count=count, error_ratio=counts.errors[word] / count)
        for word, count in counts.total.items()
        if count > 0
    ]
    ranked.sort(key=lambda k: (-k.count, -k.error_ratio, k.word))
    return ranked[:top_n]


def extract_keywords(entries: Sequence[LogEntry], top_n: int, workers: int = 1) -> list[KeywordEntry]:
    """Count tokens per chunk on a thread pool, merge, and rank."""
    empty = KeywordCounts(total=Counter(), errors=Counter())
    if workers > 1 and len(entries) > 1:
        size = max(1, -(-len(entries) // workers))
        chunks = [entries[i:i + size] for i in range(0, len(entries), size)]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            partials = list(pool.map(count_keywords, chunks))
    else:
        partials = [count_keywords(entries)]
    merged = reduce(merge_keyword_counts, partials, empty)
    return rank_keywords(merged, top_n)


def count_by_level(entries: Sequence[LogEntry]) -> dict[str, int]:
    counts = Counter(entry.level.label for entry in entries)
    return dict(counts)


def compute_anomaly_score(stats: Stats, level_counts: dict[str, int]) -> float:
    """Fixed additive rubric, clamped to [0, 100]."""
    score = stats.error_rate * ERROR_RATE_WEIGHT
    score += len(stats.error_bursts) * BURST_PENALTY

    if level_counts.get(LogLevel.FATAL.label, 0) > 0:
        score += FATAL_PENALTY

    mtbf = stats.mtbf_seconds
    if mtbf is not None:
        if mtbf < MTBF_CRITICAL_SECONDS:
            score += MTBF_CRITICAL_PENALTY
        elif mtbf < MTBF_WARNING_SECONDS:
            score += MTBF_WARNING_PENALTY

    return max(0.0, min(score, MAX_SCORE))


def anomaly_label(score: float) -> str:
    bucket = int(score)
    if bucket <= 20:
        return "Healthy"
    if bucket <= 50:
        return "Moderate"
    if bucket <= 79:
        return "Elevated"
    return "Critical"


def analyze(entries: Sequence[LogEntry], stats: Stats, top_n: int, workers: int = 1) -> Findings:
    level_counts = count_by_level(entries)
    return Findings(
        level_counts=level_counts,
        top_keywords=extract_keywords(entries, top_n, workers),
        anomaly_score=compute_anomaly_score(stats, level_counts),
    )


def run_analysis(
    entries: Sequence[LogEntry],
    unparsed_lines: int = 0,
    top_n: int = 10,
    workers: int = 1,
) -> LogAnalysis:
    """Full analysis of a sorted (and optionally filtered) entry sequence."""
    stats = compute_stats(entries)
    findings = analyze(entries, stats, top_n, workers)
    logger.info(
        "Analyzed %d entries: error_rate=%.1f%%, bursts=%d, score=%.1f",
        stats.total, stats.error_rate, len(stats.error_bursts), findings.anomaly_score,
    )
    return LogAnalysis(
        stats=stats,
        level_counts=findings.level_counts,
        top_keywords=findings.top_keywords,
        anomaly_score=findings.anomaly_score,
        unparsed_lines=unparsed_lines,
    )
