"""Text report — level distribution, statistics, keywords, bursts, heatmap, score."""

from logscope.analyzer import LogAnalysis, anomaly_label
from logscope.stats import format_duration

# ANSI color codes
COLORS = {
    "FATAL": "\033[1;31m",  # bold red
    "ERROR": "\033[31m",    # red
    "WARN": "\033[33m",     # yellow
    "INFO": "\033[32m",     # green
    "DEBUG": "\033[2m",     # dim
}
BOLD_CYAN = "\033[1;36m"
BOLD_RED = "\033[1;31m"
BOLD_YELLOW = "\033[1;33m"
BOLD_GREEN = "\033[1;32m"
RESET = "\033[0m"

DISPLAY_LEVELS = ("FATAL", "ERROR", "WARN", "INFO", "DEBUG")
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
HEATMAP_WIDTH = 40


class ReportGenerator:
    def __init__(self, color: bool = True):
        self._color = color

    def _paint(self, text: str, code: str) -> str:
        if not self._color or not code:
            return text
        return f"{code}{text}{RESET}"

    def render(self, file_path: str, analysis: LogAnalysis, show_heatmap: bool = False) -> str:
        sections = [
            self._header(file_path, analysis),
            self._level_distribution(analysis),
            self._statistics(analysis),
        ]
        if analysis.top_keywords:
            sections.append(self._top_keywords(analysis))
        if analysis.stats.error_bursts:
            sections.append(self._bursts(analysis))
        if show_heatmap:
            sections.append(self._heatmap(analysis))
        sections.append(self._anomaly_score(analysis))
        return "\n".join(sections)

    def _header(self, file_path: str, analysis: LogAnalysis) -> str:
        stats = analysis.stats
        lines = [
            "",
            self._paint("logscope — Log Analysis Report", BOLD_CYAN),
            "─" * 50,
            f"File    : {file_path}",
            f"Entries : {stats.total}",
        ]
        if analysis.unparsed_lines > 0:
            lines.append(self._paint(f"Skipped : {analysis.unparsed_lines} unparsed lines", COLORS["WARN"]))
        if stats.time is not None:
            start = stats.time.start.strftime(TIME_FORMAT)
            end = stats.time.end.strftime(TIME_FORMAT)
            lines.append(f"Range   : {start} → {end}")
            lines.append(f"Span    : {stats.time.span_human}")
        lines.append(f"Rate    : {stats.rate_per_minute:.1f} entries/min")
        lines.append("")
        return "\n".join(lines)

    def _level_distribution(self, analysis: LogAnalysis) -> str:
        lines = ["Log Level Distribution", "─" * 30]
        total = analysis.stats.total or 1
        for level in DISPLAY_LEVELS:
            count = analysis.level_counts.get(level, 0)
            if count == 0:
                continue
            pct = count / total * 100.0
            bar = "█" * int(pct / 2)
            label = f"  {level:<7} {count:>5}  ({pct:5.1f}%)  {bar}"
            lines.append(self._paint(label, COLORS[level]))
        lines.append("")
        return "\n".join(lines)

    def _statistics(self, analysis: LogAnalysis) -> str:
        stats = analysis.stats
        lines = ["Statistics", "─" * 30, f"  Error rate  : {stats.error_rate:.1f}%"]
        if stats.mtbf_seconds is not None:
            lines.append(f"  MTBF errors : {format_duration(int(stats.mtbf_seconds))}")
        if stats.peak_hour is not None:
            lines.append(f"  Peak hour   : {stats.peak_hour:02d}:00 – {stats.peak_hour:02d}:59")
        lines.append("")
        return "\n".join(lines)

    def _top_keywords(self, analysis: LogAnalysis) -> str:
        lines = ["Top Keywords", "─" * 30]
        for i, kw in enumerate(analysis.top_keywords, start=1):
            ratio = f"  [{kw.error_ratio * 100:.0f}% in errors]" if kw.error_ratio > 0 else ""
            line = f"  {i:>2}. {kw.word:>15}  ×{kw.count:<6}{ratio}"
            lines.append(self._paint(line, COLORS["ERROR"]) if kw.error_ratio > 0.5 else line)
        lines.append("")
        return "\n".join(lines)

    def _bursts(self, analysis: LogAnalysis) -> str:
        bursts = analysis.stats.error_bursts
        lines = [self._paint(f"Error Bursts Detected ({len(bursts)})", BOLD_RED), "─" * 30]
        for burst in bursts:
            lines.append(f"  {burst.window_start.strftime(TIME_FORMAT)} — {burst.count} errors in 60s")
        lines.append("")
        return "\n".join(lines)

    def _heatmap(self, analysis: LogAnalysis) -> str:
        counts = analysis.stats.hourly_counts
        peak = max(max(counts), 1)
        lines = ["Hourly Activity Heatmap", "─" * 50]
        for hour, count in enumerate(counts):
            bar = "▪" * (count * HEATMAP_WIDTH // peak)
            lines.append(f"  {hour:02d}h │{bar:<{HEATMAP_WIDTH}}│ {count}")
        lines.append("")
        return "\n".join(lines)

    def _anomaly_score(self, analysis: LogAnalysis) -> str:
        score = analysis.anomaly_score
        line = f"Anomaly Score: {score:.1f} / 100  [{anomaly_label(score)}]"
        if int(score) <= 20:
            code = BOLD_GREEN
        elif int(score) <= 50:
            code = BOLD_YELLOW
        else:
            code = BOLD_RED
        return "\n".join(["─" * 50, self._paint(line, code), ""])
