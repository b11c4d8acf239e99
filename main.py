"""logscope — parse a log file and report its health at a glance."""

import argparse
import logging
import re
import sys
from argparse import ArgumentParser
from datetime import datetime

from logscope.analyzer import run_analysis
from logscope.config import apply_cli_overrides, load_config, load_yaml_config
from logscope.export import EXPORT_FORMATS, export_analysis
from logscope.filters import apply_filters, build_filter_chain
from logscope.models import LogFormat
from logscope.parser import parse_file
from logscope.report import ReportGenerator

LOG_FORMAT = "%(asctime)s [LOGSCOPE] %(levelname)s %(message)s"

logger = logging.getLogger(__name__)


def _datetime_arg(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid datetime '{value}' (expected YYYY-MM-DD HH:MM:SS)"
        ) from None


def _format_arg(value: str) -> str:
    try:
        return LogFormat.from_str(value).value
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _regex_arg(value: str) -> str:
    try:
        re.compile(value)
    except re.error as e:
        raise argparse.ArgumentTypeError(f"Invalid regex '{value}': {e}") from None
    return value


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'") from None
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {parsed}")
    return parsed


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="logscope",
        description="A lightweight CLI tool for parsing and analyzing log files.",
    )
    parser.add_argument("file_path", help="Path to the log file to analyze")
    parser.add_argument(
        "--format",
        type=_format_arg,
        help="Log format: bracket, json, apache, syslog, auto (default: auto)",
    )
    parser.add_argument("-k", "--keyword", help="Filter by keyword in message (case-insensitive)")
    parser.add_argument(
        "--pattern",
        type=_regex_arg,
        help="Filter by regex on message (case-insensitive)",
    )
    parser.add_argument(
        "--from",
        dest="since",
        type=_datetime_arg,
        help="Keep entries at or after this time (YYYY-MM-DD HH:MM:SS)",
    )
    parser.add_argument(
        "--to",
        dest="until",
        type=_datetime_arg,
        help="Keep entries at or before this time (YYYY-MM-DD HH:MM:SS)",
    )
    parser.add_argument("--level", help="Minimum log level (e.g. WARN, ERROR)")
    parser.add_argument("--source", help="Filter by source/logger/process (substring)")
    parser.add_argument("--top", type=_positive_int, help="Number of top keywords (default: 10)")
    parser.add_argument("--workers", type=_positive_int, help="Parallel workers (default: CPU count)")
    parser.add_argument("--heatmap", action="store_true", help="Show hourly activity heatmap")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument(
        "--output-format",
        choices=EXPORT_FORMATS,
        help="Export format: json (analysis) or csv (entries)",
    )
    parser.add_argument("-o", "--output", help="Export file path")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return parser


def run_pipeline(args) -> int:
    """Parse, filter, analyze, report, export. Returns the process exit code."""
    config = apply_cli_overrides(load_config(load_yaml_config(args.config)), args)
    logging.getLogger().setLevel(config.log_level)
    logger.debug("Config: %s", config)

    try:
        entries, unparsed = parse_file(args.file_path, config.format, config.workers)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    filtered = apply_filters(entries, build_filter_chain(args))
    if not filtered:
        print("No entries matched the given filters.", file=sys.stderr)
        return 0

    analysis = run_analysis(filtered, unparsed, config.top_n, config.workers)

    reporter = ReportGenerator(color=config.color)
    print(reporter.render(args.file_path, analysis, show_heatmap=config.heatmap))

    if args.output_format and args.output:
        try:
            export_analysis(analysis, entries, args.output_format, args.output)
            print(f"Exported to {args.output}")
        except (OSError, ValueError) as e:
            print(f"Export error: {e}", file=sys.stderr)
    elif args.output_format or args.output:
        logger.warning("--output-format and --output must be given together; skipping export")

    return 0


def main():
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, stream=sys.stderr)
    parser = build_parser()
    args = parser.parse_args()
    sys.exit(run_pipeline(args))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)
