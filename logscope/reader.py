"""Bulk file reading — numbered lines for traceability."""

from typing import Generator


def read_lines(filepath: str) -> Generator[tuple[int, str], None, None]:
    """Yield (line_number, line) for each line in a file, 1-based.

    Undecodable bytes are replaced rather than aborting the read, so a corrupt
    line surfaces later as an unparsed line. Only a newline ends a line: a lone
    carriage return stays in the text and CRLF endings are stripped. OSError
    propagates to the caller.
    """
    with open(filepath, "r", encoding="utf-8", errors="replace", newline="\n") as f:
        for number, line in enumerate(f, start=1):
            yield number, line.rstrip("\r\n")


def read_all(filepath: str) -> list[tuple[int, str]]:
    """Read the whole file up front. Parsing never starts on a partial read."""
    return list(read_lines(filepath))
