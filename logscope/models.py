"""Normalized log record model — every grammar maps to LogEntry."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# Level aliases accepted in log text → canonical level name
_LEVEL_ALIASES = {
    "DEBUG": "DEBUG", "DBG": "DEBUG", "TRACE": "DEBUG",
    "INFO": "INFO", "INFORMATION": "INFO",
    "WARN": "WARN", "WARNING": "WARN",
    "ERROR": "ERROR", "ERR": "ERROR",
    "FATAL": "FATAL", "CRITICAL": "FATAL", "CRIT": "FATAL",
}

_SEVERITY = {
    "DEBUG": 0,
    "INFO": 1,
    "WARN": 2,
    "ERROR": 3,
    "FATAL": 4,
    "UNKNOWN": 0,
}


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_str(cls, text: str) -> "LogLevel":
        """Map a level token (case-insensitive, aliases allowed) to a LogLevel."""
        name = _LEVEL_ALIASES.get(text.strip().upper())
        if name is None:
            return cls.UNKNOWN
        return cls(name)

    @property
    def label(self) -> str:
        return self.value

    @property
    def severity(self) -> int:
        """Integer rank used for threshold filtering. UNKNOWN ranks with DEBUG."""
        return _SEVERITY[self.value]

    @property
    def is_error(self) -> bool:
        return self in (LogLevel.ERROR, LogLevel.FATAL)


class LogFormat(Enum):
    BRACKET = "bracket"   # [2026-01-01 12:00:00] LEVEL message
    SYSLOG = "syslog"     # Jan  1 12:00:00 host process[pid]: message
    JSON = "json"         # {"timestamp": "...", "level": "...", "message": "..."}
    APACHE = "apache"     # 127.0.0.1 - - [01/Jan/2026:12:00:00 +0000] "GET / HTTP/1.1" 200 1234
    AUTO = "auto"

    @classmethod
    def from_str(cls, name: str) -> "LogFormat":
        """Resolve a format name. Raises ValueError for unknown names."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(f.value for f in cls)
            raise ValueError(f"Unknown log format '{name}' (expected one of: {valid})") from None


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: LogLevel
    message: str
    source: str | None
    line_number: int  # 1-based position in the input file
