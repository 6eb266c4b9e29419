"""Core data models for the logging pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum


class LogLevel(IntEnum):
    """Syslog-style severities. Lower value means more severe."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARN = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7

    # Aliases resolve to the canonical member above.
    FATAL = 0
    WARNING = 4


class RecordKind(str, Enum):
    """How a record is routed past the severity gate and across sinks."""

    STANDARD = "STANDARD"
    SENSITIVE = "SENSITIVE"  # console only, never file or journal
    INIT = "INIT"  # always shown, never journal
    CONFIG = "CONFIG"  # runtime setting change, never journal


class FileSinkState(str, Enum):
    """Lifecycle of the secure file sink."""

    UNINITIALIZED = "uninitialized"
    DIR_ENSURE = "dir_ensure"
    ATOMIC_CREATE = "atomic_create"
    VALIDATE = "validate"
    READY = "ready"
    FAILED = "failed"
    DEGRADED = "degraded"


@dataclass(frozen=True, slots=True)
class LogRecord:
    """A single log call, alive only for the duration of one dispatch."""

    level: LogLevel
    message: str
    timestamp: datetime
    script: str
    kind: RecordKind = RecordKind.STANDARD
    tag: str | None = None  # journal tag in effect when the record was made

    @property
    def label(self) -> str:
        """Text shown for %l."""
        if self.kind is RecordKind.STANDARD:
            return self.level.name
        return self.kind.value
