"""Exception types raised inside sinks.

Messages never include paths; they name the failure category and a fix.
"""

from __future__ import annotations


class SafeLoggerError(RuntimeError):
    """Base error for safe_logger."""


class LogFileError(SafeLoggerError):
    """Raised when the log file cannot be safely acquired or written."""


class JournalUnavailableError(SafeLoggerError):
    """Raised when the system log helper is missing or fails."""
