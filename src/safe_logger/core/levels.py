"""Level registry: name <-> severity <-> syslog priority."""

from __future__ import annotations

from . import diagnostics
from .models import LogLevel

_SYSLOG_PRIORITIES: dict[LogLevel, str] = {
    LogLevel.EMERGENCY: "emerg",
    LogLevel.ALERT: "alert",
    LogLevel.CRITICAL: "crit",
    LogLevel.ERROR: "err",
    LogLevel.WARN: "warning",
    LogLevel.NOTICE: "notice",
    LogLevel.INFO: "info",
    LogLevel.DEBUG: "debug",
}

DEFAULT_LEVEL = LogLevel.INFO
VALID_NAMES = "EMERGENCY, ALERT, CRITICAL, ERROR, WARN, NOTICE, INFO, DEBUG (or 0-7)"


def _lookup(value: str | int | LogLevel) -> LogLevel | None:
    if isinstance(value, LogLevel):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return LogLevel(value) if 0 <= value <= 7 else None

    name = str(value).strip()
    if len(name) == 1 and name in "01234567":
        return LogLevel(int(name))
    try:
        # __members__ includes the FATAL and WARNING aliases.
        return LogLevel.__members__[name.upper()]
    except KeyError:
        return None


def try_parse_level(value: str | int | LogLevel) -> LogLevel | None:
    """Return the level for a name or 0-7 value, or None when unrecognized."""
    return _lookup(value)


def parse_level(value: str | int | LogLevel) -> LogLevel:
    """Resolve a level name or numeric string, falling back to INFO.

    Never raises; an unrecognized value produces a warning and the default.
    """
    level = _lookup(value)
    if level is None:
        diagnostics.warn(
            f"Unrecognized log level, using {DEFAULT_LEVEL.name}. Valid values: {VALID_NAMES}"
        )
        return DEFAULT_LEVEL
    return level


def level_name(severity: int) -> str:
    try:
        return LogLevel(severity).name
    except ValueError:
        return "UNKNOWN"


def syslog_priority(severity: int) -> str:
    """Map a severity to its syslog priority keyword (unknown -> notice)."""
    try:
        return _SYSLOG_PRIORITIES[LogLevel(severity)]
    except ValueError:
        return "notice"
