"""Module-level logging functions.

A thin layer over one process-wide `Logger`, for scripts that want
`init_logger(...)` followed by `log_info(...)` without passing an object
around. Keep this layer thin: build the config, forward to the core.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from safe_logger.core.config import LoggerConfig, resolve_config
from safe_logger.core.dispatcher import Logger
from safe_logger.core.models import LogLevel

_default: Logger | None = None


def _caller_script() -> str:
    """Best-effort identity of the running script."""
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else ""
    return name or "unknown"


def init_logger(config: LoggerConfig | None = None, **overrides: Any) -> bool:
    """(Re)initialize the default logger.

    Without an explicit config, SAFE_LOG_* environment variables and the
    keyword overrides are resolved; invalid values fall back to defaults.
    Returns False when the log file could not be safely acquired.
    """
    global _default
    if config is None:
        overrides.setdefault("script_name", _caller_script())
        config = resolve_config(overrides)
    if _default is not None:
        _default.close()
    _default = Logger(config)
    return _default.init()


def get_logger() -> Logger:
    """Return the default logger, creating an uninitialized console-only one."""
    global _default
    if _default is None:
        _default = Logger(resolve_config({"script_name": _caller_script()}))
    return _default


def close_logger() -> None:
    global _default
    if _default is not None:
        _default.close()
        _default = None


def log_emergency(message: object) -> None:
    get_logger().emergency(message)


def log_fatal(message: object) -> None:
    get_logger().fatal(message)


def log_alert(message: object) -> None:
    get_logger().alert(message)


def log_critical(message: object) -> None:
    get_logger().critical(message)


def log_error(message: object) -> None:
    get_logger().error(message)


def log_warn(message: object) -> None:
    get_logger().warn(message)


def log_notice(message: object) -> None:
    get_logger().notice(message)


def log_info(message: object) -> None:
    get_logger().info(message)


def log_debug(message: object) -> None:
    get_logger().debug(message)


def log_sensitive(message: object) -> None:
    """Console only; never reaches the log file or the system log."""
    get_logger().sensitive(message)


def log_init(message: object) -> None:
    get_logger().init_message(message)


def set_log_level(level: str | int | LogLevel) -> None:
    get_logger().set_log_level(level)


def set_log_format(log_format: str) -> None:
    get_logger().set_log_format(log_format)


def set_timezone_utc(use_utc: bool | str) -> None:
    get_logger().set_timezone_utc(use_utc)


def set_journal_logging(enabled: bool | str) -> None:
    get_logger().set_journal_logging(enabled)


def set_journal_tag(tag: str) -> None:
    get_logger().set_journal_tag(tag)


def set_color_mode(mode: str) -> None:
    get_logger().set_color_mode(mode)


def set_unsafe_allow_newlines(allow: bool | str) -> None:
    get_logger().set_unsafe_allow_newlines(allow)


def set_unsafe_allow_ansi_codes(allow: bool | str) -> None:
    get_logger().set_unsafe_allow_ansi_codes(allow)
