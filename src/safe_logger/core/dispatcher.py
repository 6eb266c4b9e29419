"""Dispatcher: the single path every log call takes.

sanitize -> render -> fan out to the console, file and journal sinks. Each
sink renders its own presentation from the shared config; a failure in one
sink never stops the others.

Routing of the special record kinds:

    kind        severity gate   console   file   journal
    STANDARD    yes             yes       yes    yes
    SENSITIVE   bypassed        yes       never  never
    INIT        always passes   yes       yes    never
    CONFIG      always passes   yes       yes    never
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from . import diagnostics
from .config import LoggerConfig, parse_bool
from .errors import JournalUnavailableError, LogFileError
from .levels import VALID_NAMES, parse_level, try_parse_level
from .models import LogLevel, LogRecord, RecordKind
from .sanitizer import sanitize
from .sinks import ConsoleSink, FileSink, JournalSink, Sink

logger = logging.getLogger(__name__)


def _on_off(flag: bool) -> str:
    return "on" if flag else "off"


class Logger:
    """Leveled, sanitizing, multi-sink logger.

    The logger owns one `LoggerConfig`; sinks keep a reference to it, so the
    runtime setters below take effect on the next record.
    """

    def __init__(
        self,
        config: LoggerConfig | None = None,
        *,
        console: ConsoleSink | None = None,
        file: FileSink | None = None,
        journal: JournalSink | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config if config is not None else LoggerConfig()
        self.console = console or ConsoleSink(self.config)
        self.file = file or FileSink(self.config)
        self.journal = journal or JournalSink(self.config)
        self._clock = clock or (lambda: datetime.now(UTC))

    # -- lifecycle ---------------------------------------------------------

    def init(self, *, announce: bool = True) -> bool:
        """Acquire sinks and, unless ``announce`` is False, emit an INIT record.

        Returns False when the log file cannot be safely used; the caller
        decides whether to continue without file logging.
        """
        cfg = self.config

        if cfg.log_file:
            try:
                self.file.open()
            except LogFileError as e:
                diagnostics.error(str(e))
                return False
        else:
            self.file.close()

        if cfg.journal and self.journal.resolve() is None:
            diagnostics.warn("System log helper not found; journal logging disabled")
            self.journal.degraded = True

        if not announce:
            return True
        self.init_message(
            f"Logger initialized by '{cfg.script_name}' "
            f"(level={cfg.min_level.name}, console={_on_off(cfg.console)}, "
            f"file={_on_off(self.file.ready)}, "
            f"journal={_on_off(cfg.journal and not self.journal.degraded)})"
        )
        return True

    def close(self) -> None:
        self.file.close()

    # -- dispatch ----------------------------------------------------------

    def _dispatch(
        self,
        level: LogLevel,
        message: object,
        kind: RecordKind = RecordKind.STANDARD,
        *,
        tag: str | None = None,
    ) -> None:
        cfg = self.config
        if kind is RecordKind.STANDARD and level > cfg.min_level:
            return

        text = sanitize(message, cfg.unsafe_allow_newlines, cfg.unsafe_allow_ansi_codes)
        record = LogRecord(
            level=level,
            message=text,
            timestamp=self._clock(),
            script=cfg.script_name,
            kind=kind,
            tag=tag or cfg.effective_tag,
        )

        self._emit(self.console, record, text)
        if kind is RecordKind.SENSITIVE:
            return
        self._emit(self.file, record, text)
        if kind is RecordKind.STANDARD:
            self._emit(self.journal, record, text)

    def _emit(self, sink: Sink, record: LogRecord, text: str) -> None:
        try:
            sink.emit(record, text)
        except Exception:
            # Sinks report their own expected failures; this keeps an
            # unexpected one from reaching the remaining sinks or the caller.
            logger.debug("sink %s raised", type(sink).__name__, exc_info=True)
            diagnostics.error(
                f"{type(sink).__name__} failed unexpectedly; continuing with remaining outputs"
            )

    def log(self, level: str | int | LogLevel, message: object) -> None:
        self._dispatch(parse_level(level), message)

    def emergency(self, message: object) -> None:
        self._dispatch(LogLevel.EMERGENCY, message)

    fatal = emergency

    def alert(self, message: object) -> None:
        self._dispatch(LogLevel.ALERT, message)

    def critical(self, message: object) -> None:
        self._dispatch(LogLevel.CRITICAL, message)

    def error(self, message: object) -> None:
        self._dispatch(LogLevel.ERROR, message)

    def warn(self, message: object) -> None:
        self._dispatch(LogLevel.WARN, message)

    warning = warn

    def notice(self, message: object) -> None:
        self._dispatch(LogLevel.NOTICE, message)

    def info(self, message: object) -> None:
        self._dispatch(LogLevel.INFO, message)

    def debug(self, message: object) -> None:
        self._dispatch(LogLevel.DEBUG, message)

    def sensitive(self, message: object) -> None:
        """Console only. Never written to the log file or the system log."""
        self._dispatch(LogLevel.INFO, message, RecordKind.SENSITIVE)

    def init_message(self, message: object) -> None:
        """Always shown on the console and written to the file; never journaled."""
        self._dispatch(LogLevel.INFO, message, RecordKind.INIT)

    def _audit(self, message: str, *, tag: str | None = None) -> None:
        self._dispatch(LogLevel.INFO, message, RecordKind.CONFIG, tag=tag)

    # -- runtime setters ---------------------------------------------------

    def _flag(self, value: bool | str, what: str) -> bool | None:
        flag = parse_bool(value)
        if flag is None:
            diagnostics.warn(
                f"Invalid {what} setting (expected true/false); keeping the current setting"
            )
        return flag

    def _assign(self, field: str, value: Any, hint: str) -> bool:
        try:
            setattr(self.config, field, value)
        except ValidationError:
            diagnostics.warn(f"{hint}; keeping the current setting")
            return False
        return True

    def set_log_level(self, level: str | int | LogLevel) -> None:
        old = self.config.min_level
        new = try_parse_level(level)
        if new is None:
            diagnostics.warn(
                f"Unrecognized log level (valid: {VALID_NAMES}); keeping the current setting"
            )
            return
        self.config.min_level = new
        self._audit(f"Log level changed from {old.name} to {new.name}")

    def set_log_format(self, log_format: str) -> None:
        old = self.config.log_format
        hint = "Invalid log format (empty or has control characters)"
        if not self._assign("log_format", log_format, hint):
            return
        self._audit(f'Log format changed from "{old}" to "{self.config.log_format}"')

    def set_timezone_utc(self, use_utc: bool | str) -> None:
        flag = self._flag(use_utc, "timezone")
        if flag is None:
            return
        old = self.config.use_utc
        self.config.use_utc = flag
        zone = {True: "UTC", False: "LOCAL"}
        self._audit(f"Timezone changed from {zone[old]} to {zone[flag]}")

    def set_journal_logging(self, enabled: bool | str) -> None:
        flag = self._flag(enabled, "journal")
        if flag is None:
            return
        if flag:
            try:
                self.journal.require()
            except JournalUnavailableError as e:
                diagnostics.error(f"{e}; cannot enable journal logging")
                return
        old = self.config.journal
        self.config.journal = flag
        self._audit(f"Journal logging changed from {_on_off(old)} to {_on_off(flag)}")

    def set_journal_tag(self, tag: str) -> None:
        old = self.config.effective_tag
        if not self._assign("journal_tag", tag, "Invalid journal tag"):
            return
        # Recorded under the tag that was in effect before the change.
        self._audit(
            f'Journal tag changed from "{old}" to "{self.config.effective_tag}"', tag=old
        )

    def set_color_mode(self, mode: str) -> None:
        old = self.config.color_mode
        hint = "Invalid color mode (expected auto, always or never)"
        if not self._assign("color_mode", mode, hint):
            return
        self._audit(f"Color mode changed from {old} to {self.config.color_mode}")

    def set_unsafe_allow_newlines(self, allow: bool | str) -> None:
        flag = self._flag(allow, "newline")
        if flag is None:
            return
        old = self.config.unsafe_allow_newlines
        self.config.unsafe_allow_newlines = flag
        self._audit(f"Unsafe newlines changed from {_on_off(old)} to {_on_off(flag)}")

    def set_unsafe_allow_ansi_codes(self, allow: bool | str) -> None:
        flag = self._flag(allow, "ANSI")
        if flag is None:
            return
        old = self.config.unsafe_allow_ansi_codes
        self.config.unsafe_allow_ansi_codes = flag
        self._audit(f"Unsafe ANSI codes changed from {_on_off(old)} to {_on_off(flag)}")
