"""Console sink: stdout/stderr routing and color resolution."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import TextIO

from .. import diagnostics
from ..config import LoggerConfig
from ..formatter import Formatter
from ..models import LogLevel, LogRecord
from ..sanitizer import truncate

logger = logging.getLogger(__name__)


def should_use_stderr(level: LogLevel, stderr_level: LogLevel) -> bool:
    """Records at or above the threshold's severity go to stderr."""
    return level <= stderr_level


def resolve_color(mode: str, stream: TextIO, environ: Mapping[str, str]) -> bool:
    """Decide whether console output gets color.

    ``always``/``never`` win outright. In ``auto`` mode: NO_COLOR, then
    FORCE_COLOR/CLICOLOR_FORCE, then TTY detection, then TERM capability.
    """
    if mode == "always":
        return True
    if mode == "never":
        return False

    if environ.get("NO_COLOR"):
        return False
    for name in ("FORCE_COLOR", "CLICOLOR_FORCE"):
        force = environ.get(name, "")
        if force and force != "0":
            return True

    isatty = getattr(stream, "isatty", None)
    try:
        interactive = bool(isatty and isatty())
    except ValueError:  # closed stream
        interactive = False
    if not interactive:
        return False

    term = environ.get("TERM", "")
    return bool(term) and term != "dumb"


class ConsoleSink:
    """Write records to stdout or stderr by severity."""

    def __init__(
        self,
        config: LoggerConfig,
        *,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._stdout = stdout
        self._stderr = stderr
        self._environ = environ
        self.degraded = False

    def stream_for(self, level: LogLevel) -> TextIO:
        # Looked up per call so redirected sys streams are honored.
        if should_use_stderr(level, self._config.stderr_level):
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout

    def emit(self, record: LogRecord, message: str) -> None:
        cfg = self._config
        if not cfg.console or self.degraded:
            return

        stream = self.stream_for(record.level)
        environ = os.environ if self._environ is None else self._environ
        formatter = Formatter(cfg.log_format, cfg.use_utc)
        message = truncate(message, cfg.max_line_length)
        if resolve_color(cfg.color_mode, stream, environ):
            line = formatter.render_color(record, message)
        else:
            line = formatter.render(record, message)

        try:
            try:
                stream.write(line + "\n")
            except UnicodeEncodeError:
                # Characters the stream's encoding cannot represent become "?".
                encoding = getattr(stream, "encoding", None) or "ascii"
                stream.write(line.encode(encoding, "replace").decode(encoding) + "\n")
            stream.flush()
        except (OSError, ValueError):
            self.degraded = True
            logger.debug("console sink degraded", exc_info=True)
            diagnostics.error("Console output failed; console logging disabled for this run")
