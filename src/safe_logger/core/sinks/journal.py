"""System log (journal) sink.

The `logger` helper is looked up only in a fixed list of absolute paths and is
run with an argument vector and a minimal environment, never through a shell
or a PATH search.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .. import diagnostics
from ..config import LoggerConfig
from ..errors import JournalUnavailableError
from ..formatter import Formatter
from ..levels import syslog_priority
from ..models import LogRecord, RecordKind
from ..sanitizer import strip_color, truncate

logger = logging.getLogger(__name__)

DEFAULT_HELPER_PATHS: tuple[str, ...] = (
    "/usr/bin/logger",
    "/bin/logger",
    "/usr/local/bin/logger",
)
FACILITY = "daemon"

_HELPER_ENV = {"PATH": "/usr/bin:/bin", "LC_ALL": "C.UTF-8"}


def find_helper(candidates: Sequence[str] = DEFAULT_HELPER_PATHS) -> str | None:
    """Return the first absolute, executable regular file among candidates."""
    for candidate in candidates:
        path = Path(candidate)
        if not path.is_absolute():
            continue
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
    return None


class JournalSink:
    """Forward standard records to the system log via the logger helper."""

    def __init__(
        self,
        config: LoggerConfig,
        *,
        candidates: Sequence[str] = DEFAULT_HELPER_PATHS,
    ) -> None:
        self._config = config
        self._candidates = tuple(candidates)
        self._helper: str | None = None
        self._resolved = False
        self.degraded = False

    @property
    def helper(self) -> str | None:
        return self._helper

    def resolve(self) -> str | None:
        """Locate the helper once; later calls return the cached result."""
        if not self._resolved:
            self._helper = find_helper(self._candidates)
            self._resolved = True
            logger.debug("journal helper %s", "found" if self._helper else "missing")
        return self._helper

    def require(self) -> str:
        """Return the helper path or raise when it cannot be used."""
        helper = self.resolve()
        if helper is None or self.degraded:
            raise JournalUnavailableError(
                "System log helper not found in standard locations; "
                "install util-linux or bsdutils to enable journal logging"
            )
        return helper

    def build_command(self, record: LogRecord, line: str) -> list[str]:
        helper = self.require()
        tag = record.tag or self._config.effective_tag
        return [
            helper,
            "-p",
            f"{FACILITY}.{syslog_priority(record.level)}",
            "-t",
            tag,
            "--",
            line,
        ]

    def emit(self, record: LogRecord, message: str) -> None:
        if record.kind is not RecordKind.STANDARD:
            return
        cfg = self._config
        if not cfg.journal or self.degraded:
            return

        formatter = Formatter(cfg.log_format, cfg.use_utc)
        line = formatter.render_plain(record, truncate(message, cfg.max_journal_length))
        # argv entries cannot carry NUL; it only survives when ANSI codes are allowed.
        line = strip_color(line).replace("\x00", "")

        try:
            command = self.build_command(record, line)
            result = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=_HELPER_ENV,
                check=False,
            )
        except (OSError, JournalUnavailableError):
            logger.debug("journal sink degraded", exc_info=True)
            self._degrade()
            return

        if result.returncode != 0:
            self._degrade()

    def _degrade(self) -> None:
        self.degraded = True
        diagnostics.warn(
            "System log helper failed; journal logging disabled for this run "
            "(check that the system log service is running)"
        )
