"""Secure append-only file sink.

The file is acquired once, through a small state machine:

    UNINITIALIZED -> DIR_ENSURE -> ATOMIC_CREATE -> VALIDATE -> READY

Any step may end in FAILED instead, and a later write failure moves READY to
DEGRADED.

The target is created with O_CREAT|O_EXCL|O_NOFOLLOW, so a symlink planted
between a check and the open can never redirect the write. An existing file is
checked with lstat, then opened with O_NOFOLLOW and compared with fstat so the
descriptor we keep is the file we validated. Records are appended through that
descriptor; O_APPEND keeps concurrent writers from other processes from
overwriting each other, but their lines may interleave.

Error text never includes the path.
"""

from __future__ import annotations

import logging
import os
import stat
import sys
from pathlib import Path

from .. import diagnostics
from ..config import LoggerConfig
from ..errors import LogFileError
from ..formatter import Formatter
from ..models import FileSinkState, LogRecord, RecordKind
from ..sanitizer import truncate

logger = logging.getLogger(__name__)

FILE_MODE = 0o640

_O_NOFOLLOW = getattr(os, "O_NOFOLLOW", 0)
_O_CLOEXEC = getattr(os, "O_CLOEXEC", 0)
_APPEND_FLAGS = os.O_WRONLY | os.O_APPEND | _O_NOFOLLOW | _O_CLOEXEC


class FileSink:
    """Append rendered lines to a securely acquired log file."""

    def __init__(self, config: LoggerConfig) -> None:
        self._config = config
        self._fd: int | None = None
        self._path: str | None = None
        self.state = FileSinkState.UNINITIALIZED

    @property
    def ready(self) -> bool:
        return self.state is FileSinkState.READY

    def open(self) -> None:
        """Acquire ``config.log_file``; raise LogFileError on any rejection.

        Calling again for the file that is already open is a no-op.
        """
        path = self._config.log_file
        if not path:
            raise LogFileError("No log file configured")
        if self.ready and path == self._path:
            return

        self.close()
        try:
            self._ensure_dir(path)
            fd = self._atomic_create(path)
            if fd is None:
                fd = self._open_existing(path)
        except LogFileError:
            self.state = FileSinkState.FAILED
            raise

        self._fd = fd
        self._path = path
        self.state = FileSinkState.READY
        logger.debug("file sink ready")

    def _ensure_dir(self, path: str) -> None:
        self.state = FileSinkState.DIR_ENSURE
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as e:
            raise LogFileError(
                "Cannot create log directory; check permissions of the parent directory"
            ) from e

    def _atomic_create(self, path: str) -> int | None:
        """Create the file exclusively; None when it already exists."""
        self.state = FileSinkState.ATOMIC_CREATE
        try:
            fd = os.open(path, _APPEND_FLAGS | os.O_CREAT | os.O_EXCL, FILE_MODE)
        except FileExistsError:
            return None
        except (OSError, ValueError) as e:
            raise LogFileError(
                "Cannot create log file; check that the directory is writable"
            ) from e

        self.state = FileSinkState.VALIDATE
        if not stat.S_ISREG(os.fstat(fd).st_mode):
            os.close(fd)
            raise LogFileError("Log file is not a regular file; choose a plain file path")
        return fd

    def _open_existing(self, path: str) -> int:
        self.state = FileSinkState.VALIDATE
        try:
            st = os.lstat(path)
        except (OSError, ValueError) as e:
            raise LogFileError("Log file disappeared during validation; retry") from e

        if stat.S_ISLNK(st.st_mode):
            raise LogFileError(
                "Log file is a symbolic link; refusing to follow it. Use a regular file"
            )
        if not stat.S_ISREG(st.st_mode):
            raise LogFileError("Log file is not a regular file; choose a plain file path")
        if not os.access(path, os.W_OK):
            raise LogFileError("Log file is not writable; check its permissions")

        try:
            fd = os.open(path, _APPEND_FLAGS)
        except (OSError, ValueError) as e:
            raise LogFileError("Log file changed during validation; refusing to open it") from e

        opened = os.fstat(fd)
        if (
            not stat.S_ISREG(opened.st_mode)
            or opened.st_ino != st.st_ino
            or opened.st_dev != st.st_dev
        ):
            os.close(fd)
            raise LogFileError("Log file changed during validation; refusing to open it")
        return fd

    def close(self) -> None:
        if self._fd is not None:
            try:
                os.close(self._fd)
            finally:
                self._fd = None
        self._path = None
        if self.state is FileSinkState.READY:
            self.state = FileSinkState.UNINITIALIZED

    def emit(self, record: LogRecord, message: str) -> None:
        if record.kind is RecordKind.SENSITIVE:
            return
        if not self.ready or self._fd is None:
            return

        cfg = self._config
        formatter = Formatter(cfg.log_format, cfg.use_utc)
        line = formatter.render_plain(record, truncate(message, cfg.max_line_length))
        data = (line + "\n").encode("utf-8", errors="replace")

        try:
            while data:
                written = os.write(self._fd, data)
                data = data[written:]
        except OSError:
            logger.debug("file sink degraded", exc_info=True)
            self._degrade()
            # Keep the record rather than lose it.
            print(line, file=sys.stderr)

    def _degrade(self) -> None:
        fd, self._fd = self._fd, None
        self.state = FileSinkState.DEGRADED
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                logger.debug("closing degraded log file failed", exc_info=True)
        diagnostics.error(
            "Failed to write to log file; file logging disabled for this run "
            "(check free disk space and permissions)"
        )
