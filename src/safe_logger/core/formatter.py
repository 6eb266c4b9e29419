"""Template rendering for log lines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC

from .models import LogRecord, RecordKind
from .sanitizer import sanitize_identity, strip_color

DEFAULT_FORMAT = "%d [%l] [%s] %m"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

RESET = "\x1b[0m"

# SGR prefixes keyed by the %l label.
_LEVEL_COLORS: dict[str, str] = {
    "DEBUG": "\x1b[34m",  # blue
    "INFO": "",
    "NOTICE": "\x1b[32m",  # green
    "WARN": "\x1b[33m",  # yellow
    "ERROR": "\x1b[31m",  # red
    "CRITICAL": "\x1b[1;31m",  # bold red
    "ALERT": "\x1b[37;41m",  # white on red
    "EMERGENCY": "\x1b[1;37;41m",  # bold white on red
    RecordKind.INIT.value: "\x1b[35m",  # purple
    RecordKind.CONFIG.value: "\x1b[35m",
    RecordKind.SENSITIVE.value: "\x1b[36m",  # cyan
}


def level_color(label: str) -> str:
    """SGR prefix for a level label; empty when the label has no color."""
    return _LEVEL_COLORS.get(label.upper(), "")


@dataclass(frozen=True, slots=True)
class Formatter:
    """Render records through a %-placeholder template.

    Placeholders: %d timestamp, %z UTC/LOCAL, %l level, %s script identity,
    %m message, %% literal percent. Anything else after % is kept as-is.
    """

    template: str = DEFAULT_FORMAT
    use_utc: bool = False

    def _timestamp(self, record: LogRecord) -> str:
        # Naive timestamps are taken as local time.
        ts = record.timestamp.astimezone(UTC) if self.use_utc else record.timestamp.astimezone()
        return ts.strftime(TIMESTAMP_FORMAT)

    def render(self, record: LogRecord, message: str) -> str:
        """Substitute placeholders in one pass.

        ``message`` must already be sanitized and truncated. Substituted text is
        never rescanned, so a message containing "%d" stays literal.
        """
        out: list[str] = []
        template = self.template
        i = 0
        n = len(template)

        while i < n:
            ch = template[i]
            if ch != "%" or i + 1 >= n:
                out.append(ch)
                i += 1
                continue

            code = template[i + 1]
            if code == "d":
                out.append(self._timestamp(record))
            elif code == "z":
                out.append("UTC" if self.use_utc else "LOCAL")
            elif code == "l":
                out.append(record.label)
            elif code == "s":
                out.append(sanitize_identity(record.script))
            elif code == "m":
                out.append(message)
            elif code == "%":
                out.append("%")
            else:
                out.append(ch + code)
            i += 2

        return "".join(out)

    def render_plain(self, record: LogRecord, message: str) -> str:
        """Rendering for file and journal sinks: never carries color."""
        return strip_color(self.render(record, message))

    def render_color(self, record: LogRecord, message: str) -> str:
        """Rendering for the console, wrapped in the level's color."""
        line = self.render(record, message)
        color = level_color(record.label)
        if not color:
            return line
        return f"{color}{line}{RESET}"
