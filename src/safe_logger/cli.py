from __future__ import annotations

import argparse
import os
from typing import Any, Optional, Sequence

from safe_logger.core.config import resolve_config
from safe_logger.core.dispatcher import Logger
from safe_logger.core.levels import VALID_NAMES, try_parse_level
from safe_logger.core.models import LogLevel


def _parse_level(s: str) -> LogLevel:
    level = try_parse_level(s)
    if level is None:
        raise argparse.ArgumentTypeError(f"Invalid level. Allowed: {VALID_NAMES}")
    return level


def _non_negative(s: str) -> int:
    try:
        n = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError("must be a whole number (0 = unlimited)") from e
    if n < 0:
        raise argparse.ArgumentTypeError("must not be negative (0 = unlimited)")
    return n


def _log_file(s: str) -> str:
    # abspath, not resolve(): a symlinked target must still be seen (and refused).
    return os.path.abspath(os.path.expanduser(s))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="safe-log",
        description="Write one sanitized log record to the console, a log file and/or the system log.",
    )
    p.add_argument("message", nargs="+", help="Message text; several words are joined with spaces")
    p.add_argument(
        "-p",
        "--priority",
        type=_parse_level,
        default=LogLevel.INFO,
        help="Level of this record (name or 0-7). Default: INFO",
    )

    # Destinations
    p.add_argument("-l", "--log-file", type=_log_file, default=None, help="Append to this file")
    p.add_argument("-q", "--quiet", action="store_true", help="Disable console output")
    p.add_argument("-j", "--journal", action="store_true", help="Also send to the system log")
    p.add_argument("-t", "--tag", dest="journal_tag", default=None, help="System log tag")

    # Presentation
    p.add_argument("-d", "--level", dest="min_level", type=_parse_level, default=None,
                   help="Least severe level emitted (default: INFO)")
    p.add_argument("-e", "--stderr-level", type=_parse_level, default=None,
                   help="This level and more severe go to stderr (default: ERROR)")
    p.add_argument("-f", "--format", dest="log_format", default=None,
                   help='Line template with %%d %%z %%l %%s %%m %%%% (default: "%%d [%%l] [%%s] %%m")')
    p.add_argument("-c", "--color", dest="color_mode", choices=["auto", "always", "never"], default=None)
    p.add_argument("-u", "--utc", action="store_true", help="Render timestamps in UTC")
    p.add_argument("-s", "--script-name", default=None, help="Identity shown for %%s")
    p.add_argument("--max-line-length", type=_non_negative, default=None,
                   help="Console/file message limit (default: 4096, 0 = unlimited)")
    p.add_argument("--max-journal-length", type=_non_negative, default=None,
                   help="System log message limit (default: 4096, 0 = unlimited)")

    # Unsafe switches
    p.add_argument("-N", "--unsafe-allow-newlines", action="store_true",
                   help="Keep line breaks in the message (allows log forging)")
    p.add_argument("-A", "--unsafe-allow-ansi-codes", action="store_true",
                   help="Keep terminal escape sequences in the message")

    p.add_argument("--sensitive", action="store_true",
                   help="Console only; never written to the file or the system log")
    return p


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    # None means "not given"; resolve_config then falls back to SAFE_LOG_* or the default.
    def flag(v: bool) -> Optional[bool]:
        return True if v else None

    return {
        "log_file": args.log_file,
        "min_level": args.min_level,
        "stderr_level": args.stderr_level,
        "log_format": args.log_format,
        "color_mode": args.color_mode,
        "script_name": args.script_name,
        "journal": flag(args.journal),
        "journal_tag": args.journal_tag,
        "use_utc": flag(args.utc),
        "console": False if args.quiet else None,
        "unsafe_allow_newlines": flag(args.unsafe_allow_newlines),
        "unsafe_allow_ansi_codes": flag(args.unsafe_allow_ansi_codes),
        "max_line_length": args.max_line_length,
        "max_journal_length": args.max_journal_length,
    }


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    logger = Logger(resolve_config(_overrides(args)))
    if not logger.init(announce=False):
        raise SystemExit(1)

    message = " ".join(args.message)
    try:
        if args.sensitive:
            logger.sensitive(message)
        else:
            logger.log(args.priority, message)
    finally:
        logger.close()


if __name__ == "__main__":
    main()
