"""User-facing diagnostics written to stderr.

Messages passed here must not contain filesystem paths or other environment
details; give a category and a remediation hint instead.
"""

from __future__ import annotations

import sys


def warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
