"""Output sinks.

Contains the console, secure file and system log (journal) destinations.
"""

from __future__ import annotations

from .base import Sink
from .console import ConsoleSink, resolve_color, should_use_stderr
from .file import FileSink
from .journal import DEFAULT_HELPER_PATHS, JournalSink, find_helper

__all__ = [
    "DEFAULT_HELPER_PATHS",
    "ConsoleSink",
    "FileSink",
    "JournalSink",
    "Sink",
    "find_helper",
    "resolve_color",
    "should_use_stderr",
]
