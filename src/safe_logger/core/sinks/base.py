"""Sink interface."""

from __future__ import annotations

from typing import Protocol

from ..models import LogRecord


class Sink(Protocol):
    """Output destination for dispatched records.

    Sinks hold a reference to the logger's live config and render the record
    themselves, since presentation (color, truncation limit) is sink-specific.
    """

    def emit(self, record: LogRecord, message: str) -> None:
        """Write one record; ``message`` is already sanitized."""
        ...
