from __future__ import annotations

import io
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from safe_logger.core.config import LoggerConfig
from safe_logger.core.dispatcher import Logger
from safe_logger.core.sinks import ConsoleSink, FileSink, JournalSink
from safe_logger.core.sinks import journal as journal_module

FIXED_NOW = datetime(2025, 12, 30, 8, 12, 1, tzinfo=UTC)


@dataclass
class Harness:
    """A logger wired to in-memory streams, a fixed clock and a fake journal."""

    logger: Logger
    stdout: io.StringIO
    stderr: io.StringIO
    journal_calls: list[list[str]] = field(default_factory=list)

    @property
    def config(self) -> LoggerConfig:
        return self.logger.config

    def out_lines(self) -> list[str]:
        return self.stdout.getvalue().splitlines()

    def err_lines(self) -> list[str]:
        return self.stderr.getvalue().splitlines()

    def file_lines(self) -> list[str]:
        path = Path(self.config.log_file)
        if not path.exists():
            return []
        return path.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def fake_helper(tmp_path: Path) -> Path:
    helper = tmp_path / "bin" / "logger"
    helper.parent.mkdir()
    helper.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    helper.chmod(0o755)
    return helper


@pytest.fixture
def journal_calls(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    """Record journal helper invocations instead of running them."""
    calls: list[list[str]] = []

    def _run(command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        calls.append(list(command))
        return subprocess.CompletedProcess(command, 0)

    monkeypatch.setattr(journal_module.subprocess, "run", _run)
    return calls


@pytest.fixture
def make_logger(
    tmp_path: Path, fake_helper: Path, journal_calls: list[list[str]]
) -> Callable[..., Harness]:
    def _make(*, init: bool = True, helper: bool = True, **settings: Any) -> Harness:
        settings.setdefault("use_utc", True)
        settings.setdefault("script_name", "test.py")
        config = LoggerConfig(**settings)
        stdout, stderr = io.StringIO(), io.StringIO()
        candidates = [str(fake_helper)] if helper else [str(tmp_path / "missing" / "logger")]
        logger = Logger(
            config,
            console=ConsoleSink(config, stdout=stdout, stderr=stderr, environ={}),
            file=FileSink(config),
            journal=JournalSink(config, candidates=candidates),
            clock=lambda: FIXED_NOW,
        )
        if init:
            logger.init(announce=False)
        return Harness(logger, stdout, stderr, journal_calls)

    return _make
