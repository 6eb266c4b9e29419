from __future__ import annotations

import os
from pathlib import Path

import pytest

from safe_logger.cli import main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SAFE_LOG_"):
            monkeypatch.delenv(name)


def test_writes_one_line(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "cli.log"

    main(["-l", str(path), "-s", "deploy", "-f", "[%l] [%s] %m", "-c", "never", "hello", "world"])

    assert path.read_text(encoding="utf-8") == "[INFO] [deploy] hello world\n"
    assert capsys.readouterr().out == "[INFO] [deploy] hello world\n"


def test_priority_and_stderr_routing(capsys: pytest.CaptureFixture[str]) -> None:
    main(["-p", "warn", "-e", "warn", "-f", "%l %m", "-c", "never", "careful"])

    out, err = capsys.readouterr()
    assert out == ""
    assert err == "WARN careful\n"


def test_quiet_and_level_filter(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "cli.log"

    main(["-q", "-d", "error", "-l", str(path), "-p", "info", "dropped"])

    assert capsys.readouterr() == ("", "")
    assert path.read_text(encoding="utf-8") == ""


def test_sensitive_stays_off_disk(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "cli.log"

    main(["--sensitive", "-l", str(path), "-f", "%m", "-c", "never", "secret"])

    assert capsys.readouterr().out == "secret\n"
    assert path.read_text(encoding="utf-8") == ""


def test_relative_log_path_is_made_absolute(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    main(["-q", "-l", "rel.log", "-f", "%m", "x"])

    assert (tmp_path / "rel.log").read_text(encoding="utf-8") == "x\n"


def test_unsafe_flags(tmp_path: Path) -> None:
    path = tmp_path / "cli.log"

    main(["-q", "-N", "-l", str(path), "-f", "%m", "a\nb\x1b[2J"])
    main(["-q", "-A", "-l", str(path), "-f", "%m", "c\nd"])

    assert path.read_text(encoding="utf-8") == "a\nb\nc d\n"


def test_truncation_option(tmp_path: Path) -> None:
    path = tmp_path / "cli.log"

    main(["-q", "--max-line-length", "3", "-l", str(path), "-f", "%m", "abcdef"])

    assert path.read_text(encoding="utf-8") == "abc...[truncated]\n"


def test_symlink_log_file_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = tmp_path / "target"
    target.write_text("keep\n", encoding="utf-8")
    link = tmp_path / "link.log"
    link.symlink_to(target)

    with pytest.raises(SystemExit) as exc:
        main(["-l", str(link), "msg"])

    assert exc.value.code == 1
    assert target.read_text(encoding="utf-8") == "keep\n"
    assert "Error: Log file is a symbolic link" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv",
    [
        ["-p", "loud", "msg"],
        ["-d", "9", "msg"],
        ["-c", "rainbow", "msg"],
        ["--max-line-length", "-1", "msg"],
        [],
    ],
)
def test_bad_arguments_exit_2(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 2
