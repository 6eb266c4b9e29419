from __future__ import annotations

import pytest

from safe_logger.core.sanitizer import (
    TRUNCATION_MARKER,
    neutralize_newlines,
    sanitize,
    sanitize_identity,
    strip_ansi,
    strip_color,
    truncate,
)

HOSTILE = [
    "",
    "plain text",
    "line1\nFAKE [CRITICAL] line2",
    "a\r\nb\tc\vd\fe\x85f\u2028g\u2029h",
    "\x1b[2Jboom",
    "\x1b[31mred\x1b[0m",
    "A\x1b]0;title\x07B",
    "A\x1b]0;test\x1b[31mhack\x1b\\B",
    "A\x1b]8;;http://x\x1b\\link\x1b]8;;\x1b\\B",
    "\x1b[",
    "tail\x1b",
    "\x1b\x1b[1mX",
    "\x1bPdcs payload\x1b\\after",
    "\x9b31mC1 csi",
    "\x1b(Bcharset",
    "null\x00bell\x07del\x7f",
    "\x1b[1;\nX",
    "\x1b[\nhello",
    "unterminated \x1b]2;forever",
    "%d %m %%",
]


@pytest.mark.parametrize("message", HOSTILE)
@pytest.mark.parametrize(
    "allow_newlines, allow_ansi",
    [(False, False), (True, False), (False, True), (True, True)],
)
def test_sanitize_is_idempotent(message: str, allow_newlines: bool, allow_ansi: bool) -> None:
    once = sanitize(message, allow_newlines, allow_ansi)
    assert sanitize(once, allow_newlines, allow_ansi) == once


@pytest.mark.parametrize("message", HOSTILE)
def test_defenses_are_independent(message: str) -> None:
    assert sanitize(message, allow_newlines=True) == strip_ansi(message)
    assert sanitize(message, allow_ansi=True) == neutralize_newlines(message)


@pytest.mark.parametrize("message", HOSTILE)
def test_default_output_is_one_clean_line(message: str) -> None:
    out = sanitize(message)
    assert "\n" not in out and "\r" not in out
    assert "\x1b" not in out
    assert not any(ord(ch) < 0x20 or 0x7F <= ord(ch) <= 0x9F for ch in out)


def test_newlines_become_spaces() -> None:
    assert sanitize("line1\nFAKE [CRITICAL] line2") == "line1 FAKE [CRITICAL] line2"
    assert sanitize("a\r\nb\tc") == "a  b c"


def test_escape_sequences_are_removed() -> None:
    assert sanitize("\x1b[2Jboom") == "boom"
    assert sanitize("\x1b[1;31mred\x1b[0m text") == "red text"
    assert sanitize("A\x1b]0;title\x07B") == "AB"
    assert sanitize("\x1b(Bcharset") == "charset"
    assert sanitize("\x1bcreset") == "reset"


def test_osc_with_embedded_escape_runs_to_terminator() -> None:
    assert sanitize("A\x1b]0;test\x1b[31mhack\x1b\\B") == "AB"


def test_unterminated_string_sequence_drops_the_rest() -> None:
    assert sanitize("keep\x1b]0;never closed") == "keep"


def test_malformed_csi_rescans_breaking_character() -> None:
    # The NUL ends the CSI and is then dropped as a stray control.
    assert strip_ansi("\x1b[12\x00abc") == "abc"
    assert strip_ansi("x\x1b") == "x"


def test_strip_ansi_leaves_line_breaks_alone() -> None:
    assert strip_ansi("a\nb\x1b[0m\tc") == "a\nb\tc"


def test_allow_flags_keep_content() -> None:
    assert sanitize("a\nb", allow_newlines=True) == "a\nb"
    assert sanitize("\x1b[31mred", allow_ansi=True) == "\x1b[31mred"


def test_sanitize_accepts_non_strings() -> None:
    assert sanitize(42) == "42"
    assert sanitize(ValueError("bad\nvalue")) == "bad value"


def test_strip_color_only_touches_sgr() -> None:
    assert strip_color("\x1b[1;31mred\x1b[0m \x1b[2J") == "red \x1b[2J"


def test_truncate() -> None:
    text = "x" * 100
    cut = truncate(text, 50)
    assert cut == "x" * 50 + TRUNCATION_MARKER
    assert truncate(text, 0) == text
    assert truncate(text, 100) == text


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("deploy.sh", "deploy.sh"),
        ("my script;rm -rf", "my_script_rm_-rf"),
        ("naïve", "na_ve"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_sanitize_identity(raw, expected: str) -> None:
    assert sanitize_identity(raw) == expected


def test_line_break_inside_escape_does_not_eat_text() -> None:
    assert sanitize("\x1b[\nhello") == " hello"
    assert sanitize("\x1b[\nhello", allow_newlines=True) == "\nhello"
    assert sanitize("\x1b[\nhello", allow_ansi=True) == "\x1b[ hello"


def test_lone_surrogates_are_replaced() -> None:
    out = sanitize("name=bad\udcff")
    assert out == "name=bad\ufffd"
    assert out.encode("utf-8") == b"name=bad\xef\xbf\xbd"
    assert sanitize("\ud800x", allow_newlines=True, allow_ansi=True) == "\ufffdx"
    assert sanitize(out) == out
