"""Injection defenses for untrusted log text.

Two independent defenses are applied to every message:

- newline neutralization (CWE-117): line-breaking characters become a space so
  one call can never produce more than one log line;
- terminal escape stripping (CWE-150): ANSI/VT escape sequences and stray
  control characters are removed by an explicit-state scanner.

The defenses split the control range between them. The newline defense only
touches line breaks and the escape scanner leaves line breaks alone, so
switching either one off never changes what the other one does.
"""

from __future__ import annotations

import re
from enum import Enum

TRUNCATION_MARKER = "...[truncated]"
UNKNOWN_IDENTITY = "unknown"
REPLACEMENT_CHAR = "\ufffd"

_ESC = "\x1b"
_BEL = "\x07"
_CSI_8BIT = "\x9b"
_ST_8BIT = "\x9c"

# ESC ] (OSC), ESC P (DCS), ESC X (SOS), ESC ^ (PM), ESC _ (APC)
_STRING_INTRODUCERS = frozenset("]PX^_")
_STRING_INTRODUCERS_8BIT = frozenset("\x9d\x90\x98\x9e\x9f")

_LINE_BREAKS = "\n\r\t\v\f\x85\u2028\u2029"
_LINE_BREAK_TABLE = str.maketrans({ch: " " for ch in _LINE_BREAKS})

_IDENTITY_RE = re.compile(r"[^A-Za-z0-9._-]")
_SGR_RE = re.compile(r"(?:\x1b\[|\x9b)[0-9;]*m")
_SURROGATE_RE = re.compile(r"[\ud800-\udfff]")


class _ScanState(Enum):
    TEXT = "text"
    ESCAPE = "escape"  # saw ESC
    CSI = "csi"  # ESC [ params/intermediates, waiting for final byte
    NF = "nf"  # ESC + intermediates, waiting for final byte
    STRING = "string"  # OSC/DCS/SOS/PM/APC payload
    STRING_ESCAPE = "string_escape"  # ESC inside a string, maybe ST


def _is_stray_control(ch: str) -> bool:
    code = ord(ch)
    if ch in _LINE_BREAKS:
        return False
    return code < 0x20 or code == 0x7F or 0x80 <= code <= 0x9F


def neutralize_newlines(text: str) -> str:
    """Replace every line-breaking character with a single space."""
    return text.translate(_LINE_BREAK_TABLE)


def strip_ansi(text: str) -> str:
    """Remove escape sequences and stray control characters.

    Malformed sequences are handled byte by byte: a CSI or nF escape broken by
    an out-of-range character is dropped and that character is scanned again
    as ordinary text. String sequences (OSC and friends) run until BEL or ST;
    an unterminated one removes the rest of the input.
    """
    out: list[str] = []
    state = _ScanState.TEXT
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        code = ord(ch)

        if state is _ScanState.TEXT:
            if ch == _ESC:
                state = _ScanState.ESCAPE
            elif ch == _CSI_8BIT:
                state = _ScanState.CSI
            elif ch in _STRING_INTRODUCERS_8BIT:
                state = _ScanState.STRING
            elif not _is_stray_control(ch):
                out.append(ch)
            i += 1

        elif state is _ScanState.ESCAPE:
            if ch == "[":
                state = _ScanState.CSI
                i += 1
            elif ch in _STRING_INTRODUCERS:
                state = _ScanState.STRING
                i += 1
            elif 0x20 <= code <= 0x2F:
                state = _ScanState.NF
                i += 1
            elif 0x30 <= code <= 0x7E:
                # Two-byte escape such as ESC c or ESC 7.
                state = _ScanState.TEXT
                i += 1
            else:
                # Lone ESC: drop it and rescan this character.
                state = _ScanState.TEXT

        elif state is _ScanState.CSI:
            if 0x20 <= code <= 0x3F:
                i += 1
            elif 0x40 <= code <= 0x7E:
                state = _ScanState.TEXT
                i += 1
            else:
                state = _ScanState.TEXT

        elif state is _ScanState.NF:
            if 0x20 <= code <= 0x2F:
                i += 1
            elif 0x30 <= code <= 0x7E:
                state = _ScanState.TEXT
                i += 1
            else:
                state = _ScanState.TEXT

        elif state is _ScanState.STRING:
            if ch in (_BEL, _ST_8BIT):
                state = _ScanState.TEXT
            elif ch == _ESC:
                state = _ScanState.STRING_ESCAPE
            i += 1

        else:  # STRING_ESCAPE
            if ch == "\\":
                state = _ScanState.TEXT
            elif ch != _ESC:
                # Embedded sequence inside the payload; keep consuming.
                state = _ScanState.STRING
            i += 1

    return "".join(out)


def strip_color(text: str) -> str:
    """Remove SGR (color/attribute) sequences only."""
    return _SGR_RE.sub("", text)


def sanitize(raw: object, allow_newlines: bool = False, allow_ansi: bool = False) -> str:
    """Return text safe to place in a single log line.

    Never raises. Idempotent for any combination of flags. Lone surrogates
    are always replaced with U+FFFD so the result encodes as UTF-8.

    The escape scanner runs first and leaves line breaks to the newline
    defense, so a line break is never read as part of an escape sequence.
    """
    text = raw if isinstance(raw, str) else str(raw)
    text = _SURROGATE_RE.sub(REPLACEMENT_CHAR, text)
    if not allow_ansi:
        text = strip_ansi(text)
    if not allow_newlines:
        text = neutralize_newlines(text)
    return text


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters plus a marker; 0 means unlimited."""
    if limit <= 0 or len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def sanitize_identity(text: str | None) -> str:
    """Restrict an identity string (script name, tag) to [A-Za-z0-9._-]."""
    if not text:
        return UNKNOWN_IDENTITY
    return _IDENTITY_RE.sub("_", text)
