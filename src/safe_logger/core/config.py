"""Logger configuration model and resolution.

`LoggerConfig` is the single configuration object owned by a `Logger`.
`resolve_config` builds one from SAFE_LOG_* environment variables and explicit
overrides, replacing anything malformed with the default and a warning.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import PurePath
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import diagnostics
from .formatter import DEFAULT_FORMAT
from .levels import try_parse_level
from .models import LogLevel
from .sanitizer import sanitize, sanitize_identity

ColorMode = Literal["auto", "always", "never"]

MAX_TAG_LENGTH = 64
DEFAULT_MAX_LENGTH = 4096
ENV_PREFIX = "SAFE_LOG_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


class LoggerConfig(BaseModel):
    """Validated logger settings. Every assignment is re-validated."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    min_level: LogLevel = Field(default=LogLevel.INFO, description="Least severe level emitted.")
    stderr_level: LogLevel = Field(
        default=LogLevel.ERROR,
        description="Records at this severity or more severe go to stderr.",
    )
    log_format: str = Field(default=DEFAULT_FORMAT, description="Line template.")
    color_mode: ColorMode = Field(default="auto", description="Console color mode.")
    log_file: str = Field(default="", description="Absolute log file path, or empty.")
    script_name: str = Field(default="unknown", description="Identity shown for %s.")
    journal: bool = Field(default=False, description="Send records to the system log.")
    journal_tag: str = Field(default="", description="System log tag; empty uses script_name.")
    use_utc: bool = Field(default=False, description="Render timestamps in UTC.")
    console: bool = Field(default=True, description="Write records to stdout/stderr.")
    unsafe_allow_newlines: bool = Field(default=False, description="Keep line breaks.")
    unsafe_allow_ansi_codes: bool = Field(default=False, description="Keep escape sequences.")
    max_line_length: int = Field(
        default=DEFAULT_MAX_LENGTH, ge=0, description="Console/file message limit (0 = none)."
    )
    max_journal_length: int = Field(
        default=DEFAULT_MAX_LENGTH, ge=0, description="Journal message limit (0 = none)."
    )

    @field_validator("min_level", "stderr_level", mode="before")
    @classmethod
    def _coerce_level(cls, value: Any) -> Any:
        if isinstance(value, (str, int)):
            level = try_parse_level(value)
            if level is not None:
                return level
        return value

    @field_validator("color_mode", mode="before")
    @classmethod
    def _lower_color_mode(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if not value:
            raise ValueError("format must not be empty")
        if sanitize(value) != value:
            raise ValueError("format must not contain control characters")
        return value

    @field_validator("log_file")
    @classmethod
    def _check_log_file(cls, value: str) -> str:
        if "\x00" in value:
            raise ValueError("log file path must not contain NUL")
        if value and not PurePath(value).is_absolute():
            raise ValueError("log file must be an absolute path")
        return value

    @field_validator("script_name")
    @classmethod
    def _check_script_name(cls, value: str) -> str:
        return sanitize_identity(value.strip())

    @field_validator("journal_tag")
    @classmethod
    def _check_journal_tag(cls, value: str) -> str:
        value = value.strip()
        if not value:
            return value
        cleaned = sanitize_identity(value)
        if cleaned != value:
            diagnostics.warn("Sanitized journal tag: unsupported characters replaced with '_'")
        if len(cleaned) > MAX_TAG_LENGTH:
            diagnostics.warn(f"Truncated journal tag to {MAX_TAG_LENGTH} characters")
            cleaned = cleaned[:MAX_TAG_LENGTH]
        return cleaned

    @property
    def effective_tag(self) -> str:
        """Tag used for journal records, capped like an explicit tag."""
        return (self.journal_tag or self.script_name)[:MAX_TAG_LENGTH]


_ENV_FIELDS: dict[str, str] = {
    "LEVEL": "min_level",
    "STDERR_LEVEL": "stderr_level",
    "FORMAT": "log_format",
    "COLOR": "color_mode",
    "FILE": "log_file",
    "SCRIPT": "script_name",
    "JOURNAL": "journal",
    "TAG": "journal_tag",
    "UTC": "use_utc",
    "CONSOLE": "console",
    "UNSAFE_ALLOW_NEWLINES": "unsafe_allow_newlines",
    "UNSAFE_ALLOW_ANSI_CODES": "unsafe_allow_ansi_codes",
    "MAX_LINE_LENGTH": "max_line_length",
    "MAX_JOURNAL_LENGTH": "max_journal_length",
}

_BOOL_FIELDS = frozenset(
    {"journal", "use_utc", "console", "unsafe_allow_newlines", "unsafe_allow_ansi_codes"}
)
_INT_FIELDS = frozenset({"max_line_length", "max_journal_length"})
_LEVEL_FIELDS = frozenset({"min_level", "stderr_level"})


def parse_bool(value: Any) -> bool | None:
    """Parse common boolean spellings; None when unrecognized."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None


def _coerce(field: str, value: Any) -> Any:
    """Convert raw text into the field's type, or None when malformed."""
    if field in _BOOL_FIELDS:
        return parse_bool(value)
    if field in _INT_FIELDS:
        if isinstance(value, bool):
            return None
        try:
            number = int(str(value).strip())
        except ValueError:
            return None
        return number if number >= 0 else None
    if field in _LEVEL_FIELDS:
        return try_parse_level(value)
    return value


def resolve_config(
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> LoggerConfig:
    """Build a config from SAFE_LOG_* variables, then explicit overrides.

    Never raises: invalid values keep the default and produce a warning.
    """
    env = os.environ if environ is None else environ
    raw: dict[str, Any] = {}

    for suffix, field in _ENV_FIELDS.items():
        value = env.get(ENV_PREFIX + suffix)
        if value is not None and value != "":
            raw[field] = value

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in LoggerConfig.model_fields:
            diagnostics.warn(f"Unknown configuration key '{sanitize_identity(key)}' ignored")
            continue
        raw[key] = value

    cfg = LoggerConfig()
    for field, value in raw.items():
        coerced = _coerce(field, value)
        if coerced is None:
            diagnostics.warn(f"Invalid {field} value. Using default")
            continue
        try:
            setattr(cfg, field, coerced)
        except ValidationError:
            diagnostics.warn(f"Invalid {field} value. Using default")
    return cfg
