"""
Record renderers: aligned console text and JSON lines.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import orjson
from structlog.typing import EventDict

from .types import LogFormat

# =============================================================================
# JSON Serialization
# =============================================================================

_JSON_OPTIONS = orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC | orjson.OPT_NON_STR_KEYS

# orjson encodes integers in [-2**63, 2**64 - 1] natively
_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


def _stringify_wide_ints(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value if _INT_MIN <= value <= _INT_MAX else str(value)
    if isinstance(value, dict):
        return {k: _stringify_wide_ints(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_stringify_wide_ints(v) for v in value]
    return value


def orjson_dumps(v: Any, *, default: Any = str) -> bytes:
    """Serialize to JSON bytes.

    Values orjson cannot handle fall back to ``default``; integers wider than
    64 bits are written as strings.
    """
    try:
        return orjson.dumps(v, default=default, option=_JSON_OPTIONS)
    except orjson.JSONEncodeError:
        return orjson.dumps(_stringify_wide_ints(v), default=default, option=_JSON_OPTIONS)


# =============================================================================
# Console Formatter (Aligned Columns)
# =============================================================================

_RESET = "\x1b[0m"
_PALETTE = {
    "timestamp": "\x1b[90m",
    "logger": "\x1b[35m",
    "key": "\x1b[34m",
    "value": "\x1b[2m",
    "TRACE": "\x1b[2m",
    "DEBUG": "\x1b[36m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "FATAL": "\x1b[1;31m",
    "PANIC": "\x1b[1;35m",
}


def _has_control_chars(text: str) -> bool:
    return any(not ch.isprintable() for ch in text)


def _quote(text: str) -> str:
    """JSON-style double quoting; escapes quotes, newlines and control characters."""
    return orjson.dumps(text).decode("utf-8")


def quote_value(text: str) -> str:
    """Quote a key or value that would otherwise break ``key=value`` parsing."""
    if text == "" or any(ch.isspace() or ch in '="' for ch in text) or _has_control_chars(text):
        return _quote(text)
    return text


def quote_message(text: str) -> str:
    """Quote a message only when it could spill onto another line."""
    if '"' in text or _has_control_chars(text):
        return _quote(text)
    return text


class ConsoleFormatter:
    """Text records: timestamp | LEVEL | logger | message key=value ...

    Timestamps stay ISO-8601 UTC unless TIMESTAMP_FORMAT is set, in which case
    they are formatted in UTC with that strftime pattern. Every record renders
    to exactly one line.
    """

    EXCLUDED_KEYS = {"level", "message", "logger", "timestamp"}
    TIMESTAMP_FORMAT: str | None = None
    LEVEL_WIDTH = 8
    LOGGER_WIDTH = 16
    SEPARATOR = " | "

    @classmethod
    def configure(
        cls,
        *,
        timestamp_format: str | None = None,
        level_width: int | None = None,
        logger_width: int | None = None,
        separator: str | None = None,
    ) -> None:
        """Override column layout; ``None`` leaves a setting unchanged."""
        overrides = {
            "TIMESTAMP_FORMAT": timestamp_format,
            "LEVEL_WIDTH": level_width,
            "LOGGER_WIDTH": logger_width,
            "SEPARATOR": separator,
        }
        for attr, value in overrides.items():
            if value is not None:
                setattr(cls, attr, value)

    @staticmethod
    def _column(text: str, width: int) -> str:
        """Right-align to ``width``, keeping the tail of over-long text."""
        if width <= 0 or len(text) == width:
            return text
        if len(text) < width:
            return text.rjust(width)
        return "..." + text[3 - width :] if width > 3 else text[-width:]

    @staticmethod
    def _paint(text: str, style: str, use_color: bool) -> str:
        code = _PALETTE.get(style) if use_color else None
        return f"{code}{text}{_RESET}" if code else text

    @classmethod
    def _timestamp(cls, raw: Any) -> str:
        if raw is None:
            return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        if not cls.TIMESTAMP_FORMAT:
            return str(raw)
        try:
            dt = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError:
            return str(raw)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).strftime(cls.TIMESTAMP_FORMAT)

    @classmethod
    def _message(cls, event_dict: EventDict, use_color: bool) -> str:
        parts = [quote_message(str(event_dict.get("message", "")))]
        for key, value in event_dict.items():
            if key in cls.EXCLUDED_KEYS:
                continue
            parts.append(
                cls._paint(quote_value(str(key)), "key", use_color)
                + "="
                + cls._paint(quote_value(str(value)), "value", use_color)
            )
        return " ".join(parts)

    @classmethod
    def format(cls, event_dict: EventDict, *, use_color: bool = False) -> str:
        """Format an event dict into one aligned line (no trailing newline)."""
        level = str(event_dict.get("level", "info")).upper()
        logger_name = str(event_dict.get("logger", "root"))
        return cls.SEPARATOR.join(
            [
                cls._paint(cls._timestamp(event_dict.get("timestamp")), "timestamp", use_color),
                cls._paint(cls._column(level, cls.LEVEL_WIDTH), level, use_color),
                cls._paint(cls._column(logger_name, cls.LOGGER_WIDTH), "logger", use_color),
                cls._message(event_dict, use_color),
            ]
        )


def render(event_dict: EventDict, fmt: LogFormat, *, use_color: bool = False) -> bytes:
    """Render one record as a newline-terminated line of bytes."""
    if fmt is LogFormat.JSON:
        return orjson_dumps(event_dict) + b"\n"
    return (ConsoleFormatter.format(event_dict, use_color=use_color) + "\n").encode("utf-8")
