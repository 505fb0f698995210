from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict

from .exceptions import InvalidLevelError


class Severity(IntEnum):
    """Ordered log severity.

    A sink configured at a given severity emits every event at or above it.
    """

    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50
    PANIC = 60

    @property
    def label(self) -> str:
        """Canonical lowercase name used in rendered records."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """Parse a level string case-insensitively.

        Raises:
            InvalidLevelError: If ``value`` names no known severity.
        """
        if isinstance(value, Severity):
            return value
        try:
            return _ALIASES[str(value).lower()]
        except KeyError:
            raise InvalidLevelError(level=str(value)) from None


_LABELS = {
    Severity.TRACE: "trace",
    Severity.DEBUG: "debug",
    Severity.INFO: "info",
    Severity.WARN: "warning",
    Severity.ERROR: "error",
    Severity.FATAL: "fatal",
    Severity.PANIC: "panic",
}

_ALIASES = {
    "trace": Severity.TRACE,
    "debug": Severity.DEBUG,
    "info": Severity.INFO,
    "warn": Severity.WARN,
    "warning": Severity.WARN,
    "error": Severity.ERROR,
    "fatal": Severity.FATAL,
    "panic": Severity.PANIC,
}


class LogFormat(Enum):
    """Record rendering for a sink."""

    TEXT = "text"
    JSON = "json"

    @classmethod
    def parse(cls, value: "str | LogFormat") -> "LogFormat":
        # Only an exact "json" selects JSON; everything else renders as text.
        if isinstance(value, LogFormat):
            return value
        return cls.JSON if value == "json" else cls.TEXT


class FatalPolicy(str, Enum):
    """Which sinks receive a fatal record before the process terminates."""

    ALL_SINKS = "all_sinks"
    PRIMARY_SINK = "primary_sink"


class SinkConfig(BaseModel):
    """Configuration for a single sink, as found in a config file.

    ``location`` is ``"stdout"``, ``"stderr"`` or a filesystem path (``~`` is
    expanded, a ``.gz`` suffix selects gzip compression).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    location: str
    level: str
    format: str = "text"
