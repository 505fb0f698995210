"""
Exception hierarchy for compositelog.

Every error raised while building a composite logger derives from
CompositeLogError, so callers can catch the whole family at once while still
distinguishing path, file, level and configuration failures.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CompositeLogError(Exception):
    """Base exception for all compositelog errors.

    Carries a machine-readable ``code`` and a ``details`` mapping alongside
    the human-readable message.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class PathResolutionError(CompositeLogError):
    """The home directory in a sink location could not be expanded."""

    def __init__(self, *, location: str) -> None:
        super().__init__(
            f"Could not expand home directory for path {location!r}",
            code="PATH_RESOLUTION",
            details={"location": location},
        )


class FileOpenError(CompositeLogError):
    """The operating system refused to open a sink file for appending."""

    def __init__(self, *, location: str, path: str, reason: str) -> None:
        super().__init__(
            f"Could not open log file {path!r}: {reason}",
            code="FILE_OPEN",
            details={"location": location, "path": path, "reason": reason},
        )


class InvalidLevelError(CompositeLogError, ValueError):
    """A level string did not name a known severity."""

    def __init__(self, *, level: str) -> None:
        super().__init__(
            f"Not a valid log level: {level!r}",
            code="INVALID_LEVEL",
            details={"level": level},
        )


class ConfigurationError(CompositeLogError):
    """A sink configuration document could not be loaded or validated."""

    def __init__(self, message: str, *, source: Optional[str] = None) -> None:
        details = {"source": source} if source else {}
        super().__init__(message, code="CONFIGURATION", details=details)


class LoggerClosedError(CompositeLogError):
    """A sink was added to a composite logger that is already closed."""

    def __init__(self, *, location: str) -> None:
        super().__init__(
            f"Cannot add sink {location!r}: logger is closed",
            code="CLOSED",
            details={"location": location},
        )
