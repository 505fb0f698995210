"""
Sinks: one output paired with a format and a minimum severity.
"""

from __future__ import annotations

from structlog.typing import EventDict

from .formatters import render
from .outputs import GzipFileOutput, Output, open_output
from .types import LogFormat, Severity, SinkConfig


class Sink:
    """A resolved destination that filters and renders records.

    Args:
        output: Where rendered lines are written (owned by the sink)
        fmt: TEXT or JSON rendering
        level: Minimum severity this sink emits
    """

    def __init__(self, output: Output, fmt: LogFormat = LogFormat.TEXT, level: Severity = Severity.INFO):
        self.output = output
        self.format = LogFormat.parse(fmt)
        self.level = Severity.parse(level)
        self._use_color = output.isatty()
        # Compressed outputs are only flushed on demand
        self._flush_each = not isinstance(output, GzipFileOutput)

    @property
    def location(self) -> str:
        return self.output.location

    def enabled_for(self, severity: Severity) -> bool:
        return severity >= self.level

    def emit(self, severity: Severity, event_dict: EventDict) -> None:
        """Write one record if ``severity`` reaches this sink's level."""
        if not self.enabled_for(severity):
            return
        self.output.write(render(event_dict, self.format, use_color=self._use_color))
        if self._flush_each:
            self.output.flush()

    def flush(self) -> None:
        self.output.flush()

    def close(self) -> None:
        """Flush and close the output; process streams are only flushed."""
        self.output.close()

    def __repr__(self) -> str:
        return f"Sink(location={self.location!r}, format={self.format.value!r}, level={self.level.label!r})"


def open_sink(location: str, fmt: str | LogFormat = "text", level: str | Severity = "info") -> Sink:
    """Build a sink from raw configuration values.

    The level is validated before the output is opened so that a bad level
    never creates a file.

    Raises:
        InvalidLevelError: ``level`` is not a known severity.
        PathResolutionError: ``~`` in ``location`` could not be expanded.
        FileOpenError: The file could not be opened.
    """
    severity = Severity.parse(level)
    log_format = LogFormat.parse(fmt)
    return Sink(open_output(location), log_format, severity)


def sink_from_config(config: SinkConfig) -> Sink:
    return open_sink(config.location, config.format, config.level)
