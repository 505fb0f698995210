"""
CompositeLogger: one logging call fanned out to every configured sink.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Mapping
from typing import Any, Callable

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from .config import LoggingSettings, coerce_sink_config, load_sink_configs
from .exceptions import LoggerClosedError
from .formatters import ConsoleFormatter
from .sinks import Sink, open_sink, sink_from_config
from .types import FatalPolicy, Severity, SinkConfig

RESERVED_KEYS = ("timestamp", "level", "logger", "message")

DEFAULT_SINKS = (
    SinkConfig(location="stdout", level="info", format="text"),
    SinkConfig(location="stderr", level="warning", format="text"),
)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Diagnostics logger for the package itself.

    Bound to a stdlib logger, so nothing is printed unless the application
    configures stdlib logging.
    """
    return structlog.wrap_logger(
        logging.getLogger(name or "compositelog"),
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


_logger = get_logger("compositelog.core")


# =============================================================================
# Record Processors
# =============================================================================


def add_log_level(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the canonical level name (the method name is the severity label)."""
    event_dict["level"] = method_name
    return event_dict


def add_logger_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["logger"] = getattr(logger, "name", "root")
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def order_reserved_keys(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Put timestamp, level, logger and message ahead of the fields."""
    ordered = {key: event_dict.pop(key) for key in RESERVED_KEYS if key in event_dict}
    ordered.update(event_dict)
    return ordered


def build_processors() -> list[Processor]:
    return [
        add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.format_exc_info,
        rename_event_key,
        order_reserved_keys,
    ]


def _prefix_clashing_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    # Caller fields never overwrite record metadata.
    clashing = set(RESERVED_KEYS) | {"event"}
    return {(f"fields.{key}" if key in clashing else key): value for key, value in fields.items()}


# =============================================================================
# Composite Logger
# =============================================================================


class CompositeLogger:
    """Replicates each log call to an ordered list of sinks.

    Every sink filters by its own level and renders in its own format.
    Sinks are only ever appended. The logger holds no locks: callers sharing
    one instance across threads must serialize access themselves.

    Args:
        sinks: Initial sinks, in dispatch order
        name: Logger name rendered into every record
        fatal_policy: Which sinks receive fatal records
        terminate: Called with the exit code after a fatal record
    """

    def __init__(
        self,
        sinks: Iterable[Sink] | None = None,
        *,
        name: str = "root",
        fatal_policy: FatalPolicy | str = FatalPolicy.ALL_SINKS,
        terminate: Callable[[int], Any] | None = None,
    ) -> None:
        self._sinks: list[Sink] = list(sinks or [])
        self.name = name
        self.fatal_policy = FatalPolicy(fatal_policy)
        self._terminate = terminate or sys.exit
        self._processors = build_processors()
        self._closed = False

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_configs(
        cls,
        configs: Iterable[SinkConfig | Mapping[str, Any]],
        **options: Any,
    ) -> "CompositeLogger":
        """Build one sink per config, in order.

        On the first failure, including invalid ``options``, sinks opened so
        far are closed and the error is re-raised.
        """
        sinks: list[Sink] = []
        try:
            for config in configs:
                sinks.append(sink_from_config(coerce_sink_config(config)))
            composite = cls(sinks, **options)
        except Exception:
            _logger.warning("sink_construction_failed", opened=len(sinks))
            for sink in sinks:
                sink.close()
            raise

        for sink in sinks:
            _logger.debug("sink_opened", sink=repr(sink))
        return composite

    @classmethod
    def default(cls, **options: Any) -> "CompositeLogger":
        """stdout at info and stderr at warning, both as text."""
        return cls.from_configs(DEFAULT_SINKS, **options)

    @classmethod
    def from_settings(cls, settings: LoggingSettings | None = None, **options: Any) -> "CompositeLogger":
        """Build from environment settings.

        Uses the sinks of ``settings.config_file`` when set, else the default
        stdout/stderr pair.
        """
        settings = settings or LoggingSettings()
        ConsoleFormatter.configure(
            timestamp_format=settings.console_timestamp_format,
            level_width=settings.console_level_width,
            logger_width=settings.console_logger_width,
            separator=settings.console_separator,
        )
        options.setdefault("name", settings.name)
        options.setdefault("fatal_policy", settings.fatal_policy)

        configs = load_sink_configs(settings.config_file) if settings.config_file else DEFAULT_SINKS
        return cls.from_configs(configs, **options)

    def add(self, location: str, fmt: str = "text", level: str = "info") -> Sink:
        """Open a new sink and append it.

        Nothing is appended if the sink cannot be built; the error propagates.

        Raises:
            LoggerClosedError: The composite has already been closed.
        """
        if self._closed:
            raise LoggerClosedError(location=location)
        sink = open_sink(location, fmt, level)
        self._sinks.append(sink)
        _logger.debug("sink_opened", sink=repr(sink))
        return sink

    @property
    def sinks(self) -> tuple[Sink, ...]:
        return tuple(self._sinks)

    def __len__(self) -> int:
        return len(self._sinks)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def log(self, level: Severity | str, msg: Any, fields: Mapping[str, Any] | None = None) -> None:
        """Log ``msg`` at ``level`` to every sink that admits it.

        ``fatal`` and ``panic`` follow the fatal path: the fatal policy picks
        the sinks, then the logger closes and terminates.
        """
        severity = Severity.parse(level)
        if severity >= Severity.FATAL:
            self._fatal(severity, msg, fields)
        else:
            self._dispatch(severity, msg, fields, self._sinks)

    def debug(self, msg: Any) -> None:
        self._dispatch(Severity.DEBUG, msg, None, self._sinks)

    def info(self, msg: Any) -> None:
        self._dispatch(Severity.INFO, msg, None, self._sinks)

    def warn(self, msg: Any) -> None:
        self._dispatch(Severity.WARN, msg, None, self._sinks)

    def error(self, msg: Any) -> None:
        self._dispatch(Severity.ERROR, msg, None, self._sinks)

    def info_with_fields(self, msg: Any, fields: Mapping[str, Any]) -> None:
        self._dispatch(Severity.INFO, msg, fields, self._sinks)

    def warn_with_fields(self, msg: Any, fields: Mapping[str, Any]) -> None:
        self._dispatch(Severity.WARN, msg, fields, self._sinks)

    def fatal(self, msg: Any, fields: Mapping[str, Any] | None = None) -> None:
        """Log a fatal record, close every sink, then terminate with code 1.

        With ``FatalPolicy.PRIMARY_SINK`` only the first sink receives the
        record.
        """
        self._fatal(Severity.FATAL, msg, fields)

    def _fatal(self, severity: Severity, msg: Any, fields: Mapping[str, Any] | None) -> None:
        if self.fatal_policy is FatalPolicy.PRIMARY_SINK:
            targets = self._sinks[:1]
        else:
            targets = self._sinks
        self._dispatch(severity, msg, fields, targets)
        _logger.info(
            "fatal_termination",
            level=severity.label,
            policy=self.fatal_policy.value,
            sinks=len(targets),
        )
        self.close()
        self._terminate(1)

    def _dispatch(
        self,
        severity: Severity,
        msg: Any,
        fields: Mapping[str, Any] | None,
        targets: Iterable[Sink],
    ) -> None:
        event_dict: EventDict = _prefix_clashing_fields(fields) if fields else {}
        event_dict["event"] = msg
        for processor in self._processors:
            event_dict = processor(self, severity.label, event_dict)
        for sink in targets:
            sink.emit(severity, event_dict)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def flush(self) -> None:
        for sink in self._sinks:
            sink.flush()

    def close(self) -> None:
        """Flush and close every sink in order. Process streams stay open."""
        if self._closed:
            return
        self._closed = True
        for sink in self._sinks:
            sink.close()
            _logger.debug("sink_closed", sink=repr(sink))

    def __enter__(self) -> "CompositeLogger":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CompositeLogger(name={self.name!r}, sinks={self._sinks!r})"
