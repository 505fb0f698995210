"""
Composite logging for applications that write to several places at once.

One log call is replicated to every configured sink:
- stdout / stderr: process streams
- path: plain file, opened for append
- path ending in .gz: gzip-compressed file

Each sink has its own minimum level and format (text or json).
Library: structlog processors + orjson for JSON lines.
"""

from .config import LoggingSettings, load_sink_configs
from .core import CompositeLogger, get_logger
from .exceptions import (
    CompositeLogError,
    ConfigurationError,
    FileOpenError,
    InvalidLevelError,
    LoggerClosedError,
    PathResolutionError,
)
from .outputs import open_output
from .sinks import Sink, open_sink
from .types import FatalPolicy, LogFormat, Severity, SinkConfig

__all__ = [
    "CompositeLogger",
    "Sink",
    "SinkConfig",
    "Severity",
    "LogFormat",
    "FatalPolicy",
    "LoggingSettings",
    "load_sink_configs",
    "open_output",
    "open_sink",
    "get_logger",
    "CompositeLogError",
    "PathResolutionError",
    "FileOpenError",
    "InvalidLevelError",
    "ConfigurationError",
    "LoggerClosedError",
]
