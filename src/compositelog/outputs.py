"""
Output resolution: turn a sink location into a writable byte destination.

Locations:
- "stdout" / "stderr": the process streams (shared, never closed here)
- any other string: a file path, opened for append; a ".gz" name adds a
  streaming gzip compressor in front of the file
"""

from __future__ import annotations

import gzip
import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO

from .exceptions import FileOpenError, PathResolutionError

FILE_MODE = 0o644
_OPEN_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_APPEND


# =============================================================================
# Output Abstraction
# =============================================================================


class Output(ABC):
    """A byte destination owned (or borrowed) by a sink."""

    owned: bool = True

    def __init__(self, location: str):
        self.location = location
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write raw bytes to the destination."""
        ...

    @abstractmethod
    def flush(self) -> None:
        """Push buffered bytes towards the destination."""
        ...

    def close(self) -> None:
        """Flush and release the destination. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._release()

    @abstractmethod
    def _release(self) -> None: ...

    def isatty(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.location!r})"


class StreamOutput(Output):
    """Process stream (stdout/stderr). Flushed on close, never closed."""

    owned = False

    def __init__(self, location: str, stream: Any):
        super().__init__(location)
        self._stream = stream
        # Text streams normally expose their binary layer as .buffer
        self._buffer = getattr(stream, "buffer", None)

    def write(self, data: bytes) -> None:
        if self._buffer is not None:
            self._stream.flush()
            self._buffer.write(data)
        else:
            self._stream.write(data.decode("utf-8", errors="replace"))

    def flush(self) -> None:
        if self._buffer is not None:
            self._buffer.flush()
        self._stream.flush()

    def _release(self) -> None:
        self.flush()

    def isatty(self) -> bool:
        return bool(getattr(self._stream, "isatty", lambda: False)())


class FileOutput(Output):
    """Plain file opened for append."""

    def __init__(self, location: str, file: BinaryIO):
        super().__init__(location)
        self._file = file

    def write(self, data: bytes) -> None:
        self._file.write(data)

    def flush(self) -> None:
        self._file.flush()

    def _release(self) -> None:
        try:
            self._file.flush()
        finally:
            self._file.close()


class GzipFileOutput(Output):
    """Streaming gzip compressor in front of an append-mode file.

    The compressor is finalized before the file handle is closed, otherwise
    the archive trailer is lost.
    """

    def __init__(self, location: str, file: BinaryIO):
        super().__init__(location)
        self._file = file
        self._compressor = gzip.GzipFile(fileobj=file, mode="ab")

    def write(self, data: bytes) -> None:
        self._compressor.write(data)

    def flush(self) -> None:
        self._compressor.flush()
        self._file.flush()

    def _release(self) -> None:
        try:
            self._compressor.close()
            self._file.flush()
        finally:
            self._file.close()


# =============================================================================
# Resolution
# =============================================================================


def expand_location(location: str) -> Path:
    """Expand a leading ``~`` or ``~user`` in a location.

    Raises:
        PathResolutionError: If the home directory cannot be determined.
    """
    expanded = os.path.expanduser(location)
    if expanded.startswith("~"):
        raise PathResolutionError(location=location)
    return Path(expanded)


def open_output(location: str) -> Output:
    """Resolve ``location`` into an open Output.

    Raises:
        PathResolutionError: The ``~`` prefix could not be expanded.
        FileOpenError: The file could not be opened for appending.
    """
    if location == "stdout":
        return StreamOutput(location, sys.stdout)
    if location == "stderr":
        return StreamOutput(location, sys.stderr)

    path = expand_location(location)
    try:
        fd = os.open(path, _OPEN_FLAGS, FILE_MODE)
    except OSError as exc:
        raise FileOpenError(location=location, path=str(path), reason=exc.strerror or str(exc)) from exc
    file = os.fdopen(fd, "ab")

    if path.name.endswith(".gz"):
        return GzipFileOutput(location, file)
    return FileOutput(location, file)
