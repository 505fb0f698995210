import os

import pytest

from compositelog.formatters import ConsoleFormatter
from compositelog.outputs import Output


class RecordingOutput(Output):
    """In-memory output that remembers every write."""

    def __init__(self, location: str = "memory"):
        super().__init__(location)
        self.writes: list[bytes] = []
        self.flushes = 0

    def write(self, data: bytes) -> None:
        self.writes.append(data)

    def flush(self) -> None:
        self.flushes += 1

    def _release(self) -> None:
        pass

    @property
    def lines(self) -> list[str]:
        return [w.decode("utf-8").rstrip("\n") for w in self.writes]


@pytest.fixture
def recording_output():
    """Factory for in-memory outputs."""
    return RecordingOutput


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Keeps tests independent of the caller's environment:
    no COMPOSITELOG_* variables, no stray .env file, and console layout
    restored after every test.
    """
    for key in list(os.environ):
        if key.startswith("COMPOSITELOG_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    for attr in ("TIMESTAMP_FORMAT", "LEVEL_WIDTH", "LOGGER_WIDTH", "SEPARATOR"):
        monkeypatch.setattr(ConsoleFormatter, attr, getattr(ConsoleFormatter, attr))
    yield
