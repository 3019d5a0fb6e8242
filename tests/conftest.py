from __future__ import annotations

import io

import pytest

from clickhouse_stream import ConnectionError, LogSink


class FakeStream:
    """In-memory response body that counts close() calls."""

    def __init__(self, data: bytes, fail_after: int | None = None) -> None:
        self._buffer = io.BytesIO(data)
        self._fail_after = fail_after
        self._lines = 0
        self.close_calls = 0

    def readline(self) -> bytes:
        if self._fail_after is not None and self._lines >= self._fail_after:
            raise ConnectionError("Read failed: connection reset by peer", "read")
        self._lines += 1
        return self._buffer.readline()

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    def close(self) -> None:
        self.close_calls += 1


class RecordingSink:
    """Collects messages per severity."""

    def __init__(self) -> None:
        self.messages: dict[str, list[str]] = {
            "debug": [],
            "info": [],
            "warn": [],
            "error": [],
            "fatal": [],
        }

    def sink(self) -> LogSink:
        return LogSink(
            debug=self.messages["debug"].append,
            info=self.messages["info"].append,
            warn=self.messages["warn"].append,
            error=self.messages["error"].append,
            fatal=self.messages["fatal"].append,
        )

    def all(self) -> list[str]:
        return [m for severity in self.messages.values() for m in severity]


@pytest.fixture
def make_stream():
    return FakeStream


@pytest.fixture
def recorder() -> RecordingSink:
    return RecordingSink()
