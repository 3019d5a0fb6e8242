from __future__ import annotations

import logging

import pytest

from clickhouse_stream import LogSink


def test_from_logger_maps_severities(caplog: pytest.LogCaptureFixture) -> None:
    sink = LogSink.from_logger(logging.getLogger("clickhouse_stream.test"))
    with caplog.at_level(logging.DEBUG, logger="clickhouse_stream.test"):
        sink.debug("d")
        sink.warn("w")
        sink.fatal("f")
    assert [(r.levelname, r.getMessage()) for r in caplog.records] == [
        ("DEBUG", "d"),
        ("WARNING", "w"),
        ("CRITICAL", "f"),
    ]


def test_replace_swaps_one_severity() -> None:
    errors: list[str] = []
    sink = LogSink.silent().replace(error=errors.append)
    sink.error("boom")
    sink.info("ignored")
    assert errors == ["boom"]
