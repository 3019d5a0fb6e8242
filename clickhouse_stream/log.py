"""
Pluggable log sink for clickhouse_stream.

A sink is five callables, one per severity, each taking a single message.
By default they forward to the ``clickhouse_stream`` standard library logger.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable

logger = logging.getLogger("clickhouse_stream")
logger.addHandler(logging.NullHandler())

LogFunc = Callable[[str], None]


def _discard(message: str) -> None:
    pass


@dataclass(frozen=True)
class LogSink:
    """Five independently replaceable severities."""

    debug: LogFunc
    info: LogFunc
    warn: LogFunc
    error: LogFunc
    fatal: LogFunc

    @classmethod
    def from_logger(cls, log: logging.Logger) -> "LogSink":
        """Forward every severity to a standard library logger."""
        return cls(
            debug=log.debug,
            info=log.info,
            warn=log.warning,
            error=log.error,
            fatal=log.critical,
        )

    @classmethod
    def silent(cls) -> "LogSink":
        """Sink that drops every message."""
        return cls(
            debug=_discard,
            info=_discard,
            warn=_discard,
            error=_discard,
            fatal=_discard,
        )

    def replace(self, **slots: LogFunc) -> "LogSink":
        """
        Return a copy with some severities swapped.

        Args:
            **slots: Any of debug, info, warn, error, fatal

        Returns:
            New LogSink
        """
        return replace(self, **slots)


def default_sink() -> LogSink:
    return LogSink.from_logger(logger)
