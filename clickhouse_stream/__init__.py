"""
clickhouse_stream

A streaming query client for ClickHouse over its HTTP interface.

Example usage:
    from clickhouse_stream import Connection

    conn = Connection("localhost:8123")
    conn.set_attempts(3, 1)

    with conn.fetch("SELECT name, engine FROM system.tables") as rows:
        for row in rows:
            print(row.string("name"), row.string("engine"))

    conn.close()
"""

from .client import GIGABYTE, MEGABYTE, Config, Connection, Format, ResponseStream
from .errors import (
    ClickhouseError,
    ColumnsError,
    ConnectionError,
    ConversionError,
    FieldNotFoundError,
    MalformedRowError,
    MemoryLimitError,
    QueryError,
    RequestBuildError,
    TimeoutError,
)
from .escape import escape, unescape
from .iterator import RowIterator
from .log import LogSink
from .result import Result
from .throttle import Throttle

__version__ = "0.1.0"
__all__ = [
    "Connection",
    "Config",
    "Format",
    "ResponseStream",
    "RowIterator",
    "Result",
    "Throttle",
    "LogSink",
    "escape",
    "unescape",
    "MEGABYTE",
    "GIGABYTE",
    "ClickhouseError",
    "ColumnsError",
    "ConnectionError",
    "ConversionError",
    "FieldNotFoundError",
    "MalformedRowError",
    "MemoryLimitError",
    "QueryError",
    "RequestBuildError",
    "TimeoutError",
]
