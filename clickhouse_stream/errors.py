"""
clickhouse_stream error types.
"""


class ClickhouseError(Exception):
    """Base exception for clickhouse_stream errors."""

    def __init__(self, message: str, operation: str = None):
        self.message = message
        self.operation = operation
        super().__init__(message)


class RequestBuildError(ClickhouseError):
    """Raised when a request cannot be built from the connection settings."""

    pass


class ConnectionError(ClickhouseError):
    """Raised when the transport fails."""

    pass


class TimeoutError(ClickhouseError):
    """Raised when the transport times out."""

    pass


class MemoryLimitError(ClickhouseError):
    """Raised when the server reports its memory limit was hit."""

    pass


class QueryError(ClickhouseError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, message: str, status: int = None, operation: str = None):
        self.status = status
        super().__init__(message, operation)


class ColumnsError(ClickhouseError):
    """Raised when the header line of a response cannot be read."""

    pass


class MalformedRowError(ClickhouseError):
    """Raised when a row has fewer cells than the header."""

    pass


class FieldNotFoundError(ClickhouseError):
    """Raised when a row has no value for the requested column."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"can't get value by `{column}`")


class ConversionError(ClickhouseError):
    """Raised when a cell cannot be converted to the requested type."""

    def __init__(self, value: str, kind: str, cause: Exception):
        self.value = value
        self.kind = kind
        self.cause = cause
        super().__init__(f"can't convert value {value} to {kind}: {cause}")
