"""
Streaming iteration over a tab-separated response with a header line.
"""

from types import MappingProxyType
from typing import Callable, Iterator, List, Mapping, Optional

from .errors import ClickhouseError, ColumnsError, MalformedRowError
from .log import LogSink, default_sink
from .result import Result


def parse_columns(line: str) -> Mapping[str, int]:
    """Map each header name to its position in the line."""
    return MappingProxyType({name: index for index, name in enumerate(line.split("\t"))})


class RowIterator:
    """
    Lazily decodes rows from one live response stream.

    The header line is read on construction. Each call to next() reads one
    more line into ``result``. The stream is closed when it is exhausted,
    when reading fails, when a row is malformed, or on close(), whichever
    comes first, and never more than once.
    """

    def __init__(
        self,
        stream,
        log: Optional[LogSink] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        """
        Wrap a stream and read its header.

        Args:
            stream: Object with readline() returning bytes and close()
            log: Log sink (uses the default sink if None)
            on_close: Called once after the stream is closed

        Raises:
            ColumnsError: If the header line cannot be read
        """
        self._stream = stream
        self._log = log or default_sink()
        self._on_close = on_close
        self._closed = False
        self._error: Optional[ClickhouseError] = None
        self.result: Optional[Result] = None

        try:
            self._columns = self._read_columns()
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> "RowIterator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[Result]:
        while self.next():
            yield self.result

    @property
    def columns(self) -> List[str]:
        """Header names in order."""
        return sorted(self._columns, key=self._columns.__getitem__)

    @property
    def error(self) -> Optional[ClickhouseError]:
        """Read or decoding error that ended the iteration, if any."""
        return self._error

    @property
    def closed(self) -> bool:
        return self._closed

    def _read_columns(self) -> Mapping[str, int]:
        try:
            line = self._read()
        except ClickhouseError as e:
            self._log.fatal(f"Catch error can't get columns names: {e}")
            raise ColumnsError(f"can't get columns names: {e}") from e

        if line is None:
            self._log.fatal("Catch error can't get columns names")
            raise ColumnsError("can't get columns names")

        columns = parse_columns(line)
        self._log.debug("Load fields names")
        return columns

    def _read(self) -> Optional[str]:
        data = self._stream.readline()
        if not data:
            return None
        if data.endswith(b"\n"):
            data = data[:-1]
        return data.decode("utf-8", errors="replace")

    def next(self) -> bool:
        """
        Advance to the next row.

        Returns:
            True when ``result`` holds a new row, False when the stream is
            exhausted or reading failed (see ``error``)

        Raises:
            MalformedRowError: If the row has fewer cells than the header
        """
        if self._closed:
            return False

        try:
            line = self._read()
        except ClickhouseError as e:
            self._error = e
            self.close()
            self._log.fatal(f"Catch error {e}")
            return False

        if line is None:
            self.close()
            return False

        fields = line.split("\t")
        data = {}
        for column, index in self._columns.items():
            if index >= len(fields):
                message = (
                    f"malformed row: {len(fields)} fields for "
                    f"{len(self._columns)} columns, missing `{column}`"
                )
                self._error = MalformedRowError(message)
                self.close()
                self._log.fatal(f"Catch error {message}")
                raise self._error
            data[column] = fields[index]

        self.result = Result(data)
        self._log.debug("Load new data")
        return True

    def close(self) -> None:
        """Close the stream; further calls do nothing."""
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.close()
        finally:
            if self._on_close is not None:
                self._on_close()
        self._log.debug("The query is fetched")
