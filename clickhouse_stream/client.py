"""
clickhouse_stream client implementation.
"""

import io
import re
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Union

import requests
import urllib3

from .errors import (
    ClickhouseError,
    ConnectionError,
    MemoryLimitError,
    QueryError,
    RequestBuildError,
    TimeoutError,
)
from .iterator import RowIterator
from .log import LogSink, default_sink
from .result import Result
from .throttle import Throttle

MEGABYTE = 1024 * 1024
GIGABYTE = 1024 * MEGABYTE

_FORMAT_CLAUSE = re.compile(r"\s*(FORMAT\s+[A-Za-z0-9]+)?\s*;?\s*$", re.IGNORECASE)
_HTML_TITLE = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)
_MEMORY_LIMIT = "Memory limit"

_READ_CHUNK = 64 * 1024


class Format(str, Enum):
    """Input and output formats understood by the server."""

    TSV = "TabSeparated"
    TSV_WITH_NAMES = "TabSeparatedWithNames"
    CSV = "CSV"
    CSV_WITH_NAMES = "CSVWithNames"


@dataclass
class Config:
    """Initial settings of a connection. Negative numbers mean unset."""

    # http or https
    protocol: str = "https"

    # Credentials sent with HTTP basic auth
    user: str = "default"
    password: str = ""

    # Server-side memory ceiling in bytes
    max_memory_usage: int = -1

    # Timeouts in seconds, forwarded to the server and summed into the
    # client-side request timeout
    connect_timeout: int = -1
    send_timeout: int = -1
    receive_timeout: int = -1

    # Ask the server for gzip-compressed responses
    compression: bool = False

    # Attempts per query; attempt k waits k * attempt_wait seconds first
    attempts: int = 1
    attempt_wait: float = 0

    # Simultaneous throttled queries, 0 is unlimited
    max_requests: int = 0


class ResponseStream:
    """Live response body read line by line; closing it ends the exchange."""

    def __init__(self, response: requests.Response):
        self._response = response
        raw = response.raw
        raw.decode_content = True
        raw.auto_close = False
        self._reader = io.BufferedReader(raw, _READ_CHUNK)
        self._closed = False

    def readline(self) -> bytes:
        try:
            return self._reader.readline()
        except (urllib3.exceptions.HTTPError, OSError) as e:
            raise ConnectionError(f"Read failed: {e}", "read") from e

    def read(self, size: int = -1) -> bytes:
        try:
            return self._reader.read(size)
        except (urllib3.exceptions.HTTPError, OSError) as e:
            raise ConnectionError(f"Read failed: {e}", "read") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._reader.close()
        finally:
            self._response.close()


def cut_off_query(query: str, length: int = 500) -> str:
    """Shorten a query for log lines."""
    if len(query) > length:
        return query[:length] + " ..."
    return query


def with_names_format(query: str) -> str:
    """Replace any trailing FORMAT clause and semicolon with TabSeparatedWithNames."""
    return _FORMAT_CLAUSE.sub(f" FORMAT {Format.TSV_WITH_NAMES.value}", query, count=1)


def error_message(body: str, status: int) -> str:
    """Message of a non-2xx response: the HTML title, else the body."""
    if not body:
        return f"HTTP {status}"
    if body.startswith("<"):
        match = _HTML_TITLE.search(body)
        if match:
            return match.group(1)
    return body


class Connection:
    """HTTP connection to a ClickHouse server."""

    def __init__(
        self,
        host: str,
        config: Optional[Config] = None,
        log: Optional[LogSink] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Create a new connection.

        Args:
            host: Server address in host:port format
            config: Initial settings (uses defaults if None)
            log: Log sink (uses the default sink if None)
            session: HTTP session to send requests with
        """
        parts = host.split(":")
        self._hostname = parts[0] or "localhost"
        self._port = int(parts[1]) if len(parts) > 1 else 8123

        self._config = replace(config) if config else Config()
        self._log = log or default_sink()
        self._session = session or requests.Session()
        self._throttle = Throttle(self._config.max_requests)
        self._announce = threading.Event()

        self._log.info("Clickhouse is initialized")

    @property
    def throttle(self) -> Throttle:
        return self._throttle

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Settings. Each setter writes one field; requests in flight may see a
    # mix of old and new values.

    def set_protocol(self, protocol: str) -> None:
        self._config.protocol = protocol
        self._log.debug(f"Set protocol = {protocol}")

    def set_max_memory_usage(self, limit: int) -> None:
        if limit < 0:
            self._log.debug(f"Ignore max_memory_usage = {limit}")
            return
        self._config.max_memory_usage = limit
        self._log.debug(f"Set max_memory_usage = {limit}")

    def set_connect_timeout(self, timeout: int) -> None:
        if timeout < 0:
            self._log.debug(f"Ignore connect_timeout = {timeout} s")
            return
        self._config.connect_timeout = timeout
        self._log.debug(f"Set connect_timeout = {timeout} s")

    def set_send_timeout(self, timeout: int) -> None:
        if timeout < 0:
            self._log.debug(f"Ignore send_timeout = {timeout} s")
            return
        self._config.send_timeout = timeout
        self._log.debug(f"Set send_timeout = {timeout} s")

    def set_receive_timeout(self, timeout: int) -> None:
        if timeout < 0:
            self._log.debug(f"Ignore receive_timeout = {timeout} s")
            return
        self._config.receive_timeout = timeout
        self._log.debug(f"Set receive_timeout = {timeout} s")

    def set_compression(self, compression: bool) -> None:
        self._config.compression = bool(compression)
        self._log.debug(f"Set compression = {int(bool(compression))}")

    def set_attempts(self, amount: int, wait: float) -> None:
        """
        Set how many times a query is tried and the backoff step.

        Args:
            amount: Attempts per query, at least 1
            wait: Seconds; attempt k sleeps k * wait before sending
        """
        if amount < 1 or wait < 0:
            self._log.debug(f"Ignore attempts amount ({amount}) and wait ({wait} seconds)")
            return
        self._config.attempts = amount
        self._config.attempt_wait = wait
        self._log.debug(f"Set attempts amount ({amount}) and wait ({wait} seconds)")

    def set_max_requests(self, limit: int) -> None:
        """Bound simultaneous throttled queries; 0 turns the limit off."""
        if limit < 0:
            self._log.debug(f"Ignore max request pool = {limit}")
            return
        self._config.max_requests = limit
        self._throttle.set_ceiling(limit)
        self._log.debug(f"Set max request pool = {limit}")

    # Request pipeline

    def _address(self) -> str:
        masked = "*" * len(self._config.password)
        return f"{self._config.user}:{masked}@{self._hostname}:{self._port}"

    def _build_request(self, query: str, options: Dict[str, int], compression: bool):
        url = f"{self._config.protocol}://{self._hostname}:{self._port}/"
        headers = {
            "Content-Type": "text/plain",
            "Pragma": "no-cache",
            "Cache-Control": "no-cache",
            "Connection": "close",
            "Accept-Encoding": "gzip" if compression else "identity",
        }
        request = requests.Request(
            "POST",
            url,
            params=options,
            data=query.encode("utf-8"),
            headers=headers,
            auth=(self._config.user, self._config.password),
        )
        try:
            prepared = self._session.prepare_request(request)
            self._session.get_adapter(prepared.url)
        except (requests.exceptions.RequestException, ValueError) as e:
            message = f"Can't connect to host {self._address()}: {e}"
            self._log.fatal(message)
            raise RequestBuildError(message, "build") from e
        return prepared

    def _attempt(self, query: str) -> ResponseStream:
        config = self._config
        max_memory_usage = config.max_memory_usage
        connect_timeout = config.connect_timeout
        send_timeout = config.send_timeout
        receive_timeout = config.receive_timeout
        compression = config.compression

        options: Dict[str, int] = {}
        timeout = 0
        if max_memory_usage > 0:
            options["max_memory_usage"] = max_memory_usage
        if connect_timeout > 0:
            options["connect_timeout"] = connect_timeout
            timeout += connect_timeout
        if send_timeout > 0:
            options["send_timeout"] = send_timeout
            timeout += send_timeout
        if receive_timeout > 0:
            options["receive_timeout"] = receive_timeout
            timeout += receive_timeout
        if compression:
            options["enable_http_compression"] = 1

        prepared = self._build_request(query, options, compression)

        try:
            response = self._session.send(prepared, stream=True, timeout=timeout or None)
        except requests.exceptions.RequestException as e:
            message = f"Can't do request to host {self._address()}: {e}"
            if _MEMORY_LIMIT in str(e):
                raise MemoryLimitError(message, "send") from e
            if isinstance(e, requests.exceptions.Timeout):
                raise TimeoutError(f"Request to {self._address()} timed out: {e}", "send") from e
            raise ConnectionError(message, "send") from e

        if 200 <= response.status_code < 300:
            return ResponseStream(response)

        try:
            body = response.content.decode("utf-8", errors="replace")
        except requests.exceptions.RequestException as e:
            raise ConnectionError(f"Read failed: {e}", "read") from e
        finally:
            response.close()

        message = error_message(body, response.status_code)
        if _MEMORY_LIMIT in message:
            raise MemoryLimitError(message, "query")
        raise QueryError(message, response.status_code, "query")

    def do_query(self, query: str) -> ResponseStream:
        """
        Send a query, retrying per the connection settings.

        Args:
            query: Query text, sent as is

        Returns:
            Open response stream; the caller closes it

        Raises:
            RequestBuildError: If no request can be built (never retried)
            MemoryLimitError: If the server ran out of memory (never retried)
            ClickhouseError: The last attempt's error once attempts run out
        """
        if not self._announce.is_set():
            self._announce.set()
            self._log.info(f"Connection FQDN is {self._address()}")

        last_error: Optional[ClickhouseError] = None
        attempt = 0

        while attempt < max(1, self._config.attempts):
            if attempt > 0:
                time.sleep(attempt * self._config.attempt_wait)
            attempt += 1

            try:
                return self._attempt(query)
            except (RequestBuildError, MemoryLimitError) as e:
                self._log.error(f"Catch error {e}")
                raise
            except ClickhouseError as e:
                last_error = e
                if attempt < self._config.attempts:
                    self._log.warn(f"Catch warning {e}")

        self._log.error(f"Catch error {last_error}")
        raise last_error

    # Queries

    def forced_exec(self, query: str) -> None:
        """Run a query and discard its output, ignoring the request limit."""
        self._log.debug(f"Try to execute: {cut_off_query(query)}")

        stream = self.do_query(query)
        try:
            while stream.read(_READ_CHUNK):
                pass
        finally:
            stream.close()

        self._log.debug(f"The query is executed {cut_off_query(query)}")

    def exec(self, query: str) -> None:
        """
        Run a query that returns no rows.

        Args:
            query: Query text, sent unmodified
        """
        with self._throttle.slot():
            self.forced_exec(query)

    def forced_fetch(self, query: str) -> RowIterator:
        """Like fetch(), ignoring the request limit."""
        return self._fetch(query, None)

    def fetch(self, query: str) -> RowIterator:
        """
        Run a query and iterate over its rows.

        Any trailing FORMAT clause is replaced so the server answers with a
        header line. The request slot is held until the iterator is closed.

        Args:
            query: Query text

        Returns:
            RowIterator positioned before the first row

        Raises:
            ColumnsError: If the response has no header line
        """
        self._throttle.acquire()
        return self._fetch(query, self._throttle.release)

    def _fetch(self, query: str, on_close: Optional[Callable[[], None]]) -> RowIterator:
        stream = None
        try:
            self._log.debug(f"Try to execute: {cut_off_query(query)}")
            query = with_names_format(query)

            stream = self.do_query(query)
            self._log.debug("Open stream to fetch")
        except BaseException:
            try:
                if stream is not None:
                    stream.close()
            finally:
                if on_close is not None:
                    on_close()
            raise

        return RowIterator(stream, self._log, on_close)

    def forced_fetch_one(self, query: str) -> Optional[Result]:
        """Like fetch_one(), ignoring the request limit."""
        with self.forced_fetch(query) as rows:
            if rows.next():
                return rows.result
            return None

    def fetch_one(self, query: str) -> Optional[Result]:
        """
        Run a query and return its first row.

        Returns:
            First row, or None when the query yields no rows
        """
        with self._throttle.slot():
            return self.forced_fetch_one(query)

    def insert_batch(
        self,
        database: str,
        table: str,
        data: Union[str, bytes],
        columns: Optional[Iterable[str]] = None,
        format: Format = Format.TSV,
    ) -> None:
        """
        Insert pre-formatted rows into database.table.

        Args:
            database: Database name
            table: Table name
            data: Rows already encoded in ``format``
            columns: Target columns (all columns if None)
            format: Format of ``data``
        """
        if isinstance(data, bytes):
            data = data.decode("utf-8")

        columns = list(columns or [])
        target = f"{database}.{table}"
        if columns:
            target += f" ({', '.join(columns)})"

        self.exec(f"INSERT INTO {target} FORMAT {Format(format).value}\n{data}\n")

    def health(self) -> None:
        """
        Check the server answers queries.

        Raises:
            ClickhouseError: If the check query fails
        """
        self.forced_exec("SELECT 1")
