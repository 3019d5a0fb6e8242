"""
One decoded row with typed accessors.
"""

import datetime
import re
import struct
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, TypeVar

from .errors import ConversionError, FieldNotFoundError

T = TypeVar("T")

_UNSIGNED = re.compile(r"[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")
_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_DATETIME = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}")

_FLOAT32_MAX = 3.4028234663852886e38


def _parse_uint(value: str, bits: int) -> int:
    if not _UNSIGNED.fullmatch(value):
        raise ValueError("invalid syntax")
    number = int(value)
    if number >= 1 << bits:
        raise ValueError("value out of range")
    return number


def _parse_int(value: str, bits: int) -> int:
    if not _SIGNED.fullmatch(value):
        raise ValueError("invalid syntax")
    number = int(value)
    limit = 1 << (bits - 1)
    if not -limit <= number < limit:
        raise ValueError("value out of range")
    return number


def _parse_float(value: str, bits: int) -> float:
    if value != value.strip() or "_" in value:
        raise ValueError("invalid syntax")
    number = float(value)
    if bits == 32:
        if abs(number) > _FLOAT32_MAX and abs(number) != float("inf"):
            raise ValueError("value out of range")
        number = struct.unpack("f", struct.pack("f", number))[0]
    return number


def _parse_date(value: str) -> datetime.date:
    if not _DATE.fullmatch(value):
        raise ValueError("does not match layout YYYY-MM-DD")
    return datetime.datetime.strptime(value, "%Y-%m-%d").date()


def _parse_datetime(value: str) -> datetime.datetime:
    if not _DATETIME.fullmatch(value):
        raise ValueError("does not match layout YYYY-MM-DD HH:MM:SS")
    return datetime.datetime.strptime(value, "%Y-%m-%d %H:%M:%S")


class Result:
    """
    Row of a query result keyed by column name.

    Cells are kept as the raw text sent by the server. Every typed accessor
    reads the cell through string() and parses it, raising FieldNotFoundError
    for an unknown column and ConversionError for an unparsable cell. A
    failed accessor call leaves the row untouched.
    """

    def __init__(self, data: Mapping[str, str]):
        self._data = MappingProxyType(dict(data))

    def __repr__(self) -> str:
        return f"Result({dict(self._data)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._data == other._data

    def __getitem__(self, column: str) -> str:
        return self.string(column)

    def __contains__(self, column: object) -> bool:
        return column in self._data

    def __len__(self) -> int:
        return len(self._data)

    def as_dict(self) -> Dict[str, str]:
        """Copy of the raw cells."""
        return dict(self._data)

    def columns(self) -> List[str]:
        """Column names of this row."""
        return list(self._data)

    def exist(self, column: str) -> bool:
        """Whether this row has the column."""
        return column in self._data

    def string(self, column: str) -> str:
        """
        Raw text of a cell.

        Raises:
            FieldNotFoundError: If the row has no such column
        """
        try:
            return self._data[column]
        except KeyError:
            raise FieldNotFoundError(column) from None

    def binary(self, column: str) -> bytes:
        """Cell text encoded as UTF-8."""
        return self.string(column).encode("utf-8")

    def _convert(self, column: str, kind: str, parse: Callable[[str], T]) -> T:
        value = self.string(column)
        try:
            return parse(value)
        except ValueError as e:
            raise ConversionError(value, kind, e) from e

    def boolean(self, column: str) -> bool:
        """True only for a cell holding the UInt8 value 1."""
        return self.uint8(column) == 1

    def uint8(self, column: str) -> int:
        return self._convert(column, "uint8", lambda v: _parse_uint(v, 8))

    def uint16(self, column: str) -> int:
        return self._convert(column, "uint16", lambda v: _parse_uint(v, 16))

    def uint32(self, column: str) -> int:
        return self._convert(column, "uint32", lambda v: _parse_uint(v, 32))

    def uint64(self, column: str) -> int:
        return self._convert(column, "uint64", lambda v: _parse_uint(v, 64))

    def int8(self, column: str) -> int:
        return self._convert(column, "int8", lambda v: _parse_int(v, 8))

    def int16(self, column: str) -> int:
        return self._convert(column, "int16", lambda v: _parse_int(v, 16))

    def int32(self, column: str) -> int:
        return self._convert(column, "int32", lambda v: _parse_int(v, 32))

    def int64(self, column: str) -> int:
        return self._convert(column, "int64", lambda v: _parse_int(v, 64))

    def float32(self, column: str) -> float:
        return self._convert(column, "float32", lambda v: _parse_float(v, 32))

    def float64(self, column: str) -> float:
        return self._convert(column, "float64", lambda v: _parse_float(v, 64))

    def date(self, column: str) -> datetime.date:
        """Parse a YYYY-MM-DD cell."""
        return self._convert(column, "date", _parse_date)

    def datetime(self, column: str) -> datetime.datetime:
        """Parse a YYYY-MM-DD HH:MM:SS cell."""
        return self._convert(column, "datetime", _parse_datetime)
