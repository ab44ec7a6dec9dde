"""Incremental RESP decoding from a mutable byte buffer.

Every ``decode*`` function takes a ``bytearray`` and removes the bytes of the
frame it returns.  When the buffer does not yet hold a whole frame,
:class:`NotCompleteError` is raised and the buffer is left as it was, so the
caller can append more data and try again.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Tuple, Union

from .frames import (
    BulkString,
    Frame,
    Null,
    NullArray,
    NullBulkString,
    RespArray,
    RespMap,
    RespSet,
    SimpleError,
    SimpleString,
)

__all__ = [
    "RespError",
    "NotCompleteError",
    "InvalidFrameError",
    "InvalidFrameTypeError",
    "InvalidFrameLengthError",
    "decode",
    "expect_length",
    "parse_length",
    "calc_total_length",
    "decode_simple_string",
    "decode_simple_error",
    "decode_integer",
    "decode_bulk_string",
    "decode_null_bulk_string",
    "decode_array",
    "decode_null_array",
    "decode_null",
    "decode_boolean",
    "decode_double",
    "decode_map",
    "decode_set",
]

CRLF = b"\r\n"
CRLF_LEN = len(CRLF)

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_USIZE_MAX = 2**64 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"\+?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)",
    re.IGNORECASE,
)

Buffer = Union[bytes, bytearray]


class RespError(Exception):
    """Base class for RESP decoding errors."""


class NotCompleteError(RespError):
    """The buffer does not yet hold a whole frame."""

    def __init__(self, message: str = "Frame is not complete") -> None:
        super().__init__(message)


class InvalidFrameError(RespError):
    """The frame is malformed: bad number, bad length, and the like."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid frame: {detail}")
        self.detail = detail


class InvalidFrameTypeError(RespError):
    """The frame does not start with the expected type marker."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid frame type: {detail}")
        self.detail = detail


class InvalidFrameLengthError(RespError):
    """A frame declared a length that cannot be used."""

    def __init__(self, length: int) -> None:
        super().__init__(f"Invalid frame length: {length}")
        self.length = length


def _as_prefix(prefix: Union[str, bytes]) -> bytes:
    return prefix.encode("ascii") if isinstance(prefix, str) else bytes(prefix)


def _text(data: Buffer) -> str:
    return bytes(data).decode("utf-8", errors="replace")


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise InvalidFrameError(f"cannot parse integer from {text!r}")
    value = int(text)
    if not _I64_MIN <= value <= _I64_MAX:
        raise InvalidFrameError(f"integer {text!r} does not fit in 64 bits")
    return value


def _parse_count(text: str) -> int:
    if not _UINT_RE.fullmatch(text):
        raise InvalidFrameError(f"cannot parse length from {text!r}")
    value = int(text)
    if value > _USIZE_MAX:
        raise InvalidFrameError(f"length {text!r} is too large")
    return value


def _parse_float(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise InvalidFrameError(f"cannot parse double from {text!r}")
    return float(text)


def _extract_fixed(buf: bytearray, expected: bytes, kind: str) -> None:
    if len(buf) < len(expected):
        raise NotCompleteError()
    if not buf.startswith(expected):
        raise InvalidFrameTypeError(f"expect: {kind}, got: {bytes(buf)!r}")
    del buf[: len(expected)]


def _simple_end(buf: Buffer, prefix: bytes, pos: int = 0) -> int:
    """Absolute index of the first CRLF of the simple frame starting at ``pos``."""
    if len(buf) - pos < 3:
        raise NotCompleteError()
    if not buf.startswith(prefix, pos):
        raise InvalidFrameTypeError(
            f"expect: SimpleString({prefix.decode('ascii', 'replace')}), "
            f"got: {bytes(buf[pos:])!r}"
        )
    end = buf.find(CRLF, pos + 1)
    if end < 0:
        raise NotCompleteError()
    return end


def _parse_length(buf: Buffer, prefix: bytes, pos: int = 0) -> Tuple[int, int]:
    end = _simple_end(buf, prefix, pos)
    return end, _parse_count(_text(buf[pos + len(prefix) : end]))


def _calc_total(buf: Buffer, end: int, length: int, prefix: bytes, pos: int = 0) -> int:
    total = end - pos + CRLF_LEN
    cursor = end + CRLF_LEN
    if prefix in (b"*", b"~"):
        for _ in range(length):
            size = _expect_length(buf, cursor)
            cursor += size
            total += size
        return total
    if prefix == b"%":
        for _ in range(length):
            size = _simple_end(buf, b"+", cursor) - cursor + CRLF_LEN
            cursor += size
            total += size
            size = _expect_length(buf, cursor)
            cursor += size
            total += size
        return total
    return length + CRLF_LEN


def _expect_length(buf: Buffer, pos: int) -> int:
    if pos >= len(buf):
        raise NotCompleteError()
    tag = bytes(buf[pos : pos + 1])
    if tag in (b"*", b"~", b"%"):
        end, count = _parse_length(buf, tag, pos)
        return _calc_total(buf, end, count, tag, pos)
    if tag == b"$":
        end, size = _parse_length(buf, tag, pos)
        return end - pos + CRLF_LEN + size + CRLF_LEN
    if tag in (b":", b"+", b"-", b","):
        return _simple_end(buf, tag, pos) - pos + CRLF_LEN
    if tag == b"#":
        return 4
    if tag == b"_":
        return 3
    raise NotCompleteError()


def expect_length(buf: Buffer) -> int:
    """Number of bytes the frame at the start of ``buf`` occupies."""
    return _expect_length(buf, 0)


def parse_length(buf: Buffer, prefix: Union[str, bytes]) -> Tuple[int, int]:
    """Return the CRLF index and the declared length of a length-prefixed frame."""
    return _parse_length(buf, _as_prefix(prefix))


def calc_total_length(buf: Buffer, end: int, length: int, prefix: Union[str, bytes]) -> int:
    """Total byte size of an aggregate frame whose header ends at ``end``."""
    return _calc_total(buf, end, length, _as_prefix(prefix))


def _take_simple(buf: bytearray, prefix: bytes) -> str:
    end = _simple_end(buf, prefix)
    data = bytes(buf[len(prefix) : end])
    del buf[: end + CRLF_LEN]
    return _text(data)


def decode_simple_string(buf: bytearray) -> SimpleString:
    """Decode ``+<text>\\r\\n``."""
    return SimpleString(_take_simple(buf, b"+"))


def decode_simple_error(buf: bytearray) -> SimpleError:
    """Decode ``-<message>\\r\\n``."""
    return SimpleError(_take_simple(buf, b"-"))


def decode_integer(buf: bytearray) -> int:
    """Decode ``:[+|-]<value>\\r\\n``."""
    return _parse_int(_take_simple(buf, b":"))


def decode_double(buf: bytearray) -> float:
    """Decode ``,<double>\\r\\n``."""
    return _parse_float(_take_simple(buf, b","))


def decode_bulk_string(buf: bytearray) -> BulkString:
    """Decode ``$<len>\\r\\n<data>\\r\\n``."""
    end, length = _parse_length(buf, b"$")
    start = end + CRLF_LEN
    if len(buf) - start < length + CRLF_LEN:
        raise NotCompleteError()
    data = bytes(buf[start : start + length])
    del buf[: start + length + CRLF_LEN]
    return BulkString(data)


def decode_null_bulk_string(buf: bytearray) -> NullBulkString:
    """Decode ``$-1\\r\\n``."""
    _extract_fixed(buf, b"$-1\r\n", "NullBulkString")
    return NullBulkString()


def decode_null_array(buf: bytearray) -> NullArray:
    """Decode ``*-1\\r\\n``."""
    _extract_fixed(buf, b"*-1\r\n", "NullArray")
    return NullArray()


def decode_null(buf: bytearray) -> Null:
    """Decode ``_\\r\\n``."""
    _extract_fixed(buf, b"_\r\n", "Null")
    return Null()


def decode_boolean(buf: bytearray) -> bool:
    """Decode ``#t\\r\\n`` or ``#f\\r\\n``."""
    try:
        _extract_fixed(buf, b"#t\r\n", "Bool")
        return True
    except NotCompleteError:
        raise
    except RespError:
        _extract_fixed(buf, b"#f\r\n", "Bool")
        return False


def _open_aggregate(buf: bytearray, prefix: bytes) -> int:
    end, length = _parse_length(buf, prefix)
    total = _calc_total(buf, end, length, prefix)
    if len(buf) < total:
        raise NotCompleteError()
    del buf[: end + CRLF_LEN]
    return length


def decode_array(buf: bytearray) -> RespArray:
    """Decode ``*<count>\\r\\n<frames>``."""
    count = _open_aggregate(buf, b"*")
    return RespArray([decode(buf) for _ in range(count)])


def decode_set(buf: bytearray) -> RespSet:
    """Decode ``~<count>\\r\\n<frames>``."""
    count = _open_aggregate(buf, b"~")
    return RespSet([decode(buf) for _ in range(count)])


def decode_map(buf: bytearray) -> RespMap:
    """Decode ``%<count>\\r\\n<key><value>...`` with simple-string keys."""
    count = _open_aggregate(buf, b"%")
    result = RespMap()
    for _ in range(count):
        key = decode_simple_string(buf)
        result[key.value] = decode(buf)
    return result


def _decode_dollar(buf: bytearray) -> Frame:
    try:
        return decode_null_bulk_string(buf)
    except NotCompleteError:
        raise
    except RespError:
        return decode_bulk_string(buf)


def _decode_star(buf: bytearray) -> Frame:
    try:
        return decode_null_array(buf)
    except NotCompleteError:
        raise
    except RespError:
        return decode_array(buf)


_DECODERS: Dict[int, Callable[[bytearray], Frame]] = {
    ord("+"): decode_simple_string,
    ord("-"): decode_simple_error,
    ord(":"): decode_integer,
    ord("$"): _decode_dollar,
    ord("*"): _decode_star,
    ord("_"): decode_null,
    ord("#"): decode_boolean,
    ord(","): decode_double,
    ord("%"): decode_map,
    ord("~"): decode_set,
}


def decode(buf: bytearray) -> Frame:
    """Decode and remove the next frame of any type from ``buf``."""
    if not buf:
        raise NotCompleteError()
    decoder = _DECODERS.get(buf[0])
    if decoder is None:
        raise InvalidFrameTypeError(f"expect_length: unknown frame type: {bytes(buf)!r}")
    return decoder(buf)