"""RESP frame types and their wire encoding."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from functools import singledispatch
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple, Union

__all__ = [
    "SimpleString",
    "SimpleError",
    "BulkString",
    "NullBulkString",
    "NullArray",
    "Null",
    "RespArray",
    "RespMap",
    "RespSet",
    "Frame",
    "encode",
]

CRLF = b"\r\n"

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


@dataclass(frozen=True)
class SimpleString:
    """A simple string: ``+<text>\\r\\n``."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SimpleError:
    """An error reply: ``-<message>\\r\\n``."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BulkString:
    """A length-prefixed binary string: ``$<len>\\r\\n<data>\\r\\n``."""

    value: bytes

    def __post_init__(self) -> None:
        data = self.value
        if isinstance(data, str):
            data = data.encode("utf-8")
        elif isinstance(data, (bytearray, memoryview)):
            data = bytes(data)
        elif not isinstance(data, bytes):
            raise TypeError(f"BulkString needs bytes or str, got {type(data).__name__}")
        object.__setattr__(self, "value", data)

    def __bytes__(self) -> bytes:
        return self.value

    def __len__(self) -> int:
        return len(self.value)


@dataclass(frozen=True)
class NullBulkString:
    """The null bulk string: ``$-1\\r\\n``."""


@dataclass(frozen=True)
class NullArray:
    """The null array: ``*-1\\r\\n``."""


@dataclass(frozen=True)
class Null:
    """The null value: ``_\\r\\n``."""


@dataclass
class RespArray:
    """An ordered sequence of frames: ``*<count>\\r\\n<frames>``."""

    items: List[Any] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.items = list(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]


@dataclass
class RespSet:
    """A collection of frames sent as a set: ``~<count>\\r\\n<frames>``."""

    items: List[Any] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.items = list(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]


@dataclass
class RespMap:
    """A map with string keys, kept in key order: ``%<count>\\r\\n<key><value>...``."""

    entries: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        source: Union[Mapping[str, Any], Iterable[Tuple[str, Any]]] = self.entries
        pairs = source.items() if isinstance(source, Mapping) else source
        self.entries = {}
        for key, value in pairs:
            self[key] = value

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise TypeError(f"map keys must be str, got {type(key).__name__}")
        self.entries[key] = value

    def __getitem__(self, key: str) -> Any:
        return self.entries[key]

    def __delitem__(self, key: str) -> None:
        try:
            self.entries.pop(key)
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.entries))

    def get(self, key: str, default: Any = None) -> Any:
        return self.entries.get(key, default)

    def items(self) -> List[Tuple[str, Any]]:
        """Entries in ascending key order."""
        return [(key, self.entries[key]) for key in self]


Frame = Union[
    SimpleString,
    SimpleError,
    int,
    BulkString,
    NullBulkString,
    RespArray,
    NullArray,
    Null,
    bool,
    float,
    RespMap,
    RespSet,
]

_FIXED_WIRE = {
    NullBulkString: b"$-1\r\n",
    NullArray: b"*-1\r\n",
    Null: b"_\r\n",
}


def _plain_decimal(value: float) -> str:
    return format(Decimal(repr(value)).normalize(), "f")


def _scientific(value: float) -> str:
    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    head, tail = str(digits[0]), "".join(str(d) for d in digits[1:])
    mantissa = f"{head}.{tail}" if tail else head
    power = exponent + len(digits) - 1
    return f"{'-' if sign else '+'}{mantissa}e{power}"


def _double_text(value: float) -> str:
    if math.isnan(value):
        return "+NaN"
    if math.isinf(value):
        return "+inf" if value > 0 else "-inf"
    if abs(value) > 1e8 or abs(value) < 1e-8:
        return _scientific(value)
    text = _plain_decimal(value)
    return text if value < 0 else "+" + text


@singledispatch
def encode(frame: Any) -> bytes:
    """Serialise a frame to its RESP wire form."""
    raise TypeError(f"cannot encode {type(frame).__name__} as a RESP frame")


@encode.register
def _(frame: SimpleString) -> bytes:
    return b"+" + frame.value.encode("utf-8") + CRLF


@encode.register
def _(frame: SimpleError) -> bytes:
    return b"-" + frame.value.encode("utf-8") + CRLF


@encode.register
def _(frame: int) -> bytes:
    if not _I64_MIN <= frame <= _I64_MAX:
        raise ValueError(f"integer {frame} does not fit in 64 bits")
    sign = "" if frame < 0 else "+"
    return f":{sign}{frame}\r\n".encode("ascii")


@encode.register
def _(frame: bool) -> bytes:
    flag = "t" if frame else "f"
    return f"#{flag}\r\n".encode("ascii")


@encode.register
def _(frame: float) -> bytes:
    return f",{_double_text(frame)}\r\n".encode("ascii")


@encode.register
def _(frame: BulkString) -> bytes:
    return f"${len(frame.value)}\r\n".encode("ascii") + frame.value + CRLF


@encode.register(NullBulkString)
@encode.register(NullArray)
@encode.register(Null)
def _encode_fixed(frame: Any) -> bytes:
    return _FIXED_WIRE[type(frame)]


@encode.register
def _(frame: RespArray) -> bytes:
    header = f"*{len(frame)}\r\n".encode("ascii")
    return header + b"".join(encode(item) for item in frame)


@encode.register
def _(frame: RespSet) -> bytes:
    header = f"~{len(frame)}\r\n".encode("ascii")
    return header + b"".join(encode(item) for item in frame)


@encode.register
def _(frame: RespMap) -> bytes:
    parts = [f"%{len(frame)}\r\n".encode("ascii")]
    for key, value in frame.items():
        parts.append(encode(SimpleString(key)))
        parts.append(encode(value))
    return b"".join(parts)