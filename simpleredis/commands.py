"""Parsing RESP arrays into commands and executing them against a backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Union

from .backend import Backend
from .frames import BulkString, Frame, Null, RespArray, SimpleString

__all__ = [
    "CommandError",
    "InvalidCommandError",
    "InvalidArgumentError",
    "Command",
    "RESP_OK",
    "Get",
    "Set",
    "HGet",
    "HSet",
    "HGetAll",
    "Unrecognized",
    "parse_command",
]

RESP_OK = SimpleString("OK")


class CommandError(Exception):
    """A frame could not be turned into a command."""


class InvalidCommandError(CommandError):
    """The frame is not a command, or names the wrong one."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid command: {detail}")
        self.detail = detail


class InvalidArgumentError(CommandError):
    """The command's arguments are missing or of the wrong kind."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid argument: {detail}")
        self.detail = detail


def _validate(array: RespArray, names: Sequence[str], n_args: int) -> List[Frame]:
    """Check the command name(s) and argument count; return the arguments."""
    if len(array) != n_args + len(names):
        raise InvalidArgumentError(
            f"{' '.join(names)} command must have exactly {n_args} argument"
        )
    for name, frame in zip(names, array):
        if not isinstance(frame, BulkString):
            raise InvalidCommandError(
                "Command must have a BulkString as the first argument"
            )
        if frame.value.lower() != name.encode("ascii"):
            got = frame.value.decode("utf-8", errors="replace")
            raise InvalidCommandError(f"Invalid command: expected {name}, got {got}")
    return list(array)[len(names):]


def _utf8(frame: BulkString) -> str:
    try:
        return frame.value.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CommandError(f"Utf8 error: {exc}") from exc


@dataclass
class Get:
    """GET key."""

    key: str

    @classmethod
    def from_array(cls, array: RespArray) -> "Get":
        (key,) = _validate(array, ["get"], 1)
        if not isinstance(key, BulkString):
            raise InvalidArgumentError("Invalid key")
        return cls(_utf8(key))

    def execute(self, backend: Backend) -> Frame:
        value = backend.get(self.key)
        return Null() if value is None else value


@dataclass
class Set:
    """SET key value."""

    key: str
    value: Frame

    @classmethod
    def from_array(cls, array: RespArray) -> "Set":
        key, value = _validate(array, ["set"], 2)
        if not isinstance(key, BulkString):
            raise InvalidArgumentError("Invalid key or value")
        return cls(_utf8(key), value)

    def execute(self, backend: Backend) -> Frame:
        backend.set(self.key, self.value)
        return RESP_OK


@dataclass
class HGet:
    """HGET key field."""

    key: str
    field: str

    @classmethod
    def from_array(cls, array: RespArray) -> "HGet":
        key, field = _validate(array, ["hget"], 2)
        if not (isinstance(key, BulkString) and isinstance(field, BulkString)):
            raise InvalidArgumentError("Invalid key or field")
        return cls(_utf8(key), _utf8(field))

    def execute(self, backend: Backend) -> Frame:
        value = backend.hget(self.key, self.field)
        return Null() if value is None else value


@dataclass
class HSet:
    """HSET key field value."""

    key: str
    field: str
    value: Frame

    @classmethod
    def from_array(cls, array: RespArray) -> "HSet":
        key, field, value = _validate(array, ["hset"], 3)
        if not (isinstance(key, BulkString) and isinstance(field, BulkString)):
            raise InvalidArgumentError("Invalid key, field or value")
        return cls(_utf8(key), _utf8(field), value)

    def execute(self, backend: Backend) -> Frame:
        backend.hset(self.key, self.field, self.value)
        return RESP_OK


@dataclass
class HGetAll:
    """HGETALL key; ``sort`` orders the fields by name."""

    key: str
    sort: bool = False

    @classmethod
    def from_array(cls, array: RespArray) -> "HGetAll":
        (key,) = _validate(array, ["hgetall"], 1)
        if not isinstance(key, BulkString):
            raise InvalidArgumentError("Invalid key")
        return cls(_utf8(key))

    def execute(self, backend: Backend) -> Frame:
        fields = backend.hgetall(self.key)
        if fields is None:
            return RespArray([])
        pairs = sorted(fields.items()) if self.sort else list(fields.items())
        return RespArray(
            [frame for name, value in pairs for frame in (BulkString(name), value)]
        )


@dataclass
class Unrecognized:
    """Any command this server does not know; it answers OK."""

    def execute(self, backend: Backend) -> Frame:
        return SimpleString(RESP_OK.value)


Command = Union[Get, Set, HGet, HSet, HGetAll, Unrecognized]

_COMMANDS = {
    b"get": Get,
    b"set": Set,
    b"hget": HGet,
    b"hset": HSet,
    b"hgetall": HGetAll,
}


def parse_command(frame: Frame) -> Command:
    """Turn a request frame into a command ready to execute."""
    if not isinstance(frame, RespArray):
        raise InvalidCommandError("Command must be an Array")
    if not frame.items or not isinstance(frame.items[0], BulkString):
        raise InvalidCommandError(
            "Command must have a BulkString as the first argument"
        )
    command = _COMMANDS.get(frame.items[0].value)
    if command is None:
        return Unrecognized()
    return command.from_array(frame)