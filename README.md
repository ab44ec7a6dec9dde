# simpleredis

A small in-memory key-value server that speaks RESP, the wire protocol used by
Redis clients. It keeps plain keys and hashes in memory and answers the
commands `get`, `set`, `hget`, `hset` and `hgetall`. Any other command is
accepted and answered with `OK`.

## Installing

```
pip install .
```

## Running the server

```
simpleredis
simpleredis --host 127.0.0.1 --port 6380
```

By default the server listens on `0.0.0.0:6379`. It logs, at INFO level, each
connection it accepts, each frame it receives, each command it runs and each
reply it sends. Stop it with Ctrl-C.

Command names are matched exactly and must be written in lower case. A
request such as `SET hello world` is treated as an unknown command and is
answered with `OK` without storing anything.

```
set hello world      -> OK
get hello            -> "world"
hset map field value -> OK
hget map field       -> "value"
hgetall map          -> field, value   (fields in the order they were first set)
get missing          -> null
hgetall missing      -> empty array
```

Replies use RESP3 types: a missing value is the null frame `_\r\n`, and
integers are written with an explicit sign (`:+123\r\n`).

When a request cannot be parsed as a command (it is not an array, the first
element is not a bulk string, or the argument count or types are wrong), no
error reply is sent: the problem is logged as a warning and that connection is
closed. Other connections carry on.

## Using it as a library

### Frames

`simpleredis.frames` holds the frame types `SimpleString`, `SimpleError`,
`BulkString`, `NullBulkString`, `NullArray`, `Null`, `RespArray`, `RespSet`
and `RespMap`; plain Python `int`, `bool` and `float` stand for RESP integers,
booleans and doubles. `encode` turns any of them into bytes:

```python
from simpleredis.frames import BulkString, RespArray, encode

data = encode(RespArray([BulkString(b"get"), BulkString(b"hello")]))
# b"*2\r\n$3\r\nget\r\n$5\r\nhello\r\n"
```

`RespMap` takes string keys only, and encodes its entries in ascending key
order with each key sent as a simple string.

### Decoding

`simpleredis.decoder.decode` reads the next frame of any type from a
`bytearray` and removes its bytes from the buffer:

```python
from simpleredis.decoder import NotCompleteError, decode

buf = bytearray(data)
frame = decode(buf)
```

When the buffer holds only part of a frame, `NotCompleteError` is raised and
the buffer is left untouched, so more bytes can be appended and the call
retried. Malformed input raises `InvalidFrameTypeError` or
`InvalidFrameError`; all of these derive from `RespError`. There are also
decoders for single frame types (`decode_bulk_string`, `decode_array`,
`decode_map` and so on) and `expect_length`, which reports how many bytes the
frame at the start of a buffer occupies.

### Commands and storage

```python
from simpleredis.backend import Backend
from simpleredis.commands import parse_command

backend = Backend()
command = parse_command(frame)
reply = command.execute(backend)
```

`parse_command` returns a `Get`, `Set`, `HGet`, `HSet`, `HGetAll` or
`Unrecognized` command, and raises `InvalidCommandError` or
`InvalidArgumentError` (both subclasses of `CommandError`) when a request is
not well formed. `Backend` is a thread-safe store with `get`, `set`, `hget`,
`hset` and `hgetall`; `simpleredis.server.handle_request` parses and runs one
request frame in a single call.

### Starting a server from code

`serve` starts listening and returns the running `asyncio` server; every
client shares the one `Backend` given to it.

```python
import asyncio

from simpleredis.backend import Backend
from simpleredis.server import serve


async def run():
    server = await serve("127.0.0.1", 6379, Backend())
    async with server:
        await server.serve_forever()


asyncio.run(run())
```

## What it does not do

- Data lives in memory only: nothing is written to disk, and everything is
  lost when the server stops.
- Only the five commands above do anything. There is no deletion, expiry,
  authentication, replication, pub/sub or transactions.
- Command names are case-sensitive, and malformed requests close the
  connection instead of getting an error reply.