import asyncio

import pytest

from simpleredis.backend import Backend
from simpleredis.commands import InvalidCommandError
from simpleredis.decoder import InvalidFrameTypeError, decode_array
from simpleredis.frames import BulkString, Null, SimpleString, encode
from simpleredis.server import handle_connection, handle_request, serve

SET_CMD = b"*3\r\n$3\r\nset\r\n$5\r\nhello\r\n$5\r\nworld\r\n"
GET_CMD = b"*2\r\n$3\r\nget\r\n$5\r\nhello\r\n"


class _Writer:
    def __init__(self):
        self.data = bytearray()

    def write(self, chunk):
        self.data.extend(chunk)

    async def drain(self):
        return None


def _reader(*chunks):
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    reader.feed_eof()
    return reader


def test_handle_request_get_missing():
    frame = decode_array(bytearray(GET_CMD))
    assert handle_request(frame, Backend()) == Null()


def test_handle_request_set_then_get():
    backend = Backend()
    assert handle_request(decode_array(bytearray(SET_CMD)), backend) == SimpleString("OK")
    assert handle_request(decode_array(bytearray(GET_CMD)), backend) == BulkString(b"world")


def test_handle_request_rejects_non_array():
    with pytest.raises(InvalidCommandError):
        handle_request(BulkString(b"get"), Backend())


@pytest.mark.asyncio
async def test_connection_pipelined_requests():
    writer = _Writer()
    await handle_connection(_reader(SET_CMD + GET_CMD), writer, Backend())
    assert bytes(writer.data) == b"+OK\r\n" + encode(BulkString(b"world"))


@pytest.mark.asyncio
async def test_connection_frame_split_across_reads():
    writer = _Writer()
    backend = Backend()
    await handle_connection(_reader(SET_CMD[:10], SET_CMD[10:]), writer, backend)
    assert bytes(writer.data) == b"+OK\r\n"
    assert backend.get("hello") == BulkString(b"world")


@pytest.mark.asyncio
async def test_connection_bad_frame_raises():
    writer = _Writer()
    with pytest.raises(InvalidFrameTypeError):
        await handle_connection(_reader(b"?bogus\r\n"), writer, Backend())
    assert bytes(writer.data) == b""


@pytest.mark.asyncio
async def test_serve_over_tcp_shares_backend():
    backend = Backend()
    server = await serve("127.0.0.1", 0, backend)
    port = server.sockets[0].getsockname()[1]
    try:
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        writer.write(SET_CMD)
        await writer.drain()
        assert await reader.readexactly(5) == b"+OK\r\n"
        writer.close()

        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        writer.write(GET_CMD)
        await writer.drain()
        expected = encode(BulkString(b"world"))
        assert await reader.readexactly(len(expected)) == expected
        writer.close()
    finally:
        server.close()
        await server.wait_closed()
    assert backend.get("hello") == BulkString(b"world")