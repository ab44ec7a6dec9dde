"""TCP server speaking RESP, and its command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from .backend import Backend
from .commands import parse_command
from .decoder import NotCompleteError, decode
from .frames import Frame, encode

__all__ = ["handle_request", "handle_connection", "serve", "main"]

log = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 6379
_READ_SIZE = 4096


def handle_request(frame: Frame, backend: Backend) -> Frame:
    """Parse a request frame as a command and return its reply."""
    command = parse_command(frame)
    log.info("Executing command: %r", command)
    return command.execute(backend)


async def handle_connection(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter, backend: Backend
) -> None:
    """Answer every request on one connection until the peer closes it."""
    buffer = bytearray()
    while True:
        try:
            frame = decode(buffer)
        except NotCompleteError:
            chunk = await reader.read(_READ_SIZE)
            if not chunk:
                return
            buffer.extend(chunk)
            continue
        log.info("Received frame: %r", frame)
        response = handle_request(frame, backend)
        log.info("Sending response: %r", response)
        writer.write(encode(response))
        await writer.drain()


async def serve(
    host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, backend: Optional[Backend] = None
) -> asyncio.AbstractServer:
    """Start listening and return the running server; all clients share one backend."""
    store = backend if backend is not None else Backend()

    async def on_client(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        log.info("Accepted connection from: %s", peer)
        try:
            await handle_connection(reader, writer, store)
            log.info("Connection from %s exited", peer)
        except Exception as exc:  # one bad client must not stop the server
            log.warning("handle error for %s: %r", peer, exc)
        finally:
            writer.close()

    server = await asyncio.start_server(on_client, host, port)
    log.info("Simple-Redis-Server is listening on %s:%s", host, port)
    return server


async def _run(host: str, port: int) -> None:
    server = await serve(host, port)
    async with server:
        await server.serve_forever()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the server until interrupted."""
    parser = argparse.ArgumentParser(description="A small RESP key/value server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(_run(args.host, args.port))
    except KeyboardInterrupt:
        pass
    return 0