"""An in-memory key-value server speaking the RESP protocol: frame encoding and decoding, commands, storage and an asyncio TCP server."""

__version__ = "0.1.0"

__all__ = ["backend", "commands", "decoder", "frames", "server"]