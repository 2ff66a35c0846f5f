"""Test helper functions for store-probe tests.

Usage
=====

Import and use helpers directly in tests::

    from tests.helpers import closed_port, listening_server, make_config

    async def test_example():
        async with listening_server() as port:
            ...
"""

from __future__ import annotations

import asyncio
import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from storeprobe.config import Config


def make_config(**overrides: Any) -> Config:
    """Create a Config with test-friendly defaults.

    Args:
        **overrides: Config fields to override.

    Returns:
        Config instance.
    """
    defaults: dict[str, Any] = {
        "target": "tcp://127.0.0.1:1113",
        "retry_limit": 1,
        "retry_delay": 0.01,
        "timeout": 2.0,
    }
    defaults.update(overrides)
    return Config(**defaults)


def closed_port() -> int:
    """Return a localhost port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@asynccontextmanager
async def listening_server() -> AsyncIterator[int]:
    """Run a TCP server on localhost that accepts and holds connections.

    Yields:
        The port the server listens on.
    """
    writers: list[asyncio.StreamWriter] = []

    async def accept(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writers.append(writer)

    server = await asyncio.start_server(accept, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield port
    finally:
        for writer in writers:
            writer.close()
        server.close()
        await server.wait_closed()
