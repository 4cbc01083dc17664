import asyncio
import socket

import pytest

from redirkit.direct import choose_target, open_direct_connection


def test_choose_target_prefers_relay():
    assert choose_target(("192.0.2.1", 80), ("127.0.0.1", 1080)) == ("127.0.0.1", 1080)


def test_choose_target_without_relay():
    assert choose_target(("192.0.2.1", 80), None) == ("192.0.2.1", 80)


async def _echo(reader, writer):
    data = await reader.read(100)
    writer.write(data)
    await writer.drain()
    writer.close()


def _unused_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_direct_connection_round_trip():
    server = await asyncio.start_server(_echo, "127.0.0.1", 0)
    address = server.sockets[0].getsockname()[:2]
    try:
        reader, writer = await open_direct_connection(address, timeout=5)
        writer.write(b"ping")
        await writer.drain()
        assert await reader.read(100) == b"ping"
        writer.close()
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_relay_used_instead_of_destination():
    server = await asyncio.start_server(_echo, "127.0.0.1", 0)
    relay = server.sockets[0].getsockname()[:2]
    try:
        reader, writer = await open_direct_connection(
            ("127.0.0.1", _unused_port()), relay=relay, timeout=5
        )
        assert writer.get_extra_info("peername")[:2] == relay
        writer.close()
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_local_address_binding():
    server = await asyncio.start_server(_echo, "127.0.0.1", 0)
    address = server.sockets[0].getsockname()[:2]
    try:
        _reader, writer = await open_direct_connection(
            address, local_address=("127.0.0.1", 0), timeout=5
        )
        assert writer.get_extra_info("sockname")[0] == "127.0.0.1"
        writer.close()
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_refused_connection_raises():
    with pytest.raises(OSError):
        await open_direct_connection(("127.0.0.1", _unused_port()), timeout=5)