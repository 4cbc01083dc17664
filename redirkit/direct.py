"""Direct connections to the destination or to a fixed relay address."""

from __future__ import annotations

import asyncio

__all__ = ["choose_target", "open_direct_connection"]


def choose_target(
    destination: tuple[str, int], relay: tuple[str, int] | None = None
) -> tuple[str, int]:
    """Return the address to connect to: the relay when set, else the destination."""
    return relay if relay else destination


async def open_direct_connection(
    destination: tuple[str, int],
    relay: tuple[str, int] | None = None,
    local_address: tuple[str, int] | None = None,
    timeout: float | None = None,
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Connect straight to the target, optionally from ``local_address``.

    Raises ``OSError`` when the connection fails and ``asyncio.TimeoutError``
    when it takes longer than ``timeout`` seconds.
    """
    host, port = choose_target(destination, relay)
    return await asyncio.wait_for(
        asyncio.open_connection(host, port, local_addr=local_address), timeout
    )