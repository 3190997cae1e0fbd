"""TCP listener and address helpers.

The Listener turns asyncio's callback-style server into an accept()
call, so the command server can run an explicit accept loop that ends
when the listener is closed.
"""

from __future__ import annotations

import asyncio
import logging

from rexec.errors import ConfigurationError, ListenerClosed

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "127.0.0.1:0"

StreamPair = tuple[asyncio.StreamReader, asyncio.StreamWriter]


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6-host]:port``) into its parts.

    An empty host (``:8080``) means all interfaces when listening and the
    local machine when connecting.

    Raises:
        ConfigurationError: If the address is malformed.
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ConfigurationError(f"Invalid address {address!r}: expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigurationError(f"Invalid port in address {address!r}") from None
    if not 0 <= port <= 65535:
        raise ConfigurationError(f"Port out of range in address {address!r}")
    return host, port


def format_address(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class Listener:
    """A bound TCP listener with a blocking ``accept()``.

    Usage::

        listener = await Listener.bind("127.0.0.1:0")
        reader, writer = await listener.accept()
        ...
        listener.close()

    After ``close()`` no new connections are accepted and ``accept()``
    raises ListenerClosed. Connections already handed out are untouched.
    """

    def __init__(self) -> None:
        self._server: asyncio.AbstractServer | None = None
        self._pending: asyncio.Queue[StreamPair | None] = asyncio.Queue()
        self._closed = False
        self._address = ""

    @classmethod
    async def bind(cls, address: str = DEFAULT_ADDRESS) -> Listener:
        """Create a listener bound to ``address`` (port 0 picks a free port)."""
        host, port = parse_address(address)
        listener = cls()
        listener._server = await asyncio.start_server(
            listener._on_connection, host, port
        )
        bound_host, bound_port = listener._server.sockets[0].getsockname()[:2]
        listener._address = format_address(bound_host, bound_port)
        return listener

    @property
    def address(self) -> str:
        """The actual bound ``host:port``."""
        return self._address

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _on_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        if self._closed:
            writer.close()
            return
        self._pending.put_nowait((reader, writer))

    async def accept(self) -> StreamPair:
        """Wait for the next connection.

        Raises:
            ListenerClosed: If the listener is or becomes closed.
        """
        if self._closed:
            raise ListenerClosed("Listener is closed")
        pair = await self._pending.get()
        if pair is None:
            raise ListenerClosed("Listener is closed")
        return pair

    def close(self) -> None:
        """Stop listening. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._server is not None:
            self._server.close()
        # Drop connections that arrived but were never accepted
        while not self._pending.empty():
            pair = self._pending.get_nowait()
            if pair is not None:
                pair[1].close()
        self._pending.put_nowait(None)
        logger.info("Listener %s closed", self._address)
