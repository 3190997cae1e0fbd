"""Client stub for calling commands on a rexec server.

Example usage::

    response = await call("127.0.0.1:7000", "uptime")
    sys.stdout.write(response.stdout)

    async with CommandClient("127.0.0.1:7000") as client:
        first = await client.call("disk-usage")
        second = await client.call("uptime")
"""

from __future__ import annotations

import asyncio
import itertools
import logging

from pydantic import ValidationError

from rexec.domain.models import Request, Response
from rexec.errors import (
    CommandNotSupported,
    ExecutionLaunchFailure,
    RemoteError,
    RexecError,
    TransportError,
)
from rexec.transport.base import (
    CALL_METHOD,
    COMMAND_NOT_SUPPORTED,
    EXECUTION_FAILED,
    CallFrame,
    Codec,
    RpcError,
)
from rexec.transport.connection import parse_address
from rexec.transport.jsonlines import JsonLinesCodec

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0


class CommandClient:
    """One connection to a rexec server, carrying one call at a time."""

    def __init__(
        self,
        address: str,
        codec: Codec | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self._address = address
        self._codec = codec or JsonLinesCodec()
        self._connect_timeout = connect_timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._ids = itertools.count(1)

    @property
    def is_connected(self) -> bool:
        return self._writer is not None

    async def connect(self) -> None:
        """Open the connection.

        Raises:
            ConfigurationError: If the address is malformed.
            TransportError: If nothing is listening at the address or the
                connect timeout expires.
        """
        host, port = parse_address(self._address)
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(host or "127.0.0.1", port),
                timeout=self._connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timed out connecting to {self._address} after {self._connect_timeout}s"
            ) from e
        except OSError as e:
            raise TransportError(f"Failed to connect to {self._address}: {e}") from e
        logger.debug("Connected to %s", self._address)

    async def disconnect(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._writer is None:
            return
        writer = self._writer
        self._reader = None
        self._writer = None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass
        logger.debug("Disconnected from %s", self._address)

    async def call(self, command: str, args: dict[str, str] | None = None) -> Response:
        """Run ``command`` on the server and wait for its outcome.

        Raises:
            CommandNotSupported: If the server has no such command.
            ExecutionLaunchFailure: If the server could not run it.
            RemoteError: For any other error reported by the server.
            TransportError: If the connection fails or the reply is
                malformed.
        """
        if self._reader is None or self._writer is None:
            raise TransportError("Not connected")

        request = Request(command=command, args=args or {})
        call = CallFrame(
            id=next(self._ids),
            method=CALL_METHOD,
            params=request.model_dump(by_alias=True),
        )
        await self._codec.write_call(self._writer, call)
        reply = await self._codec.read_reply(self._reader)

        if reply is None:
            raise TransportError("Connection closed before a reply was received")
        if reply.error is not None:
            raise _error_from_reply(reply.error, command)
        if reply.id != call.id:
            raise TransportError(f"Reply id {reply.id} does not match call id {call.id}")
        if reply.result is None:
            raise TransportError("Reply carries neither result nor error")
        try:
            return Response.model_validate(reply.result)
        except ValidationError as e:
            raise TransportError(f"Malformed response: {e}") from e

    async def __aenter__(self) -> CommandClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


async def call(
    address: str,
    command: str,
    args: dict[str, str] | None = None,
    *,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> Response:
    """Open a connection, make a single call, and close the connection."""
    async with CommandClient(address, connect_timeout=connect_timeout) as client:
        return await client.call(command, args)


def _error_from_reply(error: RpcError, command: str) -> RexecError:
    if error.code == COMMAND_NOT_SUPPORTED:
        name = (error.data or {}).get("command", command)
        return CommandNotSupported(str(name))
    if error.code == EXECUTION_FAILED:
        return ExecutionLaunchFailure(error.message)
    return RemoteError(error.message, code=error.code)
