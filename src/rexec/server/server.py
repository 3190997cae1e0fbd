"""Connection server: accepts clients and serves calls on each connection.

Each accepted connection runs in its own asyncio task and loops through
read call -> dispatch -> write reply until the client disconnects. The
accept loop never waits on a session, so a slow command never stalls
other clients.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Iterable

from pydantic import ValidationError

from rexec.domain.models import CommandSpec, Request
from rexec.errors import (
    CodecError,
    CommandNotSupported,
    ExecutionLaunchFailure,
    ListenerClosed,
    TransportError,
)
from rexec.server.dispatcher import Dispatcher
from rexec.server.executor import ShellExecutor
from rexec.server.registry import CommandRegistry
from rexec.transport.base import (
    CALL_METHOD,
    COMMAND_NOT_SUPPORTED,
    EXECUTION_FAILED,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    CallFrame,
    Codec,
    ReplyFrame,
    make_error_reply,
)
from rexec.transport.connection import Listener
from rexec.transport.jsonlines import JsonLinesCodec

logger = logging.getLogger(__name__)


class CommandServer:
    """Remote command execution server.

    The command list is frozen when the server is created. The registry
    and dispatcher are built lazily, exactly once, when the first session
    starts; the configuration is never read again after that.

    Usage::

        server = CommandServer(commands)
        listener = await Listener.bind("127.0.0.1:7000")
        await server.serve(listener)   # returns once listener.close() is called
    """

    def __init__(
        self,
        commands: Iterable[CommandSpec],
        codec: Codec | None = None,
        executor: ShellExecutor | None = None,
    ) -> None:
        self._commands: tuple[CommandSpec, ...] = tuple(commands)
        self._codec = codec or JsonLinesCodec()
        self._executor = executor or ShellExecutor()
        self._init_lock = threading.Lock()
        self._dispatcher: Dispatcher | None = None
        self._sessions: set[asyncio.Task[None]] = set()

    @property
    def commands(self) -> tuple[CommandSpec, ...]:
        return self._commands

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    def _ensure_initialized(self) -> Dispatcher:
        """Build the dispatch machinery once, whoever gets here first."""
        dispatcher = self._dispatcher
        if dispatcher is not None:
            return dispatcher
        with self._init_lock:
            if self._dispatcher is None:
                registry = CommandRegistry(self._commands)
                self._dispatcher = Dispatcher(registry, self._executor)
                logger.debug("Dispatcher initialized with %d commands", len(registry))
            return self._dispatcher

    async def listen_and_serve(self, address: str) -> None:
        """Bind ``address`` and serve until the task is cancelled."""
        listener = await Listener.bind(address)
        logger.info("Listening on: %s", listener.address)
        try:
            await self.serve(listener)
        finally:
            listener.close()

    async def serve(self, listener: Listener) -> None:
        """Accept connections on ``listener`` until it is closed.

        Each connection is served by its own task. Closing the listener
        ends this loop but leaves sessions already running untouched.
        Closing the listener is the caller's responsibility.
        """
        while True:
            try:
                reader, writer = await listener.accept()
            except ListenerClosed:
                logger.info("Listener closed, no longer accepting connections")
                return

            peer = _peer_name(writer)
            logger.info("Accepted connection: %s", peer)
            task = asyncio.create_task(
                self.serve_conn(reader, writer), name=f"rexec-session-{peer}"
            )
            self._sessions.add(task)
            task.add_done_callback(self._sessions.discard)

    async def serve_conn(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Serve calls on one connection until the peer disconnects.

        Transport and codec failures end only this session.
        """
        dispatcher = self._ensure_initialized()
        peer = _peer_name(writer)
        try:
            while True:
                try:
                    call = await self._codec.read_call(reader)
                except CodecError as e:
                    logger.warning("Undecodable frame from %s: %s", peer, e)
                    await self._codec.write_reply(
                        writer, make_error_reply(None, PARSE_ERROR, str(e))
                    )
                    break
                if call is None:
                    break
                reply = await self._handle_call(dispatcher, call)
                await self._codec.write_reply(writer, reply)
        except TransportError as e:
            logger.warning("Session %s ended: %s", peer, e)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            logger.info("Closed connection: %s", peer)

    async def _handle_call(self, dispatcher: Dispatcher, call: CallFrame) -> ReplyFrame:
        if call.method != CALL_METHOD:
            return make_error_reply(
                call.id, METHOD_NOT_FOUND, f"Method not found: {call.method}"
            )

        try:
            request = Request.model_validate(call.params)
        except ValidationError as e:
            return make_error_reply(call.id, INVALID_PARAMS, f"Invalid request: {e}")

        try:
            response = await dispatcher.dispatch(request)
        except CommandNotSupported as e:
            logger.info("Rejected unknown command: %s", e.command)
            return make_error_reply(
                call.id, COMMAND_NOT_SUPPORTED, str(e), data={"command": e.command}
            )
        except ExecutionLaunchFailure as e:
            logger.warning("Execution of %r failed: %s", e.command_line, e)
            return make_error_reply(call.id, EXECUTION_FAILED, str(e))
        except Exception as e:
            logger.exception("Unexpected error dispatching %r", request.command)
            return make_error_reply(call.id, INTERNAL_ERROR, f"Internal error: {e}")

        return ReplyFrame(id=call.id, result=response.model_dump(by_alias=True))


def _peer_name(writer: asyncio.StreamWriter) -> str:
    peer = writer.get_extra_info("peername")
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer) if peer else "unknown"
