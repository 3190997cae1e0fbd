"""Wire envelopes and the codec interface.

Every exchange is one call frame from the client followed by one reply
frame from the server. A codec decides how those frames are laid out on
the byte stream, so the encoding can be swapped without touching the
server or client.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# The only remote procedure a server exposes
CALL_METHOD = "Server.Call"

# Error codes (JSON-RPC 2.0 numbering, server range for rexec errors)
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
COMMAND_NOT_SUPPORTED = -32001
EXECUTION_FAILED = -32002


class RpcError(BaseModel):
    code: int = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    data: dict[str, Any] | None = Field(default=None)


class CallFrame(BaseModel):
    """A client's request to invoke a remote procedure."""

    id: int = Field(ge=0, description="Sequence number echoed in the reply")
    method: str = Field(default=CALL_METHOD)
    params: dict[str, Any] = Field(default_factory=dict)


class ReplyFrame(BaseModel):
    """The server's answer to one CallFrame.

    Exactly one of ``result`` and ``error`` is set. ``id`` is None only
    when the call it answers could not be decoded.
    """

    id: int | None = None
    result: dict[str, Any] | None = None
    error: RpcError | None = None


def make_error_reply(
    call_id: int | None,
    code: int,
    message: str,
    data: dict[str, Any] | None = None,
) -> ReplyFrame:
    return ReplyFrame(id=call_id, error=RpcError(code=code, message=message, data=data))


class Codec(ABC):
    """Reads and writes frames on an asyncio stream pair.

    Implementations must be stateless so one instance can serve any
    number of concurrent connections.

    Raises (all methods):
        CodecError: If bytes were received that do not form a valid frame.
        TransportError: If the underlying stream fails mid-frame.
    """

    @abstractmethod
    async def read_call(self, reader: asyncio.StreamReader) -> CallFrame | None:
        """Read the next call frame, or None on a clean end of stream."""
        ...

    @abstractmethod
    async def write_call(self, writer: asyncio.StreamWriter, call: CallFrame) -> None:
        ...

    @abstractmethod
    async def read_reply(self, reader: asyncio.StreamReader) -> ReplyFrame | None:
        """Read the next reply frame, or None on a clean end of stream."""
        ...

    @abstractmethod
    async def write_reply(self, writer: asyncio.StreamWriter, reply: ReplyFrame) -> None:
        ...
