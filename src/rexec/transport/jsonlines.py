"""Newline-delimited JSON codec.

Each frame is one compact JSON object followed by ``\\n``. JSON string
escaping guarantees the payload never contains a raw newline, so the
newline is an unambiguous frame boundary.

    -> {"id":1,"method":"Server.Call","params":{"Command":"uptime","Args":{}}}
    <- {"id":1,"result":{"ExitCode":0,"Stdout":"...","Stderr":""},"error":null}
"""

from __future__ import annotations

import asyncio
import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from rexec.errors import CodecError, TransportError
from rexec.transport.base import CallFrame, Codec, ReplyFrame

logger = logging.getLogger(__name__)

FRAME_DELIMITER = b"\n"

FrameT = TypeVar("FrameT", bound=BaseModel)


class JsonLinesCodec(Codec):
    """Default codec: one JSON document per line."""

    async def read_call(self, reader: asyncio.StreamReader) -> CallFrame | None:
        return await self._read_frame(reader, CallFrame)

    async def write_call(self, writer: asyncio.StreamWriter, call: CallFrame) -> None:
        await self._write_frame(writer, call)

    async def read_reply(self, reader: asyncio.StreamReader) -> ReplyFrame | None:
        return await self._read_frame(reader, ReplyFrame)

    async def write_reply(self, writer: asyncio.StreamWriter, reply: ReplyFrame) -> None:
        await self._write_frame(writer, reply)

    async def _read_frame(
        self, reader: asyncio.StreamReader, model: type[FrameT]
    ) -> FrameT | None:
        line = await read_line(reader)
        if line is None:
            return None
        try:
            return model.model_validate_json(line)
        except ValidationError as e:
            raise CodecError(f"Invalid {model.__name__}: {e}") from e

    async def _write_frame(self, writer: asyncio.StreamWriter, frame: BaseModel) -> None:
        data = frame.model_dump_json().encode("utf-8") + FRAME_DELIMITER
        try:
            writer.write(data)
            await writer.drain()
        except (ConnectionError, OSError) as e:
            raise TransportError(f"Failed to write frame: {e}") from e


async def read_line(reader: asyncio.StreamReader) -> bytes | None:
    """Read one delimited line of any length.

    Lines longer than the stream's buffer limit are read in pieces and
    joined. Returns None if the stream ends cleanly before any byte of a
    new line arrives.

    Raises:
        TransportError: If the stream ends partway through a line or the
            connection fails.
    """
    chunks: list[bytes] = []
    while True:
        try:
            chunk = await reader.readuntil(FRAME_DELIMITER)
        except asyncio.LimitOverrunError as e:
            chunks.append(await reader.readexactly(e.consumed))
            continue
        except asyncio.IncompleteReadError as e:
            if e.partial or chunks:
                raise TransportError("Connection closed in the middle of a frame") from e
            return None
        except (ConnectionError, OSError) as e:
            raise TransportError(f"Failed to read frame: {e}") from e
        chunks.append(chunk)
        return b"".join(chunks).rstrip(FRAME_DELIMITER)
