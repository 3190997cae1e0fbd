"""Wire transport for rexec: frames, codecs and TCP listening."""

from rexec.transport.base import CALL_METHOD, CallFrame, Codec, ReplyFrame, RpcError
from rexec.transport.connection import Listener, format_address, parse_address
from rexec.transport.jsonlines import JsonLinesCodec

__all__ = [
    "CALL_METHOD",
    "CallFrame",
    "Codec",
    "JsonLinesCodec",
    "Listener",
    "ReplyFrame",
    "RpcError",
    "format_address",
    "parse_address",
]
