"""Exception hierarchy for rexec.

Transport errors end a single session or client call. Dispatch errors end
a single request and are reported back over the same connection. Neither
ever stops the server; only a closed listener ends the accept loop.
"""

from __future__ import annotations


class RexecError(Exception):
    """Base class for all rexec errors."""


class ConfigurationError(RexecError):
    """Raised when settings, addresses or the command registry are invalid."""


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TransportError(RexecError):
    """Raised on connect, read or write failures."""


class CodecError(TransportError):
    """Raised when a frame cannot be decoded."""


class ListenerClosed(TransportError):
    """Raised by Listener.accept() once the listener has been closed."""


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class DispatchError(RexecError):
    """Base class for request-level failures."""


class CommandNotSupported(DispatchError):
    """Raised when the requested command is not in the registry."""

    def __init__(self, command: str) -> None:
        super().__init__(f"Command not supported: {command}")
        self.command = command


class ExecutionLaunchFailure(DispatchError):
    """Raised when a child process cannot be started or has no exit status."""

    def __init__(self, message: str, command_line: str = "") -> None:
        super().__init__(message)
        self.command_line = command_line


class RemoteError(DispatchError):
    """Raised by the client for server errors with no more specific type."""

    def __init__(self, message: str, code: int = 0) -> None:
        super().__init__(message)
        self.code = code
