"""Core domain models shared by the server, client and wire codec."""

from rexec.domain.models import CommandSpec, ExecutionResult, Request, Response

__all__ = ["CommandSpec", "ExecutionResult", "Request", "Response"]
