"""Shared test fixtures for the rexec test suite.

Provides command definitions, registries and a running server bound to
an ephemeral loopback port.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from rexec.domain.models import CommandSpec, ExecutionResult
from rexec.server.executor import ShellExecutor
from rexec.server.registry import CommandRegistry
from rexec.server.server import CommandServer
from rexec.transport.connection import Listener


# ---------------------------------------------------------------------------
# Command Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_commands() -> list[CommandSpec]:
    """A small registry covering success, failure, stderr and pipes."""
    return [
        CommandSpec(name="hello", command_line="echo hello"),
        CommandSpec(name="fail", command_line="exit 7"),
        CommandSpec(name="both", command_line="echo out; echo err >&2; exit 3"),
        CommandSpec(name="pipe", command_line="printf 'b\\na\\n' | sort"),
        CommandSpec(name="greet", command_line="echo hi", param_names=("who",)),
    ]


@pytest.fixture
def registry(sample_commands: list[CommandSpec]) -> CommandRegistry:
    return CommandRegistry(sample_commands)


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_executor() -> AsyncMock:
    """A ShellExecutor stand-in that never starts a process."""
    executor = AsyncMock(spec=ShellExecutor)
    executor.execute.return_value = ExecutionResult(exit_code=0, stdout="mocked\n")
    return executor


# ---------------------------------------------------------------------------
# Server Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def running_server(
    sample_commands: list[CommandSpec],
) -> AsyncIterator[tuple[CommandServer, Listener, asyncio.Task[None]]]:
    """A CommandServer serving on 127.0.0.1 with an OS-assigned port."""
    server = CommandServer(sample_commands)
    listener = await Listener.bind("127.0.0.1:0")
    serve_task = asyncio.create_task(server.serve(listener))
    try:
        yield server, listener, serve_task
    finally:
        listener.close()
        await asyncio.wait_for(serve_task, timeout=5)
