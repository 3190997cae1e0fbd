"""Tests for the shell executor (runs real `sh` children)."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from rexec.errors import ExecutionLaunchFailure
from rexec.server.executor import ShellExecutor


@pytest.fixture
def executor() -> ShellExecutor:
    return ShellExecutor()


class TestShellExecutor:
    def test_default_shell(self, executor: ShellExecutor) -> None:
        assert executor.shell == "sh"

    @pytest.mark.asyncio
    async def test_echo(self, executor: ShellExecutor) -> None:
        result = await executor.execute("echo hello")
        assert result.exit_code == 0
        assert result.stdout == "hello\n"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_not_an_error(self, executor: ShellExecutor) -> None:
        result = await executor.execute("exit 7")
        assert result.exit_code == 7
        assert result.stdout == ""
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_captures_stderr_separately(self, executor: ShellExecutor) -> None:
        result = await executor.execute("echo out; echo err >&2; exit 3")
        assert result.exit_code == 3
        assert result.stdout == "out\n"
        assert result.stderr == "err\n"

    @pytest.mark.asyncio
    async def test_shell_features(self, executor: ShellExecutor) -> None:
        result = await executor.execute("printf 'b\\na\\n' | sort")
        assert result.stdout == "a\nb\n"

    @pytest.mark.asyncio
    async def test_stdin_is_empty(self, executor: ShellExecutor) -> None:
        result = await executor.execute("cat")
        assert result.exit_code == 0
        assert result.stdout == ""

    @pytest.mark.asyncio
    async def test_large_output_is_not_truncated(self, executor: ShellExecutor) -> None:
        result = await executor.execute("head -c 300000 /dev/zero | tr '\\0' x")
        assert len(result.stdout) == 300000

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self, executor: ShellExecutor) -> None:
        result = await executor.execute("printf 'a\\377b'")
        assert result.stdout == "a�b"

    @pytest.mark.asyncio
    async def test_command_not_found_is_exit_status(self, executor: ShellExecutor) -> None:
        result = await executor.execute("definitely-not-a-real-command-xyz")
        assert result.exit_code == 127
        assert result.stderr != ""

    @pytest.mark.asyncio
    async def test_missing_shell_raises_launch_failure(self) -> None:
        executor = ShellExecutor(shell="/nonexistent/shell")
        with pytest.raises(ExecutionLaunchFailure, match="Failed to start") as exc_info:
            await executor.execute("echo hi")
        assert exc_info.value.command_line == "echo hi"

    @pytest.mark.asyncio
    async def test_killed_by_signal_raises_launch_failure(
        self, executor: ShellExecutor
    ) -> None:
        with pytest.raises(ExecutionLaunchFailure, match="SIGKILL"):
            await executor.execute("kill -9 $$")

    @pytest.mark.asyncio
    async def test_os_error_on_spawn(self, executor: ShellExecutor) -> None:
        with patch(
            "asyncio.create_subprocess_exec", side_effect=PermissionError("denied")
        ):
            with pytest.raises(ExecutionLaunchFailure, match="denied"):
                await executor.execute("true")

    @pytest.mark.asyncio
    async def test_concurrent_executions_do_not_mix_output(
        self, executor: ShellExecutor
    ) -> None:
        results = await asyncio.gather(
            executor.execute("sleep 0.2; echo first"),
            executor.execute("echo second; echo oops >&2; exit 2"),
        )
        assert results[0].stdout == "first\n"
        assert results[0].exit_code == 0
        assert results[1].stdout == "second\n"
        assert results[1].stderr == "oops\n"
        assert results[1].exit_code == 2
