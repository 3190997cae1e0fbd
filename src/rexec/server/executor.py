"""Shell command executor.

Runs one command line through a shell as a child process, waits for it
to exit, and returns everything it wrote to stdout and stderr.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from rexec.domain.models import ExecutionResult
from rexec.errors import ExecutionLaunchFailure

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "sh"


class ShellExecutor:
    """Runs command lines as ``<shell> -c <command_line>``.

    Output is buffered in memory in full; there is no size cap and no
    timeout. Only the awaiting task is suspended while the child runs, so
    other sessions keep being served.

    Usage::

        executor = ShellExecutor()
        result = await executor.execute("echo hello")
        assert result.stdout == "hello\\n"
    """

    def __init__(self, shell: str = DEFAULT_SHELL) -> None:
        self._shell = shell

    @property
    def shell(self) -> str:
        return self._shell

    async def execute(self, command_line: str) -> ExecutionResult:
        """Run ``command_line`` to completion.

        A non-zero exit status is a normal result, not an error.

        Raises:
            ExecutionLaunchFailure: If the shell cannot be started, or the
                child was killed by a signal and so has no exit status.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self._shell,
                "-c",
                command_line,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionLaunchFailure(
                f"Failed to start {self._shell}: {e}", command_line=command_line
            ) from e

        stdout, stderr = await process.communicate()
        returncode = process.returncode

        if returncode is None or returncode < 0:
            raise ExecutionLaunchFailure(
                _describe_abnormal_exit(returncode), command_line=command_line
            )

        return ExecutionResult(
            exit_code=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


def _describe_abnormal_exit(returncode: int | None) -> str:
    if returncode is None:
        return "process exited without a status"
    try:
        name = signal.Signals(-returncode).name
    except ValueError:
        name = str(-returncode)
    return f"process terminated by signal {name}"
