"""Per-request dispatch: resolve a command name and run it."""

from __future__ import annotations

import logging

from rexec.domain.models import Request, Response
from rexec.errors import CommandNotSupported
from rexec.server.executor import ShellExecutor
from rexec.server.registry import CommandRegistry

logger = logging.getLogger(__name__)


class Dispatcher:
    """Resolves requests against a registry and executes the match.

    Holds no per-request state; one instance serves every session.
    ``Request.args`` is accepted but never substituted into the command
    line.
    """

    def __init__(self, registry: CommandRegistry, executor: ShellExecutor) -> None:
        self._registry = registry
        self._executor = executor

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    async def dispatch(self, request: Request) -> Response:
        """Run the command named by ``request`` and return its outcome.

        Raises:
            CommandNotSupported: If the name is not registered. No process
                is started in that case.
            ExecutionLaunchFailure: If the executor could not run the
                command or could not read its exit status.
        """
        command = self._registry.lookup(request.command)
        if command is None:
            raise CommandNotSupported(request.command)

        logger.debug("Executing command: %s", command.command_line)
        result = await self._executor.execute(command.command_line)

        logger.debug("Exit code: %d", result.exit_code)
        logger.debug("Stdout: %s", result.stdout)
        logger.debug("Stderr: %s", result.stderr)
        return result.to_response()
