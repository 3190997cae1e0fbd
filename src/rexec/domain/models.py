"""Core domain models for the rexec system.

These models represent the data flowing through the system: the command
definitions an operator registers with the server, the requests clients
send, and the responses the server returns after running a command.

Request and Response serialize with the wire field names
(``Command``/``Args`` and ``ExitCode``/``Stdout``/``Stderr``) but are built
and read in Python through snake_case attributes.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Registry Models
# ---------------------------------------------------------------------------


class CommandSpec(BaseModel):
    """A command the server is allowed to execute.

    ``name`` is what a client sends in ``Request.command``. ``command_line``
    is handed to the shell verbatim, so it may contain pipes and
    redirection. ``param_names`` lists the parameter names the command
    declares; they are metadata only and never interpolated.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        min_length=1,
        description="Name clients use to request this command (case-sensitive)",
    )
    command_line: str = Field(
        min_length=1,
        validation_alias=AliasChoices("command_line", "command"),
        description="Shell command line to execute",
    )
    param_names: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("param_names", "params"),
        description="Declared parameter names (not enforced)",
    )


# ---------------------------------------------------------------------------
# Wire Models
# ---------------------------------------------------------------------------


class Request(BaseModel):
    """Sent by a client to ask the server to run a registered command."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    command: str = Field(alias="Command", description="Registered command name")
    args: dict[str, str] = Field(
        default_factory=dict,
        alias="Args",
        description="Named arguments (accepted, not substituted)",
    )


class Response(BaseModel):
    """Returned by the server with the outcome of running a command."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    exit_code: int = Field(alias="ExitCode", description="Process exit status")
    stdout: str = Field(default="", alias="Stdout")
    stderr: str = Field(default="", alias="Stderr")


# ---------------------------------------------------------------------------
# Execution Models
# ---------------------------------------------------------------------------


class ExecutionResult(BaseModel):
    """Outcome of a child process that exited normally."""

    model_config = ConfigDict(frozen=True)

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    def to_response(self) -> Response:
        return Response(
            exit_code=self.exit_code, stdout=self.stdout, stderr=self.stderr
        )
