"""Read-only registry of the commands a server may execute."""

from __future__ import annotations

from typing import Iterable, Iterator

from rexec.domain.models import CommandSpec


class CommandRegistry:
    """Immutable lookup table of CommandSpec entries.

    Built once from configuration and never modified afterwards, so it can
    be shared by every session without locking. Entries keep their
    configured order; when two entries share a name the first one wins.
    """

    def __init__(self, commands: Iterable[CommandSpec]) -> None:
        self._commands: tuple[CommandSpec, ...] = tuple(commands)

    @property
    def names(self) -> list[str]:
        return [c.name for c in self._commands]

    def lookup(self, name: str) -> CommandSpec | None:
        """Return the first command registered under ``name``, or None."""
        for command in self._commands:
            if command.name == name:
                return command
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __iter__(self) -> Iterator[CommandSpec]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)
