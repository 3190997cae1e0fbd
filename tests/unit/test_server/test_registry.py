"""Tests for the command registry."""

from __future__ import annotations

from rexec.domain.models import CommandSpec
from rexec.server.registry import CommandRegistry


class TestCommandRegistry:
    def test_lookup_found(self, registry: CommandRegistry) -> None:
        spec = registry.lookup("hello")
        assert spec is not None
        assert spec.command_line == "echo hello"

    def test_lookup_missing(self, registry: CommandRegistry) -> None:
        assert registry.lookup("nope") is None

    def test_lookup_is_case_sensitive(self, registry: CommandRegistry) -> None:
        assert registry.lookup("Hello") is None
        assert "HELLO" not in registry

    def test_first_duplicate_wins(self) -> None:
        registry = CommandRegistry([
            CommandSpec(name="dup", command_line="echo first"),
            CommandSpec(name="dup", command_line="echo second"),
        ])
        spec = registry.lookup("dup")
        assert spec is not None
        assert spec.command_line == "echo first"
        assert len(registry) == 2

    def test_names_keep_order(self, registry: CommandRegistry) -> None:
        assert registry.names == ["hello", "fail", "both", "pipe", "greet"]

    def test_contains_and_iter(self, registry: CommandRegistry) -> None:
        assert "fail" in registry
        assert 42 not in registry
        assert [c.name for c in registry] == registry.names

    def test_source_list_mutation_does_not_leak(self) -> None:
        commands = [CommandSpec(name="a", command_line="true")]
        registry = CommandRegistry(commands)
        commands.append(CommandSpec(name="b", command_line="false"))
        assert registry.lookup("b") is None

    def test_empty_registry(self) -> None:
        registry = CommandRegistry([])
        assert len(registry) == 0
        assert registry.lookup("anything") is None
