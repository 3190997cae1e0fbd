"""Command file loading.

The command file lists the commands a server may run. It is YAML, and
since JSON is valid YAML, JSON files load too::

    - name: uptime
      command: uptime
    - name: disk-usage
      command: df -h | sort -k5 -r
      params: [mount]

Keys are matched case-insensitively, so ``Name``/``Command``/``Params``
work as well. A mapping with a top-level ``commands`` list is also
accepted.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from rexec.domain.models import CommandSpec
from rexec.errors import ConfigurationError

logger = logging.getLogger(__name__)


def load_commands(path: Path | str, reject_duplicates: bool = False) -> list[CommandSpec]:
    """Load command definitions from ``path``, keeping file order.

    Duplicate names are kept (the first one wins at lookup) and logged,
    unless ``reject_duplicates`` is set.

    Raises:
        ConfigurationError: If the file is missing, unparsable, or holds
            invalid entries.
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot open command file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse command file {path}: {e}") from e

    commands = parse_commands(data, source=str(path))
    _check_duplicates(commands, reject_duplicates, source=str(path))
    logger.debug("Loaded %d commands from %s", len(commands), path)
    return commands


def parse_commands(data: Any, source: str = "<data>") -> list[CommandSpec]:
    """Build CommandSpec entries from already-parsed YAML/JSON data."""
    if data is None:
        return []
    if isinstance(data, dict):
        data = _lower_keys(data).get("commands")
        if data is None:
            return []
    if not isinstance(data, list):
        raise ConfigurationError(f"{source}: expected a list of commands")

    commands: list[CommandSpec] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"{source}: command #{index} is not a mapping")
        try:
            commands.append(CommandSpec.model_validate(_lower_keys(entry)))
        except ValidationError as e:
            raise ConfigurationError(f"{source}: invalid command #{index}: {e}") from e
    return commands


def _lower_keys(entry: dict) -> dict:
    return {str(k).lower(): v for k, v in entry.items()}


def _check_duplicates(
    commands: list[CommandSpec], reject: bool, source: str
) -> None:
    counts = Counter(c.name for c in commands)
    duplicates = sorted(name for name, n in counts.items() if n > 1)
    if not duplicates:
        return
    if reject:
        raise ConfigurationError(
            f"{source}: duplicate command names: {', '.join(duplicates)}"
        )
    logger.warning(
        "Duplicate command names in %s (first definition wins): %s",
        source, ", ".join(duplicates),
    )
