"""Configuration management for rexec.

Loads and validates YAML-based settings with Pydantic models, and loads
the command file that becomes the server's registry.
"""

from rexec.config.commands import load_commands, parse_commands
from rexec.config.settings import Settings, load_settings

__all__ = ["Settings", "load_commands", "load_settings", "parse_commands"]
