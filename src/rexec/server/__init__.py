"""Command server for rexec.

Holds the registry of commands an operator allows, accepts client
connections, and runs the requested command for each call.
"""

from rexec.server.dispatcher import Dispatcher
from rexec.server.executor import ShellExecutor
from rexec.server.registry import CommandRegistry
from rexec.server.server import CommandServer

__all__ = ["CommandRegistry", "CommandServer", "Dispatcher", "ShellExecutor"]
