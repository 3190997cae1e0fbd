"""Command-line interface for rexec.

Provides the main entry point for running a command server or calling
a command on one.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rexec.errors import ConfigurationError, RexecError

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="rexec",
        description="Run operator-registered shell commands remotely",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML settings file (default: config/rexec.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the command server")
    serve_parser.add_argument(
        "commands_file", type=Path, nargs="?", default=None,
        help="YAML/JSON file listing the commands to serve "
             "(default: server.commands_file from settings)",
    )
    serve_parser.add_argument(
        "--addr", type=str, default=None,
        help="Address to listen on, host:port (default: server.address)",
    )

    call_parser = subparsers.add_parser("call", help="Run a command on a server")
    call_parser.add_argument("name", type=str, help="Registered command name")
    call_parser.add_argument(
        "--addr", type=str, default=None,
        help="Server address, host:port (default: client.address)",
    )
    call_parser.add_argument(
        "--arg", dest="args", action="append", default=[], metavar="KEY=VALUE",
        help="Named argument to send with the request (repeatable)",
    )

    return parser.parse_args(argv)


def _parse_key_values(pairs: list[str]) -> dict[str, str]:
    result: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Invalid argument {pair!r}: expected KEY=VALUE")
        result[key] = value
    return result


def _serve(settings, args) -> int:
    """Load the command registry and serve until interrupted."""
    from rexec.config.commands import load_commands
    from rexec.server.executor import ShellExecutor
    from rexec.server.server import CommandServer

    commands_file = args.commands_file or settings.server.commands_file
    if commands_file is None:
        print("Server mode requires a command file", file=sys.stderr)
        return 1

    commands = load_commands(
        commands_file,
        reject_duplicates=settings.server.reject_duplicate_commands,
    )
    for command in commands:
        logger.info("Registered command: %s", command.name)

    server = CommandServer(
        commands, executor=ShellExecutor(shell=settings.server.shell)
    )
    address = args.addr or settings.server.address
    try:
        asyncio.run(server.listen_and_serve(address))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


def _call(settings, args) -> int:
    """Call a remote command and mirror its output and exit status."""
    from rexec.client import call

    response = asyncio.run(
        call(
            args.addr or settings.client.address,
            args.name,
            _parse_key_values(args.args),
            connect_timeout=settings.client.connect_timeout,
        )
    )
    sys.stdout.write(response.stdout)
    sys.stdout.flush()
    sys.stderr.write(response.stderr)
    sys.stderr.flush()
    return response.exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the rexec CLI. Returns the process exit status."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return 0

    from rexec.config.settings import load_settings
    from rexec.utils.logging import setup_logging

    try:
        settings = load_settings(args.config)

        if args.verbose:
            settings.logging.level = "DEBUG"

        setup_logging(settings.logging)

        if args.command == "serve":
            return _serve(settings, args)
        return _call(settings, args)
    except (RexecError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
