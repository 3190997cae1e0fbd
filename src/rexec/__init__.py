"""rexec -- Remote execution of operator-registered shell commands.

A server holds a fixed registry of named shell commands. Clients connect
over TCP, name one of those commands, and get back its exit code,
standard output and standard error. Clients can never run anything the
operator did not register.
"""

__version__ = "0.1.0"
