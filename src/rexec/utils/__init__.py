"""Shared helpers for rexec."""
