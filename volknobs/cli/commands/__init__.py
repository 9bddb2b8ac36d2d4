"""Composable CLI command registrations for Typer."""

from .daemon import register_daemon
from .events import register_events

__all__ = [
    "register_daemon",
    "register_events",
]
