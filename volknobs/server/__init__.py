"""Event daemon that keeps the resolution cache alive between events.

Usage:
    volknobs daemon start    # Start the daemon
    volknobs daemon stop     # Stop it
    volknobs daemon status   # Uptime, events handled, cached applications

    # Route CLI events through the daemon
    volknobs rotate --ticks 2 --use-daemon

Programmatic usage:
    from volknobs.server import DaemonClient, is_daemon_running

    if is_daemon_running():
        title = DaemonClient().send_event("mute", "press").title
"""

from volknobs.server.client import (
    DaemonClient,
    DaemonError,
    DaemonUnavailableError,
    get_daemon_pid,
    is_daemon_running,
    send_event_via_daemon,
)
from volknobs.server.daemon import KnobDaemon, run_daemon
from volknobs.server.protocol import DEFAULT_PID_FILE, DEFAULT_SOCKET_PATH

__all__ = [
    "DEFAULT_PID_FILE",
    "DEFAULT_SOCKET_PATH",
    "DaemonClient",
    "DaemonError",
    "DaemonUnavailableError",
    "KnobDaemon",
    "get_daemon_pid",
    "is_daemon_running",
    "run_daemon",
    "send_event_via_daemon",
]
