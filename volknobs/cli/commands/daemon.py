"""`volknobs daemon ...`: run and inspect the event daemon."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from volknobs.cli.helpers import CliState, get_state
from volknobs.config.schema import AppConfig
from volknobs.server import (
    DaemonClient,
    DaemonError,
    get_daemon_pid,
    is_daemon_running,
    run_daemon,
)

console = Console()

DAEMON_LOG_FILE = Path("/tmp/volknobs-daemon.log")
POLL_INTERVAL_S = 0.25
START_TIMEOUT_S = 10.0
STOP_TIMEOUT_S = 5.0


def _running(config: AppConfig) -> bool:
    return is_daemon_running(config.socket_path, config.pid_file)


def _wait_until(predicate, timeout_s: float) -> bool:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(POLL_INTERVAL_S)
    return predicate()


def _spawn_background(state: CliState) -> None:
    """Re-run this CLI detached with ``daemon start --foreground``."""
    argv = [sys.executable, "-m", "volknobs.cli.main"]
    if state.config_path is not None:
        argv += ["--config", str(state.config_path)]
    argv += ["--log-level", state.config.log_level, "daemon", "start", "--foreground"]

    with open(os.devnull, "rb") as stdin, DAEMON_LOG_FILE.open("ab") as log:
        subprocess.Popen(argv, stdin=stdin, stdout=log, stderr=log, start_new_session=True)


def _terminate(config: AppConfig, pid: int | None) -> None:
    """SIGTERM fallback when the daemon ignores the shutdown request."""
    if pid is None:
        console.print("[red]No PID recorded; remove the socket and PID file by hand[/red]")
        raise typer.Exit(1)
    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        console.print(f"[yellow]PID {pid} already gone; removing stale files[/yellow]")
    except PermissionError as e:
        console.print(f"[red]Cannot signal PID {pid}: {e}[/red]")
        raise typer.Exit(1) from e
    config.socket_path.unlink(missing_ok=True)
    config.pid_file.unlink(missing_ok=True)


def register_daemon(app: typer.Typer) -> None:
    """Register the `daemon` sub-application."""

    daemon_app = typer.Typer(
        help="Run the event daemon that keeps application pids cached between events",
        no_args_is_help=True,
    )

    @daemon_app.command("start")
    def start_cmd(
        ctx: typer.Context,
        foreground: bool = typer.Option(
            False,
            "--foreground", "-f",
            help="Serve in this process instead of detaching",
        ),
    ) -> None:
        """Start the daemon (detached unless --foreground)."""
        state = get_state(ctx)
        config = state.config
        if _running(config):
            console.print(f"[yellow]Already running as PID {get_daemon_pid(config.pid_file)}[/yellow]")
            return

        if foreground:
            console.print(f"Serving on {config.socket_path} (Ctrl+C to stop)")
            run_daemon(config)
            return

        _spawn_background(state)
        if not _wait_until(lambda: _running(config), START_TIMEOUT_S):
            console.print(f"[red]✗ Daemon did not come up within {START_TIMEOUT_S:g}s[/red]")
            console.print(f"See {DAEMON_LOG_FILE}")
            raise typer.Exit(1)

        console.print(f"[green]✓ Daemon running as PID {get_daemon_pid(config.pid_file)}[/green]")
        console.print(f"  socket: {config.socket_path}")
        console.print(f"  log:    {DAEMON_LOG_FILE}")

    @daemon_app.command("stop")
    def stop_cmd(ctx: typer.Context) -> None:
        """Ask the daemon to shut down, then SIGTERM it if needed."""
        config = get_state(ctx).config
        if not _running(config):
            console.print("Daemon is not running")
            return

        pid = get_daemon_pid(config.pid_file)
        try:
            DaemonClient(config.socket_path).shutdown()
        except DaemonError as e:
            console.print(f"[yellow]Shutdown request failed: {e}[/yellow]")
        else:
            if _wait_until(lambda: not _running(config), STOP_TIMEOUT_S):
                console.print(f"[green]✓ Daemon stopped (PID {pid})[/green]")
                return

        _terminate(config, pid)
        console.print(f"[green]✓ Sent SIGTERM to PID {pid}[/green]")

    @daemon_app.command("status")
    def status_cmd(ctx: typer.Context) -> None:
        """Show uptime, event count and cached applications."""
        config = get_state(ctx).config
        if not _running(config):
            console.print("[yellow]Daemon is not running[/yellow]")
            return

        pid = get_daemon_pid(config.pid_file)
        try:
            status = DaemonClient(config.socket_path).status()
        except DaemonError as e:
            console.print(f"[yellow]PID {pid} is alive but not answering: {e}[/yellow]")
            raise typer.Exit(1) from e

        summary = Table.grid(padding=(0, 2))
        summary.add_row("PID", str(pid))
        summary.add_row("Socket", str(config.socket_path))
        summary.add_row("Uptime", f"{status.uptime_seconds:.1f}s")
        summary.add_row("Events", str(status.events_handled))
        console.print("[green]Daemon is running[/green]")
        console.print(summary)

        if not status.cached_apps:
            console.print("No cached applications")
            return
        cached = Table(title="Cached applications")
        cached.add_column("Application")
        cached.add_column("PID", justify="right")
        for name, cached_pid in sorted(status.cached_apps.items()):
            cached.add_row(name, str(cached_pid))
        console.print(cached)

    @daemon_app.command("clear-cache")
    def clear_cache_cmd(ctx: typer.Context) -> None:
        """Forget every cached application pid."""
        config = get_state(ctx).config
        if not _running(config):
            console.print("Daemon is not running")
            return
        try:
            cleared = DaemonClient(config.socket_path).clear_cache().cleared
        except DaemonError as e:
            console.print(f"[red]Could not clear the cache: {e}[/red]")
            raise typer.Exit(1) from e
        console.print(f"[green]✓ Forgot {cleared} cached application(s)[/green]")

    @daemon_app.command("logs")
    def logs_cmd(
        lines: int = typer.Option(50, "--lines", "-n", help="How many trailing lines to print"),
    ) -> None:
        """Print the tail of the background daemon's log."""
        if not DAEMON_LOG_FILE.exists():
            console.print(f"No log at {DAEMON_LOG_FILE}")
            return
        for line in DAEMON_LOG_FILE.read_text(errors="replace").splitlines()[-lines:]:
            console.print(line, markup=False, highlight=False)

    app.add_typer(daemon_app, name="daemon")
