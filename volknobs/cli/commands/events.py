"""CLI commands that emulate device events (appear, rotate, press, set)."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console

from volknobs.cli.helpers import build_settings, dispatch_event, get_state
from volknobs.domain.constants import (
    DEFAULT_STEP_SIZE_PCT,
    ActionKind,
    ControlMode,
    EventKind,
)
from volknobs.domain.exceptions import VolknobsError

console = Console()
err_console = Console(stderr=True)

ModeOption = Annotated[
    ControlMode,
    typer.Option("--mode", "-m", help="Control the system default sink or one application"),
]
AppOption = Annotated[
    str | None,
    typer.Option("--app", "-a", metavar="NAME", help="Application process name (application mode)"),
]
DaemonOption = Annotated[
    bool,
    typer.Option("--use-daemon", help="Send the event to a running daemon to reuse its cache"),
]


def _emit(title: str, via_daemon: bool) -> None:
    console.print(title, markup=False, highlight=False)
    if via_daemon:
        err_console.print("[dim](via daemon)[/dim]")


def register_events(app: typer.Typer) -> None:
    """Register the event commands."""

    @app.command("status", rich_help_panel="Events")
    def status_cmd(
        ctx: typer.Context,
        mode: ModeOption = ControlMode.SYSTEM,
        app_name: AppOption = None,
        use_daemon: DaemonOption = False,
    ) -> None:
        """Show the current volume title (dial appear event)."""
        state = get_state(ctx)
        title, via_daemon = dispatch_event(
            state,
            ActionKind.DIAL,
            EventKind.APPEAR,
            build_settings(mode, app_name),
            use_daemon=use_daemon,
        )
        _emit(title, via_daemon)

    @app.command("rotate", rich_help_panel="Events")
    def rotate_cmd(
        ctx: typer.Context,
        ticks: Annotated[int, typer.Option("--ticks", "-t", help="Signed dial ticks (negative lowers volume)")] = 1,
        step: Annotated[
            int,
            typer.Option("--step", "-s", min=1, max=10, help="Volume change per tick, in percent"),
        ] = DEFAULT_STEP_SIZE_PCT,
        mode: ModeOption = ControlMode.SYSTEM,
        app_name: AppOption = None,
        use_daemon: DaemonOption = False,
    ) -> None:
        """Adjust volume by TICKS x STEP percent (dial rotate event)."""
        state = get_state(ctx)
        title, via_daemon = dispatch_event(
            state,
            ActionKind.DIAL,
            EventKind.ROTATE,
            build_settings(mode, app_name, step=step),
            ticks=ticks,
            use_daemon=use_daemon,
        )
        _emit(title, via_daemon)

    @app.command("press", rich_help_panel="Events")
    def press_cmd(
        ctx: typer.Context,
        mode: ModeOption = ControlMode.SYSTEM,
        app_name: AppOption = None,
        use_daemon: DaemonOption = False,
    ) -> None:
        """Toggle mute and show the dial title (dial press event)."""
        state = get_state(ctx)
        title, via_daemon = dispatch_event(
            state,
            ActionKind.DIAL,
            EventKind.PRESS,
            build_settings(mode, app_name),
            use_daemon=use_daemon,
        )
        _emit(title, via_daemon)

    @app.command("mute", rich_help_panel="Events")
    def mute_cmd(
        ctx: typer.Context,
        mode: ModeOption = ControlMode.SYSTEM,
        app_name: AppOption = None,
        use_daemon: DaemonOption = False,
    ) -> None:
        """Toggle mute and show the mute-key title (key press event)."""
        state = get_state(ctx)
        title, via_daemon = dispatch_event(
            state,
            ActionKind.MUTE,
            EventKind.PRESS,
            build_settings(mode, app_name),
            use_daemon=use_daemon,
        )
        _emit(title, via_daemon)

    @app.command("set", rich_help_panel="Events")
    def set_cmd(
        ctx: typer.Context,
        percent: Annotated[int, typer.Argument(min=0, max=100, metavar="PERCENT", help="Target volume (0-100)")],
        mode: ModeOption = ControlMode.SYSTEM,
        app_name: AppOption = None,
        use_daemon: DaemonOption = False,
    ) -> None:
        """Set an absolute volume (set-volume key press)."""
        state = get_state(ctx)
        title, via_daemon = dispatch_event(
            state,
            ActionKind.SET_VOLUME,
            EventKind.SET_TARGET,
            build_settings(mode, app_name, target=percent),
            use_daemon=use_daemon,
        )
        _emit(title, via_daemon)

    @app.command("resolve", rich_help_panel="Diagnostics")
    def resolve_cmd(
        ctx: typer.Context,
        mode: ModeOption = ControlMode.SYSTEM,
        app_name: AppOption = None,
    ) -> None:
        """Resolve the target and print its sink handle."""
        from volknobs.app import build_controller

        state = get_state(ctx)
        controller = build_controller(state.config)
        try:
            handle = asyncio.run(controller.resolver.resolve(mode, app_name))
        except VolknobsError as exc:
            err_console.print(exc.format_rich())
            raise typer.Exit(code=1) from exc
        console.print(str(handle), markup=False, highlight=False)
