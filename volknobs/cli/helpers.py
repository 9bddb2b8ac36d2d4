"""Shared CLI state and event dispatch helpers."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer

from volknobs.config.schema import AppConfig
from volknobs.domain.constants import ActionKind, ControlMode, EventKind


@dataclass
class CliState:
    """Per-invocation state stored on the Typer context."""
    config: AppConfig
    config_path: Path | None = None


def get_state(ctx: typer.Context) -> CliState:
    state = ctx.find_root().obj
    if not isinstance(state, CliState):
        state = CliState(config=AppConfig())
        ctx.find_root().obj = state
    return state


def build_settings(
    mode: ControlMode,
    app_name: str | None,
    *,
    step: int | None = None,
    target: int | None = None,
) -> dict[str, Any]:
    """Build a host-style settings payload from CLI flags."""
    settings: dict[str, Any] = {"controlMode": mode.value}
    if app_name:
        settings["appName"] = app_name
    if step is not None:
        settings["stepSize"] = step
    if target is not None:
        settings["targetVolume"] = target
    return settings


def dispatch_event(
    state: CliState,
    action: ActionKind,
    event: EventKind,
    settings: dict[str, Any],
    *,
    ticks: int = 0,
    use_daemon: bool = False,
) -> tuple[str, bool]:
    """Run one event and return ``(title, via_daemon)``.

    With ``use_daemon`` the event goes to a running daemon so its cache is
    reused; otherwise (or when no daemon can be reached) it is handled in-process.
    """
    if use_daemon:
        from volknobs.server.client import send_event_via_daemon

        response = send_event_via_daemon(
            action.value,
            event.value,
            settings,
            ticks=ticks,
            socket_path=state.config.socket_path,
            pid_file=state.config.pid_file,
        )
        if response is not None:
            return response.title, True

    from volknobs.app import build_controller

    controller = build_controller(state.config)
    title = asyncio.run(controller.handle_event(action, event, settings, ticks=ticks))
    return title, False
