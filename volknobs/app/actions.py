"""Host-facing actions: device events in, display strings out.

Each action maps a host event (appear, rotate, press, set-target) onto
one resolution plus one or more facade calls and renders a short title
for the device. Errors never escape a handler; they become
``"Error: <message>"`` titles. A later event re-resolves from scratch,
which heals stale targets (e.g. a restarted application).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

import structlog

from volknobs.config.schema import ActionSettings
from volknobs.domain.constants import ActionKind, EventKind
from volknobs.domain.exceptions import (
    ConfigurationError,
    UnsupportedOperationError,
    VolknobsError,
)
from volknobs.domain.model import ProcessSink, SinkHandle

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from volknobs.app.resolver import TargetResolver
    from volknobs.app.volume import VolumeControl

__all__ = [
    "KnobController",
    "SetVolume",
    "VolumeAction",
    "VolumeDial",
    "VolumeMute",
]

Payload = Mapping[str, Any] | None

MUTED_ICON = "🔇"
SPEAKER_ICON = "🔊"
APP_TITLE = "App"
NOT_AVAILABLE_TITLE = "N/A"


def error_title(error: VolknobsError) -> str:
    return f"Error: {error.message}"


class VolumeAction:
    """Base for host actions.

    Handlers of one action instance run one at a time; a second event for
    the same action waits until the in-flight one finishes.
    """

    kind: ActionKind

    def __init__(
        self,
        resolver: TargetResolver,
        volume: VolumeControl,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.resolver = resolver
        self.volume = volume
        self._log = (logger or structlog.get_logger(__name__)).bind(action=self.kind.value)
        self._lock = asyncio.Lock()

    async def _handle(
        self,
        event: EventKind,
        payload: Payload,
        operation: Callable[[ActionSettings], Awaitable[str]],
    ) -> str:
        async with self._lock:
            try:
                settings = ActionSettings.from_payload(payload)
                self._log.debug(
                    "action.event",
                    event_kind=event.value,
                    mode=settings.control_mode.value,
                    app_name=settings.app_name,
                )
                title = await operation(settings)
            except VolknobsError as exc:
                self._log.error("action.failed", event_kind=event.value, error=exc.message)
                return error_title(exc)
            except Exception as exc:
                self._log.exception("action.crashed", event_kind=event.value)
                return error_title(VolknobsError(str(exc) or type(exc).__name__, cause=exc))
            self._log.debug("action.title", event_kind=event.value, title=title)
            return title

    async def _resolve(self, settings: ActionSettings) -> SinkHandle:
        return await self.resolver.resolve(settings.control_mode, settings.app_name)

    async def render(self, handle: SinkHandle) -> str:
        raise NotImplementedError

    async def _appear(self, settings: ActionSettings) -> str:
        return await self.render(await self._resolve(settings))

    async def on_target_appear(self, payload: Payload) -> str:
        """Title shown when the action becomes visible."""
        return await self._handle(EventKind.APPEAR, payload, self._appear)


class VolumeDial(VolumeAction):
    """Dial: rotate adjusts volume, press toggles mute.

    Titles: ``37%``, ``🔇 37%`` when muted, ``App`` for application targets.
    """

    kind = ActionKind.DIAL

    async def render(self, handle: SinkHandle) -> str:
        if isinstance(handle, ProcessSink):
            return APP_TITLE
        volume = await self.volume.get_volume(handle)
        muted = await self.volume.get_mute_state(handle)
        return f"{MUTED_ICON} {volume}%" if muted else f"{volume}%"

    async def on_rotate(self, payload: Payload, ticks: int) -> str:
        async def rotate(settings: ActionSettings) -> str:
            handle = await self._resolve(settings)
            delta = ticks * settings.step_size_pct
            await self.volume.adjust_volume(handle, delta)
            return await self.render(handle)

        return await self._handle(EventKind.ROTATE, payload, rotate)

    async def on_press(self, payload: Payload) -> str:
        async def press(settings: ActionSettings) -> str:
            handle = await self._resolve(settings)
            await self.volume.toggle_mute(handle)
            return await self.render(handle)

        return await self._handle(EventKind.PRESS, payload, press)


class VolumeMute(VolumeAction):
    """Key: press toggles mute.

    Titles: ``🔊 37%``, ``🔇 MUTED``, ``🔇 App`` for application targets.
    """

    kind = ActionKind.MUTE

    async def render(self, handle: SinkHandle) -> str:
        if isinstance(handle, ProcessSink):
            return f"{MUTED_ICON} {APP_TITLE}"
        muted = await self.volume.get_mute_state(handle)
        if muted:
            return f"{MUTED_ICON} MUTED"
        volume = await self.volume.get_volume(handle)
        return f"{SPEAKER_ICON} {volume}%"

    async def on_press(self, payload: Payload) -> str:
        async def press(settings: ActionSettings) -> str:
            handle = await self._resolve(settings)
            await self.volume.toggle_mute(handle)
            return await self.render(handle)

        return await self._handle(EventKind.PRESS, payload, press)


class SetVolume(VolumeAction):
    """Key: press sets the configured absolute volume.

    Application targets cannot take an absolute level and show ``N/A``.
    """

    kind = ActionKind.SET_VOLUME

    async def render(self, handle: SinkHandle) -> str:
        if isinstance(handle, ProcessSink):
            return APP_TITLE
        return f"{await self.volume.get_volume(handle)}%"

    async def on_set_target(self, payload: Payload) -> str:
        async def set_target(settings: ActionSettings) -> str:
            handle = await self._resolve(settings)
            try:
                await self.volume.set_volume(handle, settings.target_volume_pct)
            except UnsupportedOperationError:
                return NOT_AVAILABLE_TITLE
            return await self.render(handle)

        return await self._handle(EventKind.SET_TARGET, payload, set_target)


class KnobController:
    """Routes (action, event) pairs from a host to the matching handler.

    One controller owns one resolver, so all actions share the process-wide
    resolution cache.
    """

    def __init__(
        self,
        resolver: TargetResolver,
        volume: VolumeControl,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.resolver = resolver
        self.volume = volume
        self._log = logger or structlog.get_logger(__name__)
        self.dial = VolumeDial(resolver, volume, logger)
        self.mute = VolumeMute(resolver, volume, logger)
        self.set_volume = SetVolume(resolver, volume, logger)
        self.actions: dict[ActionKind, VolumeAction] = {
            ActionKind.DIAL: self.dial,
            ActionKind.MUTE: self.mute,
            ActionKind.SET_VOLUME: self.set_volume,
        }

    async def handle_event(
        self,
        action: ActionKind | str,
        event: EventKind | str,
        settings: Payload = None,
        ticks: int = 0,
    ) -> str:
        try:
            action_kind = ActionKind(action)
            event_kind = EventKind(event)
        except ValueError as exc:
            return error_title(ConfigurationError(str(exc), cause=exc))

        handler = self.actions[action_kind]
        if event_kind is EventKind.APPEAR:
            return await handler.on_target_appear(settings)
        if event_kind is EventKind.ROTATE and isinstance(handler, VolumeDial):
            return await handler.on_rotate(settings, ticks)
        if event_kind is EventKind.PRESS and isinstance(handler, (VolumeDial, VolumeMute)):
            return await handler.on_press(settings)
        if event_kind is EventKind.SET_TARGET and isinstance(handler, SetVolume):
            return await handler.on_set_target(settings)

        self._log.warning("controller.unsupported_event", action=action_kind.value, event_kind=event_kind.value)
        return error_title(
            ConfigurationError(f"Action '{action_kind.value}' does not handle '{event_kind.value}' events")
        )
