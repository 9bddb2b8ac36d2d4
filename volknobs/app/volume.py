"""Uniform volume API over wpctl's asymmetric capabilities.

``wpctl get-volume`` does not accept ``--pid``, so absolute reads and
writes only work for the default sink. Process sinks support mute
toggling and relative (blind) increments; callers show a generic
indicator for them instead of a number.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from volknobs.audio.wpctl import (
    clamp_percent,
    format_fraction,
    format_increment,
    parse_mute,
    parse_volume,
)
from volknobs.domain.exceptions import UnsupportedOperationError
from volknobs.domain.model import ProcessSink, SinkHandle

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from volknobs.audio.wpctl import WpctlClient

__all__ = ["VolumeControl"]


class VolumeControl:
    """Volume and mute operations on a resolved sink handle.

    | Operation        | DefaultSink                 | ProcessSink              |
    |------------------|-----------------------------|--------------------------|
    | get_volume       | parsed, clamped to 0..100   | UnsupportedOperationError|
    | set_volume       | absolute two-decimal write  | UnsupportedOperationError|
    | get_mute_state   | mute marker in output       | UnsupportedOperationError|
    | toggle_mute      | set-mute <default> toggle   | set-mute --pid N toggle  |
    | adjust_volume    | read, clamp, set            | set-volume --pid N D%+/- |
    """

    def __init__(self, wpctl: WpctlClient, logger: FilteringBoundLogger | None = None) -> None:
        self.wpctl = wpctl
        self._log = logger or structlog.get_logger(__name__)

    def _require_default(self, handle: SinkHandle, operation: str) -> None:
        if isinstance(handle, ProcessSink):
            self._log.error("volume.unsupported", operation=operation, pid=handle.pid)
            raise UnsupportedOperationError.for_process_sink(operation, handle.pid)

    async def get_volume(self, handle: SinkHandle) -> int:
        self._require_default(handle, "get volume")
        command, output = await self.wpctl.get_volume()
        volume = parse_volume(output, command)
        self._log.debug("volume.get", sink=str(handle), volume=volume)
        return volume

    async def set_volume(self, handle: SinkHandle, percent: float) -> None:
        self._require_default(handle, "set absolute volume")
        value = format_fraction(percent)
        self._log.debug("volume.set", sink=str(handle), percent=clamp_percent(percent), value=value)
        await self.wpctl.set_volume(handle, value)

    async def get_mute_state(self, handle: SinkHandle) -> bool:
        self._require_default(handle, "get mute state")
        command, output = await self.wpctl.get_volume()
        muted = parse_mute(output, command)
        self._log.debug("volume.mute_state", sink=str(handle), muted=muted)
        return muted

    async def toggle_mute(self, handle: SinkHandle) -> None:
        self._log.debug("volume.toggle_mute", sink=str(handle))
        await self.wpctl.toggle_mute(handle)

    async def adjust_volume(self, handle: SinkHandle, delta_pct: float) -> None:
        """Change volume by a signed percentage.

        Default sink: read-modify-write clamped to 0..100. Process sink:
        one relative increment; the resulting level is never known.
        """
        if isinstance(handle, ProcessSink):
            increment = format_increment(delta_pct)
            self._log.debug("volume.adjust", sink=str(handle), delta=delta_pct, increment=increment)
            await self.wpctl.set_volume(handle, increment)
            return

        current = await self.get_volume(handle)
        target = clamp_percent(current + delta_pct)
        self._log.debug("volume.adjust", sink=str(handle), delta=delta_pct, current=current, target=target)
        await self.set_volume(handle, target)
