"""Target resolution: control mode + application name -> sink handle.

Application names are mapped to the pid of the process that owns a live
audio client. Pids are reused by the OS and audio clients only exist
while audio flows, so every resolution re-checks the pid against a fresh
``wpctl status`` report, including cache hits.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from volknobs.audio.wpctl import find_matching_pid
from volknobs.domain.constants import ControlMode
from volknobs.domain.exceptions import (
    ApplicationNotFoundError,
    ApplicationNotPlayingError,
    ConfigurationError,
)
from volknobs.domain.model import DefaultSink, ProcessSink, SinkHandle

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from volknobs.audio.pidof import ProcessLookup
    from volknobs.audio.wpctl import WpctlClient

__all__ = ["ResolutionCache", "TargetResolver"]


class ResolutionCache:
    """Application name -> last known-good pid.

    Keys are exact, case-sensitive names as typed by the user. Entries have
    no TTL; the resolver evicts them when validation fails.
    """

    def __init__(self) -> None:
        self._pids: dict[str, int] = {}

    def get(self, app_name: str) -> int | None:
        return self._pids.get(app_name)

    def set(self, app_name: str, pid: int) -> None:
        self._pids[app_name] = pid

    def evict(self, app_name: str) -> None:
        self._pids.pop(app_name, None)

    def clear(self) -> None:
        self._pids.clear()

    def snapshot(self) -> dict[str, int]:
        return dict(self._pids)

    def __contains__(self, app_name: object) -> bool:
        return app_name in self._pids

    def __len__(self) -> int:
        return len(self._pids)


class TargetResolver:
    """Resolves control settings into a ``SinkHandle``.

    Args:
        wpctl: Client used to fetch the status report for validation
        processes: Process-table lookup used on cache misses
        cache: Shared resolution cache (one per hosting process)
        logger: Bound structlog logger

    Concurrent resolutions of the same application name are serialized
    with a per-name lock so the overwrite-or-evict decision never races.
    """

    def __init__(
        self,
        wpctl: WpctlClient,
        processes: ProcessLookup,
        cache: ResolutionCache | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.wpctl = wpctl
        self.processes = processes
        self.cache = cache if cache is not None else ResolutionCache()
        self._log = logger or structlog.get_logger(__name__)
        self._locks: dict[str, asyncio.Lock] = {}

    async def resolve(self, mode: ControlMode | str, app_name: str | None = None) -> SinkHandle:
        """Resolve ``mode``/``app_name`` to a sink handle.

        Raises:
            ConfigurationError: Application mode without an application name
            ApplicationNotFoundError: No process runs under ``app_name``
            ApplicationNotPlayingError: Processes exist but none owns an audio client
        """
        try:
            mode = ControlMode(mode)
        except ValueError as exc:
            raise ConfigurationError.invalid_settings([f"unknown control mode {mode!r}"], cause=exc) from exc
        self._log.debug("resolve.start", mode=mode.value, app_name=app_name)

        if mode is ControlMode.SYSTEM:
            return DefaultSink()

        if not app_name:
            raise ConfigurationError.missing_app_name()

        lock = self._locks.setdefault(app_name, asyncio.Lock())
        async with lock:
            return await self._resolve_application(app_name)

    async def _resolve_application(self, app_name: str) -> ProcessSink:
        cached_pid = self.cache.get(app_name)
        if cached_pid is not None:
            status = await self.wpctl.status()
            if find_matching_pid([cached_pid], status) is not None:
                self._log.debug("resolve.cache_hit", app_name=app_name, pid=cached_pid)
                return ProcessSink(cached_pid)
            self._log.info("resolve.cache_stale", app_name=app_name, pid=cached_pid)
            self.cache.evict(app_name)

        pids = await self.processes.find_pids(app_name)
        if not pids:
            self._log.warning("resolve.not_found", app_name=app_name)
            raise ApplicationNotFoundError.for_app(app_name)

        status = await self.wpctl.status()
        pid = find_matching_pid(pids, status)
        if pid is None:
            self._log.warning("resolve.not_playing", app_name=app_name, pids=pids)
            raise ApplicationNotPlayingError.for_app(app_name, pids)

        self.cache.set(app_name, pid)
        self._log.info("resolve.cached", app_name=app_name, pid=pid)
        return ProcessSink(pid)
