"""Long-running event daemon.

Holds one ``KnobController`` (and therefore one resolution cache) for
the life of the process, so application pids resolved by one event are
reused by the next. Communicates via Unix domain socket.
"""

from __future__ import annotations

import asyncio
import os
import signal
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from volknobs.server.protocol import (
    DEFAULT_PID_FILE,
    DEFAULT_SOCKET_PATH,
    ClearCacheRequest,
    ClearCacheResponse,
    EventRequest,
    EventResponse,
    Request,
    ShutdownRequest,
    ShutdownResponse,
    StatusRequest,
    StatusResponse,
    parse_request,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from volknobs.app.actions import KnobController
    from volknobs.app.resolver import ResolutionCache
    from volknobs.config.schema import AppConfig

ERROR_PREFIX = "Error: "


@dataclass
class DaemonState:
    """Counters reported by the status request."""

    start_time: float = 0.0
    events_handled: int = 0
    running: bool = True
    stopped: asyncio.Event = field(default_factory=asyncio.Event)


class KnobDaemon:
    """Serves host events over a Unix socket.

    Usage:
        daemon = KnobDaemon(build_controller(config))
        await daemon.start()  # returns after a shutdown request or stop()
    """

    def __init__(
        self,
        controller: KnobController,
        socket_path: Path = DEFAULT_SOCKET_PATH,
        pid_file: Path = DEFAULT_PID_FILE,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.controller = controller
        self.socket_path = socket_path
        self.pid_file = pid_file
        self.state = DaemonState()
        self._log = logger or structlog.get_logger(__name__)

    @property
    def cache(self) -> ResolutionCache:
        return self.controller.resolver.cache

    async def _dispatch(self, request: Request) -> EventResponse | StatusResponse | ClearCacheResponse | ShutdownResponse:
        if isinstance(request, EventRequest):
            title = await self.controller.handle_event(
                request.action,
                request.event,
                request.settings,
                ticks=request.ticks,
            )
            self.state.events_handled += 1
            if title.startswith(ERROR_PREFIX):
                return EventResponse(title=title, success=False, error=title.removeprefix(ERROR_PREFIX))
            return EventResponse(title=title)

        if isinstance(request, StatusRequest):
            return StatusResponse(
                running=self.state.running,
                uptime_seconds=time.time() - self.state.start_time if self.state.start_time else 0.0,
                events_handled=self.state.events_handled,
                cached_apps=self.cache.snapshot(),
            )

        if isinstance(request, ClearCacheRequest):
            cleared = len(self.cache)
            self.cache.clear()
            self._log.info("daemon.cache_cleared", cleared=cleared)
            return ClearCacheResponse(cleared=cleared)

        if isinstance(request, ShutdownRequest):
            self._log.info("daemon.shutdown_requested")
            self.stop()
            return ShutdownResponse()

        raise TypeError(f"Unhandled request: {request!r}")

    async def handle_line(self, line: str) -> str:
        """Answer one request line with one JSON response line."""
        try:
            request = parse_request(line)
        except ValueError as e:
            self._log.warning("daemon.bad_request", error=str(e))
            return EventResponse(title="", success=False, error=f"Invalid request: {e}").to_json()
        return (await self._dispatch(request)).to_json()

    async def _serve_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        try:
            raw = await reader.readline()
            if raw:
                line = raw.decode("utf-8").strip()
                self._log.debug("daemon.request", request=line[:100])
                writer.write((await self.handle_line(line) + "\n").encode("utf-8"))
                await writer.drain()
        except (ConnectionError, UnicodeDecodeError) as e:
            self._log.error("daemon.connection_error", error=str(e))
        finally:
            writer.close()
            await writer.wait_closed()

    def _cleanup_files(self) -> None:
        self.socket_path.unlink(missing_ok=True)
        self.pid_file.unlink(missing_ok=True)

    async def start(self) -> None:
        """Listen until ``stop()`` is called or a shutdown request arrives."""
        self.socket_path.unlink(missing_ok=True)
        server = await asyncio.start_unix_server(self._serve_connection, path=str(self.socket_path))
        os.chmod(self.socket_path, 0o600)
        self.pid_file.write_text(str(os.getpid()))

        self.state.start_time = time.time()
        self.state.running = True
        self.state.stopped.clear()
        self._log.info("daemon.started", socket=str(self.socket_path), pid=os.getpid())

        try:
            async with server:
                await self.state.stopped.wait()
        finally:
            self._cleanup_files()
            self._log.info("daemon.stopped", events_handled=self.state.events_handled)

    def stop(self) -> None:
        self.state.running = False
        self.state.stopped.set()


def run_daemon(config: AppConfig | None = None) -> None:
    """Run the event daemon in the foreground until SIGTERM/SIGINT."""
    from volknobs.app import build_controller, configure_logging
    from volknobs.config.schema import load_config

    config = config or load_config()
    configure_logging(config.log_level)

    daemon = KnobDaemon(
        build_controller(config),
        socket_path=config.socket_path,
        pid_file=config.pid_file,
        logger=structlog.get_logger("volknobs").bind(component="daemon"),
    )

    async def serve() -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, daemon.stop)
        await daemon.start()

    asyncio.run(serve())


if __name__ == "__main__":
    run_daemon()
