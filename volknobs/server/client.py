"""Synchronous client for the event daemon."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol, TypeVar

from volknobs.server.protocol import (
    DEFAULT_PID_FILE,
    DEFAULT_SOCKET_PATH,
    ClearCacheRequest,
    ClearCacheResponse,
    EventRequest,
    EventResponse,
    ShutdownRequest,
    ShutdownResponse,
    StatusRequest,
    StatusResponse,
)

DEFAULT_CONNECT_TIMEOUT_S = 2.0
DEFAULT_TIMEOUT_S = 30.0


class _Message(Protocol):
    def to_json(self) -> str: ...


R = TypeVar("R")


class DaemonError(RuntimeError):
    """The daemon could not be reached or did not answer."""


class DaemonUnavailableError(DaemonError):
    """No connection was made, so the request was never delivered."""


def get_daemon_pid(pid_file: Path = DEFAULT_PID_FILE) -> int | None:
    """PID recorded by the daemon, or None when the file is missing or garbled."""
    try:
        return int(pid_file.read_text().strip())
    except (OSError, ValueError):
        return None


def is_daemon_running(
    socket_path: Path = DEFAULT_SOCKET_PATH,
    pid_file: Path = DEFAULT_PID_FILE,
) -> bool:
    """True when the recorded PID is alive and its socket file exists."""
    pid = get_daemon_pid(pid_file)
    if pid is None:
        return False
    try:
        os.kill(pid, 0)
    except (ProcessLookupError, PermissionError):
        return False
    return socket_path.exists()


class DaemonClient:
    """Blocking wrapper over one-request-per-connection socket calls.

    Usage:
        client = DaemonClient()
        title = client.send_event("dial", "rotate", {"stepSize": 5}, ticks=2).title
    """

    def __init__(
        self,
        socket_path: Path = DEFAULT_SOCKET_PATH,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.socket_path = socket_path
        self.timeout = timeout

    async def _send_request(self, request_json: str) -> str:
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(str(self.socket_path)),
                timeout=DEFAULT_CONNECT_TIMEOUT_S,
            )
        except (OSError, asyncio.TimeoutError) as exc:
            raise DaemonUnavailableError(f"Cannot connect to daemon at {self.socket_path}: {exc}") from exc

        try:
            writer.write(request_json.encode("utf-8") + b"\n")
            await writer.drain()
            reply = await asyncio.wait_for(reader.readline(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise DaemonError(f"Daemon did not respond within {self.timeout:g}s") from exc
        except ConnectionError as exc:
            raise DaemonError(f"Connection to daemon lost: {exc}") from exc
        finally:
            writer.close()
            await writer.wait_closed()

        if not reply:
            raise DaemonError("Daemon closed the connection without a response")
        return reply.decode("utf-8").strip()

    def _round_trip(self, request: _Message, parse: Callable[[str], R]) -> R:
        return parse(asyncio.run(self._send_request(request.to_json())))

    def is_connected(self) -> bool:
        if not self.socket_path.exists():
            return False
        try:
            return self.status().running
        except DaemonError:
            return False

    def status(self) -> StatusResponse:
        return self._round_trip(StatusRequest(), StatusResponse.from_json)

    def send_event(
        self,
        action: str,
        event: str,
        settings: Mapping[str, Any] | None = None,
        ticks: int = 0,
    ) -> EventResponse:
        request = EventRequest(action=action, event=event, settings=dict(settings or {}), ticks=ticks)
        return self._round_trip(request, EventResponse.from_json)

    def clear_cache(self) -> ClearCacheResponse:
        return self._round_trip(ClearCacheRequest(), ClearCacheResponse.from_json)

    def shutdown(self) -> ShutdownResponse:
        return self._round_trip(ShutdownRequest(), ShutdownResponse.from_json)


def send_event_via_daemon(
    action: str,
    event: str,
    settings: Mapping[str, Any] | None = None,
    ticks: int = 0,
    socket_path: Path = DEFAULT_SOCKET_PATH,
    pid_file: Path = DEFAULT_PID_FILE,
) -> EventResponse | None:
    """Send one event to a running daemon.

    Returns None when no daemon could be reached, which tells the caller to
    handle the event in-process. Once the request has been delivered a
    failure is reported as an error response instead, since press and
    rotate must not be applied twice.
    """
    if not is_daemon_running(socket_path=socket_path, pid_file=pid_file):
        return None
    try:
        return DaemonClient(socket_path=socket_path).send_event(action, event, settings, ticks)
    except DaemonUnavailableError:
        return None
    except DaemonError as e:
        return EventResponse(title=f"Error: {e}", success=False, error=str(e))
