"""Protocol definitions for daemon IPC.

Newline-delimited JSON over a Unix domain socket; one request and one
response per connection.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any

from volknobs.domain.constants import (
    DEFAULT_PID_FILE,
    DEFAULT_SOCKET_PATH,
    ActionKind,
    EventKind,
)

__all__ = [
    "DEFAULT_PID_FILE",
    "DEFAULT_SOCKET_PATH",
    "ClearCacheRequest",
    "ClearCacheResponse",
    "EventRequest",
    "EventResponse",
    "ShutdownRequest",
    "ShutdownResponse",
    "StatusRequest",
    "StatusResponse",
    "parse_request",
]


@dataclass
class EventRequest:
    """A device event for one action."""

    action: str
    event: str
    settings: dict[str, Any] = field(default_factory=dict)
    ticks: int = 0

    def to_json(self) -> str:
        return json.dumps({"type": "event", **asdict(self)})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventRequest:
        action = ActionKind(data["action"]).value
        event = EventKind(data["event"]).value
        settings = data.get("settings") or {}
        if not isinstance(settings, dict):
            raise ValueError("settings must be an object")
        return cls(
            action=action,
            event=event,
            settings=settings,
            ticks=int(data.get("ticks") or 0),
        )


@dataclass
class EventResponse:
    """Display title produced by an event."""

    title: str
    success: bool = True
    error: str | None = None

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> EventResponse:
        d = json.loads(data)
        return cls(
            title=d.get("title", ""),
            success=d.get("success", True),
            error=d.get("error"),
        )


@dataclass
class StatusRequest:
    """Request daemon status."""

    def to_json(self) -> str:
        return json.dumps({"type": "status"})


@dataclass
class StatusResponse:
    """Daemon status response."""

    running: bool = True
    uptime_seconds: float = 0.0
    events_handled: int = 0
    cached_apps: dict[str, int] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> StatusResponse:
        return cls(**json.loads(data))


@dataclass
class ClearCacheRequest:
    """Drop every cached application -> pid entry."""

    def to_json(self) -> str:
        return json.dumps({"type": "clear_cache"})


@dataclass
class ClearCacheResponse:
    cleared: int = 0

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> ClearCacheResponse:
        return cls(**json.loads(data))


@dataclass
class ShutdownRequest:
    """Request daemon shutdown."""

    def to_json(self) -> str:
        return json.dumps({"type": "shutdown"})


@dataclass
class ShutdownResponse:
    """Shutdown acknowledgment."""

    success: bool = True
    message: str = "Shutting down"

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> ShutdownResponse:
        return cls(**json.loads(data))


Request = EventRequest | StatusRequest | ClearCacheRequest | ShutdownRequest


def parse_request(data: str) -> Request:
    """Parse an incoming request line.

    Raises:
        ValueError: Unknown type, missing fields, or invalid JSON
    """
    try:
        d = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc
    if not isinstance(d, dict):
        raise ValueError("Request must be a JSON object")

    req_type = d.get("type", "")
    if req_type == "event":
        try:
            return EventRequest.from_dict(d)
        except KeyError as exc:
            raise ValueError(f"Missing field: {exc.args[0]}") from exc
        except TypeError as exc:
            raise ValueError(f"Malformed event: {exc}") from exc
    elif req_type == "status":
        return StatusRequest()
    elif req_type == "clear_cache":
        return ClearCacheRequest()
    elif req_type == "shutdown":
        return ShutdownRequest()
    else:
        raise ValueError(f"Unknown request type: {req_type}")
