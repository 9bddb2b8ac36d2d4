"""Tests for daemon IPC messages."""

from __future__ import annotations

import json

import pytest

from volknobs.server.protocol import (
    ClearCacheRequest,
    ClearCacheResponse,
    EventRequest,
    EventResponse,
    ShutdownRequest,
    StatusRequest,
    StatusResponse,
    parse_request,
)


class TestParseRequest:
    def test_event(self) -> None:
        line = EventRequest("dial", "rotate", {"stepSize": 5}, ticks=-2).to_json()
        request = parse_request(line)
        assert request == EventRequest(action="dial", event="rotate", settings={"stepSize": 5}, ticks=-2)

    def test_event_defaults(self) -> None:
        request = parse_request(json.dumps({"type": "event", "action": "mute", "event": "press"}))
        assert request == EventRequest(action="mute", event="press", settings={}, ticks=0)

    @pytest.mark.parametrize(
        ("request_obj", "expected_type"),
        [
            (StatusRequest(), StatusRequest),
            (ClearCacheRequest(), ClearCacheRequest),
            (ShutdownRequest(), ShutdownRequest),
        ],
    )
    def test_control_requests(self, request_obj, expected_type) -> None:
        assert isinstance(parse_request(request_obj.to_json()), expected_type)

    @pytest.mark.parametrize(
        ("line", "message"),
        [
            ("not json", "Invalid JSON"),
            ("[1, 2]", "JSON object"),
            ('{"type": "reboot"}', "Unknown request type"),
            ('{"type": "event", "event": "press"}', "Missing field: action"),
            ('{"type": "event", "action": "dial", "event": "rotate", "ticks": [1]}', "Malformed event"),
        ],
    )
    def test_rejects_malformed(self, line: str, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            parse_request(line)

    def test_rejects_unknown_action(self) -> None:
        with pytest.raises(ValueError):
            parse_request(json.dumps({"type": "event", "action": "slider", "event": "press"}))

    def test_rejects_non_object_settings(self) -> None:
        with pytest.raises(ValueError, match="settings"):
            parse_request(json.dumps({"type": "event", "action": "dial", "event": "appear", "settings": [1]}))


class TestResponses:
    def test_event_response(self) -> None:
        response = EventResponse.from_json(EventResponse(title="Error: x", success=False, error="x").to_json())
        assert response == EventResponse(title="Error: x", success=False, error="x")

    def test_status_response(self) -> None:
        original = StatusResponse(running=True, uptime_seconds=1.5, events_handled=3, cached_apps={"mpv": 5100})
        assert StatusResponse.from_json(original.to_json()) == original

    def test_clear_cache_response(self) -> None:
        assert ClearCacheResponse.from_json('{"cleared": 2}').cleared == 2
