"""Tests for wpctl output parsing, argument formatting and status matching."""

from __future__ import annotations

import asyncio

import pytest

from volknobs.audio.wpctl import (
    WpctlClient,
    clamp_percent,
    find_matching_pid,
    format_fraction,
    format_increment,
    parse_mute,
    parse_volume,
)
from volknobs.domain.exceptions import ParseError
from volknobs.domain.model import DefaultSink, ProcessSink

STATUS = """\
PipeWire 'pipewire-0' [1.0.5, user@host, cookie:1234]
 └─ Clients:
        33. WirePlumber                         [1.0.5, user@host, pid:1561]
        72. Firefox                             [1.0.5, user@host, pid:4821]

Audio
 ├─ Devices:
 │      42. Built-in Audio                      [alsa]
 ├─ Sinks:
 │  *   48. Built-in Audio Analog Stereo        [vol: 0.42]
 ├─ Sink Inputs:
 │      95. Music Player                        [pid 7310, application.name = "Music Player"]
 └─ Sources:
 │      51. Built-in Audio Analog Stereo        [vol: 1.00]
"""


class TestParseVolume:
    """Tests for get-volume parsing."""

    def test_plain(self) -> None:
        assert parse_volume("Volume: 0.42") == 42

    def test_muted_output_still_parses(self) -> None:
        assert parse_volume("Volume: 0.37 [MUTED]") == 37

    def test_over_amplified_clamps(self) -> None:
        assert parse_volume("Volume: 1.50") == 100

    def test_rounds_to_nearest(self) -> None:
        assert parse_volume("Volume: 0.416") == 42

    def test_garbage_raises(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_volume("No volume here", ("wpctl", "get-volume", "@DEFAULT_AUDIO_SINK@"))
        assert exc_info.value.context["command"] == "wpctl get-volume @DEFAULT_AUDIO_SINK@"

    def test_bare_dots_raise(self) -> None:
        with pytest.raises(ParseError):
            parse_volume("Volume: ..")


class TestParseMute:
    """Tests for mute marker detection."""

    def test_muted(self) -> None:
        assert parse_mute("Volume: 0.37 [MUTED]") is True

    def test_unmuted(self) -> None:
        assert parse_mute("Volume: 0.37") is False

    def test_unrecognized_output_raises(self) -> None:
        with pytest.raises(ParseError):
            parse_mute("[MUTED]")


class TestFormatting:
    """Tests for wpctl argument formatting."""

    @pytest.mark.parametrize(
        ("percent", "expected"),
        [(42, "0.42"), (0, "0.00"), (100, "1.00"), (150, "1.00"), (-5, "0.00")],
    )
    def test_format_fraction(self, percent: float, expected: str) -> None:
        assert format_fraction(percent) == expected

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [(6, "6%+"), (-4, "4%-"), (0, "0%+"), (2.5, "2.5%+")],
    )
    def test_format_increment(self, delta: float, expected: str) -> None:
        assert format_increment(delta) == expected

    def test_clamp_percent(self) -> None:
        assert clamp_percent(105) == 100
        assert clamp_percent(-3) == 0
        assert clamp_percent(55) == 55


class TestFindMatchingPid:
    """Tests for locating a pid inside tracked status sections."""

    def test_pid_in_clients_section(self) -> None:
        assert find_matching_pid([4821], STATUS) == 4821

    def test_pid_in_sink_inputs_section(self) -> None:
        assert find_matching_pid([7310], STATUS) == 7310

    def test_no_candidates(self) -> None:
        assert find_matching_pid([], STATUS) is None

    def test_pid_absent(self) -> None:
        assert find_matching_pid([9999], STATUS) is None

    def test_partial_number_does_not_match(self) -> None:
        assert find_matching_pid([482], STATUS) is None
        assert find_matching_pid([48210], STATUS) is None

    def test_pid_outside_tracked_sections_ignored(self) -> None:
        # 42 and 51 appear only as object ids under Devices / Sources
        assert find_matching_pid([42], STATUS) is None
        assert find_matching_pid([51], STATUS) is None

    def test_number_before_any_section_ignored(self) -> None:
        assert find_matching_pid([1234], STATUS) is None

    def test_first_line_match_wins(self) -> None:
        assert find_matching_pid([7310, 4821], STATUS) == 4821

    def test_only_second_candidate_has_client(self) -> None:
        assert find_matching_pid([5555, 4821], STATUS) == 4821

    def test_custom_headers(self) -> None:
        assert find_matching_pid([4821], STATUS, headers=("Sink Inputs:",)) is None
        assert find_matching_pid([7310], STATUS, headers=("Sink Inputs:",)) == 7310


class TestWpctlClient:
    """Tests for argv construction."""

    def test_target_args(self, wpctl: WpctlClient) -> None:
        assert wpctl.target_args(DefaultSink()) == ["@DEFAULT_AUDIO_SINK@"]
        assert wpctl.target_args(ProcessSink(4821)) == ["--pid", "4821"]

    def test_target_args_rejects_unknown(self, wpctl: WpctlClient) -> None:
        with pytest.raises(TypeError):
            wpctl.target_args("default")  # type: ignore[arg-type]

    def test_commands(self, audio_system, wpctl: WpctlClient) -> None:
        async def scenario() -> None:
            await wpctl.get_volume()
            await wpctl.set_volume(DefaultSink(), "0.50")
            await wpctl.set_volume(ProcessSink(4821), "6%+")
            await wpctl.toggle_mute(ProcessSink(4821))
            await wpctl.status()

        asyncio.run(scenario())

        assert audio_system.calls == [
            ("wpctl", "get-volume", "@DEFAULT_AUDIO_SINK@"),
            ("wpctl", "set-volume", "@DEFAULT_AUDIO_SINK@", "0.50"),
            ("wpctl", "set-volume", "--pid", "4821", "6%+"),
            ("wpctl", "set-mute", "--pid", "4821", "toggle"),
            ("wpctl", "status"),
        ]

    def test_get_volume_returns_command(self, wpctl: WpctlClient) -> None:
        command, output = asyncio.run(wpctl.get_volume())
        assert command == ("wpctl", "get-volume", "@DEFAULT_AUDIO_SINK@")
        assert output == "Volume: 0.37"
