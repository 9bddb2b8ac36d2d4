"""Shared fixtures.

``FakeAudioSystem`` stands in for ``CommandRunner``: it answers ``wpctl``
and ``pidof`` argv lists from in-memory state (default sink volume and
mute flag, running processes, processes with an audio client) and
records every call, so tests can assert which external commands ran.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from volknobs.app.actions import KnobController
from volknobs.app.resolver import TargetResolver
from volknobs.app.volume import VolumeControl
from volknobs.audio.pidof import ProcessLookup
from volknobs.audio.runner import CommandResult
from volknobs.audio.wpctl import WpctlClient


class FakeAudioSystem:
    """In-memory PipeWire + process table speaking the runner interface."""

    def __init__(self, volume: float = 0.37, muted: bool = False) -> None:
        self.volume = volume
        self.muted = muted
        # program name -> pids, in pidof output order
        self.processes: dict[str, list[int]] = {}
        # pids that own an audio client in `wpctl status`
        self.clients: list[int] = []
        self.calls: list[tuple[str, ...]] = []
        self.app_volume_changes: list[tuple[int, str]] = []
        self.app_mute_toggles: list[int] = []
        # "pidof" or a wpctl sub-command -> exception to raise
        self.errors: dict[str, Exception] = {}
        self.get_volume_output: str | None = None

    def launch(self, name: str, *pids: int, playing: bool = True) -> None:
        self.processes.setdefault(name, []).extend(pids)
        if playing:
            self.clients.extend(pids)

    def kill(self, name: str) -> None:
        for pid in self.processes.pop(name, []):
            if pid in self.clients:
                self.clients.remove(pid)

    def calls_to(self, binary: str, subcommand: str | None = None) -> list[tuple[str, ...]]:
        return [
            call
            for call in self.calls
            if call[0] == binary and (subcommand is None or call[1] == subcommand)
        ]

    def status_report(self) -> str:
        lines = [
            "PipeWire 'pipewire-0' [1.0.5, user@host, cookie:1234]",
            " └─ Clients:",
            "        33. WirePlumber                         [1.0.5, user@host, pid:1561]",
        ]
        for index, pid in enumerate(self.clients, start=70):
            lines.append(f"        {index}. Client                              [1.0.5, user@host, pid:{pid}]")
        lines += [
            "",
            "Audio",
            " ├─ Devices:",
            " │      42. Built-in Audio                      [alsa]",
            " ├─ Sinks:",
            f" │  *   48. Built-in Audio Analog Stereo        [vol: {self.volume:.2f}]",
        ]
        return "\n".join(lines)

    async def run(self, binary: str, *args: str, ok_returncodes=(0,)) -> CommandResult:
        command = (binary, *args)
        self.calls.append(command)
        # Yield so concurrent callers interleave like real subprocesses
        await asyncio.sleep(0)

        key = binary if binary == "pidof" else args[0]
        if key in self.errors:
            raise self.errors[key]

        if binary == "pidof":
            pids = self.processes.get(args[0], [])
            if not pids:
                return CommandResult(command, 1, "", "")
            return CommandResult(command, 0, " ".join(str(pid) for pid in pids), "")

        return CommandResult(command, 0, self._wpctl(list(args)), "")

    def _wpctl(self, args: list[str]) -> str:
        sub = args[0]
        if sub == "get-volume":
            if self.get_volume_output is not None:
                return self.get_volume_output
            return f"Volume: {self.volume:.2f}" + (" [MUTED]" if self.muted else "")
        if sub == "set-volume":
            if args[1] == "--pid":
                self.app_volume_changes.append((int(args[2]), args[3]))
            else:
                self.volume = float(args[2])
            return ""
        if sub == "set-mute":
            if args[1] == "--pid":
                self.app_mute_toggles.append(int(args[2]))
            else:
                self.muted = not self.muted
            return ""
        if sub == "status":
            return self.status_report()
        raise AssertionError(f"unexpected wpctl call: {args}")


def build_fake_controller(system: FakeAudioSystem) -> KnobController:
    wpctl = WpctlClient(system)
    resolver = TargetResolver(wpctl, ProcessLookup(system))
    return KnobController(resolver, VolumeControl(wpctl))


@pytest.fixture
def audio_system() -> FakeAudioSystem:
    return FakeAudioSystem()


@pytest.fixture
def wpctl(audio_system: FakeAudioSystem) -> WpctlClient:
    return WpctlClient(audio_system)


@pytest.fixture
def resolver(audio_system: FakeAudioSystem, wpctl: WpctlClient) -> TargetResolver:
    return TargetResolver(wpctl, ProcessLookup(audio_system))


@pytest.fixture
def volume(wpctl: WpctlClient) -> VolumeControl:
    return VolumeControl(wpctl)


@pytest.fixture
def controller(audio_system: FakeAudioSystem) -> KnobController:
    return build_fake_controller(audio_system)


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the user's config file and log level env var out of tests."""
    monkeypatch.setattr("volknobs.config.schema.DEFAULT_CONFIG_PATH", tmp_path / "missing-config.toml")
    monkeypatch.delenv("VOLKNOBS_LOG_LEVEL", raising=False)
