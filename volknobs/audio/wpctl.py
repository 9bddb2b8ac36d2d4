"""WirePlumber (``wpctl``) command builders and output parsers.

The parsers are pure functions over captured text so they can be tested
without PipeWire running; ``WpctlClient`` pairs them with a
``CommandRunner``.

Output shapes handled here::

    $ wpctl get-volume @DEFAULT_AUDIO_SINK@
    Volume: 0.42 [MUTED]

    $ wpctl status
    PipeWire 'pipewire-0' [1.0.5, user@host, cookie:1234]
     └─ Clients:
            33. WirePlumber         [1.0.5, user@host, pid:1561]
            72. Firefox             [1.0.5, user@host, pid:4821]
    Audio
     ├─ Devices:
    ...
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from volknobs.audio.runner import CommandRunner
from volknobs.domain.constants import (
    AUDIO_TOOL,
    CLIENTS_HEADER,
    DEFAULT_SINK_TOKEN,
    MUTE_MARKER,
    SINK_INPUTS_HEADER,
    VOLUME_MAX_PCT,
    VOLUME_MIN_PCT,
)
from volknobs.domain.exceptions import ParseError
from volknobs.domain.model import DefaultSink, ProcessSink, SinkHandle

__all__ = [
    "STATUS_SECTION_HEADERS",
    "WpctlClient",
    "clamp_percent",
    "find_matching_pid",
    "format_fraction",
    "format_increment",
    "parse_mute",
    "parse_volume",
]

STATUS_SECTION_HEADERS: tuple[str, ...] = (CLIENTS_HEADER, SINK_INPUTS_HEADER)

_VOLUME_RE = re.compile(r"Volume:\s*([\d.]+)")
# A line starting with a capital letter begins a new top-level block
_TOP_LEVEL_RE = re.compile(r"^\s*[A-Z]")
# Tree sub-headers such as " ├─ Sources:"
_SUBSECTION_RE = re.compile(r"^[\s\u2500-\u257f]*[A-Za-z][\w ]*:\s*$")


def clamp_percent(value: float) -> float:
    return max(VOLUME_MIN_PCT, min(VOLUME_MAX_PCT, value))


def _volume_fraction(output: str, command: Sequence[str]) -> float:
    match = _VOLUME_RE.search(output)
    if match is None:
        raise ParseError.unexpected_output(command, output)
    try:
        return float(match.group(1))
    except ValueError as exc:
        raise ParseError.unexpected_output(command, output) from exc


def parse_volume(output: str, command: Sequence[str] = (AUDIO_TOOL, "get-volume")) -> int:
    """Convert ``get-volume`` output into a display percentage.

    Over-amplified volumes (fractions above 1.0) are clamped to 100
    rather than rejected.

    Raises:
        ParseError: The output has no ``Volume: <fraction>`` field
    """
    fraction = _volume_fraction(output, command)
    return int(clamp_percent(round(fraction * 100)))


def parse_mute(output: str, command: Sequence[str] = (AUDIO_TOOL, "get-volume")) -> bool:
    """Return True when ``get-volume`` output carries the mute marker."""
    _volume_fraction(output, command)
    return MUTE_MARKER in output


def format_fraction(percent: float) -> str:
    """Format an absolute percentage as wpctl's two-decimal fraction."""
    return f"{clamp_percent(percent) / 100:.2f}"


def format_increment(delta_pct: float) -> str:
    """Format a signed percentage delta in wpctl's increment notation.

    >>> format_increment(6)
    '6%+'
    >>> format_increment(-4)
    '4%-'
    """
    sign = "+" if delta_pct >= 0 else "-"
    return f"{abs(delta_pct):g}%{sign}"


def find_matching_pid(
    pids: Iterable[int],
    status_output: str,
    headers: Sequence[str] = STATUS_SECTION_HEADERS,
) -> int | None:
    """Find the first candidate pid listed in a tracked ``wpctl status`` section.

    A pid matches only as a whole word on a line that sits inside one of
    ``headers``. Tracking stops at the next top-level line or at any other
    section header.
    Candidates are tried in the given order on each line; the first
    line-match wins.
    """
    candidates = [(pid, re.compile(rf"\b{pid}\b")) for pid in pids]
    if not candidates:
        return None

    section: str | None = None
    for line in status_output.splitlines():
        header = next((h for h in headers if h in line), None)
        if header is not None:
            section = header
            continue

        if section is None:
            continue

        if _TOP_LEVEL_RE.match(line) or _SUBSECTION_RE.match(line):
            section = None
            continue

        for pid, pattern in candidates:
            if pattern.search(line):
                return pid

    return None


class WpctlClient:
    """Thin async wrapper over the ``wpctl`` sub-commands volknobs uses.

    Capability checks (which sub-commands accept which handle kinds) live
    in the volume facade; this class only builds argv lists.
    """

    def __init__(
        self,
        runner: CommandRunner,
        binary: str = AUDIO_TOOL,
        default_sink_token: str = DEFAULT_SINK_TOKEN,
    ) -> None:
        self.runner = runner
        self.binary = binary
        self.default_sink_token = default_sink_token

    def target_args(self, handle: SinkHandle) -> list[str]:
        if isinstance(handle, ProcessSink):
            return ["--pid", str(handle.pid)]
        if isinstance(handle, DefaultSink):
            return [self.default_sink_token]
        raise TypeError(f"Unknown sink handle: {handle!r}")

    async def get_volume(self) -> tuple[tuple[str, ...], str]:
        """Query the default sink; returns the argv used and the raw output."""
        result = await self.runner.run(self.binary, "get-volume", self.default_sink_token)
        return result.args, result.stdout

    async def set_volume(self, handle: SinkHandle, value: str) -> None:
        await self.runner.run(self.binary, "set-volume", *self.target_args(handle), value)

    async def toggle_mute(self, handle: SinkHandle) -> None:
        await self.runner.run(self.binary, "set-mute", *self.target_args(handle), "toggle")

    async def status(self) -> str:
        result = await self.runner.run(self.binary, "status")
        return result.stdout
