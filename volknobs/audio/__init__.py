"""External audio tool access: command runner, wpctl and pidof wrappers."""

from .pidof import ProcessLookup
from .runner import CommandResult, CommandRunner
from .wpctl import (
    STATUS_SECTION_HEADERS,
    WpctlClient,
    clamp_percent,
    find_matching_pid,
    format_fraction,
    format_increment,
    parse_mute,
    parse_volume,
)

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ProcessLookup",
    "STATUS_SECTION_HEADERS",
    "WpctlClient",
    "clamp_percent",
    "find_matching_pid",
    "format_fraction",
    "format_increment",
    "parse_mute",
    "parse_volume",
]
