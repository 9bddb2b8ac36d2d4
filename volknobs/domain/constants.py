"""Constants and enums for the volknobs domain model.

This module centralizes magic strings and tool-contract values so the
resolver, the facade and the command builders agree on them.
"""
from __future__ import annotations

from enum import Enum
from pathlib import Path


class ControlMode(str, Enum):
    """Which audio target an action controls."""
    SYSTEM = "system"
    APPLICATION = "application"


class ActionKind(str, Enum):
    """Host actions that can receive device events."""
    DIAL = "dial"
    MUTE = "mute"
    SET_VOLUME = "set_volume"


class EventKind(str, Enum):
    """Device/UI events delivered by the host layer."""
    APPEAR = "appear"
    ROTATE = "rotate"
    PRESS = "press"
    SET_TARGET = "set_target"


# Audio tool contract
AUDIO_TOOL = "wpctl"
PROCESS_LOOKUP_TOOL = "pidof"
DEFAULT_SINK_TOKEN = "@DEFAULT_AUDIO_SINK@"
MUTE_MARKER = "[MUTED]"
BENIGN_STDERR_MARKERS: tuple[str, ...] = ("Warning",)

# Section headers in `wpctl status` whose lines may embed a client pid
CLIENTS_HEADER = "Clients:"
SINK_INPUTS_HEADER = "Sink Inputs:"

# Display range; wpctl itself accepts up to 1.65 (165%)
VOLUME_MIN_PCT = 0
VOLUME_MAX_PCT = 100

DEFAULT_STEP_SIZE_PCT = 2
DEFAULT_TARGET_VOLUME_PCT = 50
DEFAULT_COMMAND_TIMEOUT_S = 5.0

# Daemon IPC and config locations
DEFAULT_SOCKET_PATH = Path("/tmp/volknobs-daemon.sock")
DEFAULT_PID_FILE = Path("/tmp/volknobs-daemon.pid")
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "volknobs" / "config.toml"
LOG_LEVEL_ENV = "VOLKNOBS_LOG_LEVEL"
