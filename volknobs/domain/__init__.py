"""Dependency-free domain models and errors for volknobs."""

from .constants import (
    ActionKind,
    ControlMode,
    EventKind,
)
from .exceptions import (
    ApplicationNotFoundError,
    ApplicationNotPlayingError,
    ConfigurationError,
    ExternalToolError,
    ParseError,
    ToolNotInstalledError,
    UnsupportedOperationError,
    VolknobsError,
)
from .model import (
    DefaultSink,
    ProcessSink,
    SinkHandle,
    is_process_sink,
)

__all__ = [
    "ActionKind",
    "ApplicationNotFoundError",
    "ApplicationNotPlayingError",
    "ConfigurationError",
    "ControlMode",
    "DefaultSink",
    "EventKind",
    "ExternalToolError",
    "ParseError",
    "ProcessSink",
    "SinkHandle",
    "ToolNotInstalledError",
    "UnsupportedOperationError",
    "VolknobsError",
    "is_process_sink",
]
