"""Sink handles: the resolved audio target an operation acts on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

__all__ = [
    "DefaultSink",
    "ProcessSink",
    "SinkHandle",
    "is_process_sink",
]


@dataclass(frozen=True)
class DefaultSink:
    """The single system-wide output target."""

    def __str__(self) -> str:
        return "default"


@dataclass(frozen=True)
class ProcessSink:
    """The audio client owned by process ``pid``.

    A process sink is only meaningful while ``pid`` is alive and owns an
    active audio client. Neither property is stored here; the resolver
    re-validates both every time the handle is produced.
    """

    pid: int

    def __post_init__(self) -> None:
        if isinstance(self.pid, bool) or not isinstance(self.pid, int):
            raise TypeError(f"pid must be an int, got {type(self.pid).__name__}")
        if self.pid <= 0:
            raise ValueError(f"pid must be positive, got {self.pid}")

    def __str__(self) -> str:
        return f"pid:{self.pid}"


SinkHandle = Union[DefaultSink, ProcessSink]


def is_process_sink(handle: SinkHandle) -> bool:
    return isinstance(handle, ProcessSink)
