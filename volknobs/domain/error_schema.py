"""Typed shape of serialized errors.

``VolknobsError.to_dict()`` produces this structure and ``from_dict()``
rebuilds an error from it, so errors can cross a JSON boundary (logs,
IPC) as plain data.
"""

from __future__ import annotations

from typing import Any, TypedDict

__all__ = ["ErrorDict"]


class ErrorDict(TypedDict):
    """Serialized ``VolknobsError``.

    Attributes:
        error_type: Exception class name (e.g., 'ApplicationNotPlayingError')
        message: Human-readable error message
        context: Structured details such as ``pid``, ``command`` or ``exit_code``
        suggestions: Actionable hints for the user
        timestamp: ISO 8601 time the error was raised
        cause: ``str()`` of the wrapped exception, or None

    Example:
        >>> def show(error: ErrorDict) -> str:
        ...     return f"{error['error_type']}: {error['message']}"
    """

    error_type: str
    message: str
    context: dict[str, Any]
    suggestions: list[str]
    timestamp: str
    cause: str | None
