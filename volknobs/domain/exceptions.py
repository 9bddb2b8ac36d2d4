"""Rich error taxonomy with context and actionable suggestions.

Every error carries a human-readable message plus optional structured
context (pids, commands, exit codes) and suggestions for the user. Action
handlers convert these into short status strings; the CLI renders them
with ``format_rich()``.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from pathlib import Path

    from rich.panel import Panel

    from .error_schema import ErrorDict

__all__ = [
    "ApplicationNotFoundError",
    "ApplicationNotPlayingError",
    "ConfigurationError",
    "ExternalToolError",
    "ParseError",
    "ToolNotInstalledError",
    "UnsupportedOperationError",
    "VolknobsError",
]


class VolknobsError(Exception):
    """Base class for all volknobs errors.

    Args:
        message: Human-readable error message
        cause: Original exception, if this error wraps another
        context: Structured details (pids, commands, exit codes)
        suggestions: Actionable hints for the user

    Example:
        >>> err = VolknobsError("Oops", context={"pid": 42}, suggestions=["Retry"])
        >>> print(err.format_error())
        ✗ Error: Oops
        <BLANKLINE>
        Details:
          • pid: 42
        <BLANKLINE>
        Possible solutions:
          1. Retry
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
        suggestions: Sequence[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context: dict[str, Any] = dict(context or {})
        self.suggestions: list[str] = list(suggestions or [])
        self.timestamp = datetime.now()

    def format_error(self) -> str:
        """Render the error as plain text for terminals and logs."""
        lines = [f"✗ Error: {self.message}"]

        if self.context:
            lines.append("")
            lines.append("Details:")
            for key, value in self.context.items():
                lines.append(f"  • {key}: {value}")

        if self.suggestions:
            lines.append("")
            lines.append("Possible solutions:")
            for i, suggestion in enumerate(self.suggestions, start=1):
                lines.append(f"  {i}. {suggestion}")

        if self.cause is not None:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        return "\n".join(lines)

    def format_rich(self) -> Panel:
        """Render the error as a Rich panel for the CLI."""
        from rich.panel import Panel
        from rich.text import Text

        body = Text()
        body.append(self.message, style="bold red")

        if self.context:
            body.append("\n\nDetails:\n", style="bold")
            for key, value in self.context.items():
                body.append(f"  • {key}: ", style="dim")
                body.append(f"{value}\n")

        if self.suggestions:
            body.append("\nPossible solutions:\n", style="bold")
            for i, suggestion in enumerate(self.suggestions, start=1):
                body.append(f"  {i}. {suggestion}\n", style="green")

        if self.cause is not None:
            body.append(f"\nCaused by: {type(self.cause).__name__}: {self.cause}", style="dim")

        return Panel(body, title=f"[red]{type(self).__name__}[/red]", border_style="red")

    def to_dict(self) -> ErrorDict:
        """Serialize for daemon responses and other API consumers."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": dict(self.context),
            "suggestions": list(self.suggestions),
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VolknobsError:
        """Rebuild an error from ``to_dict()`` output.

        The original cause is not recoverable, only its string form, which
        is kept in ``context["cause"]`` when present.
        """
        context = dict(data.get("context") or {})
        if data.get("cause"):
            context.setdefault("cause", data["cause"])
        return cls(
            data.get("message", ""),
            context=context,
            suggestions=data.get("suggestions") or [],
        )


class ConfigurationError(VolknobsError):
    """Required input is missing or settings are invalid."""

    @classmethod
    def missing_app_name(cls) -> ConfigurationError:
        return cls(
            "Application name is required when control mode is 'application'",
            context={"control_mode": "application"},
            suggestions=[
                "Enter the application's process name (as shown by `pidof`)",
                "Or switch the control mode to 'system'",
            ],
        )

    @classmethod
    def invalid_settings(cls, errors: Sequence[str], *, cause: BaseException | None = None) -> ConfigurationError:
        return cls(
            "Invalid action settings: " + "; ".join(errors),
            cause=cause,
            context={"errors": list(errors)},
            suggestions=[
                "Step size must be between 1 and 10 percent",
                "Target volume must be between 0 and 100 percent",
            ],
        )

    @classmethod
    def invalid_config(
        cls,
        path: Path,
        errors: Sequence[str],
        *,
        cause: BaseException | None = None,
    ) -> ConfigurationError:
        return cls(
            f"Invalid config file: {path}",
            cause=cause,
            context={"file": str(path), "errors": list(errors)},
            suggestions=[
                "Check the file is valid TOML",
                "Remove unknown keys; see AppConfig for supported options",
            ],
        )


class ApplicationNotFoundError(VolknobsError):
    """No running process matches the application name."""

    @classmethod
    def for_app(cls, app_name: str) -> ApplicationNotFoundError:
        return cls(
            f'Application "{app_name}" not found (no running processes)',
            context={"app_name": app_name},
            suggestions=[
                "Start the application first",
                f"Check the process name with: pidof {app_name}",
            ],
        )


class ApplicationNotPlayingError(VolknobsError):
    """The application runs but owns no audio client."""

    @classmethod
    def for_app(cls, app_name: str, pids: Sequence[int]) -> ApplicationNotPlayingError:
        return cls(
            f'Application "{app_name}" is not currently using audio',
            context={"app_name": app_name, "pids": list(pids)},
            suggestions=[
                "Start playback in the application and try again",
                "Check `wpctl status` for the application's client entry",
            ],
        )


class UnsupportedOperationError(VolknobsError):
    """The operation is not available for this kind of sink handle."""

    @classmethod
    def for_process_sink(cls, operation: str, pid: int) -> UnsupportedOperationError:
        return cls(
            f"Cannot {operation} for application-specific sinks",
            context={"operation": operation, "pid": pid},
            suggestions=["Use relative volume changes (dial rotation) for applications"],
        )


class ParseError(VolknobsError):
    """The audio tool produced output of an unexpected shape."""

    @classmethod
    def unexpected_output(cls, command: Sequence[str], output: str) -> ParseError:
        return cls(
            f"Could not parse output of: {' '.join(command)}",
            context={"command": " ".join(command), "output": output[:200]},
            suggestions=["Check that the installed WirePlumber version is supported"],
        )


# Packages that provide each external tool, for install hints
_TOOL_PACKAGES: dict[str, str] = {
    "wpctl": "wireplumber",
    "pidof": "procps (or sysvinit-tools)",
}


class ToolNotInstalledError(VolknobsError):
    """An external executable could not be found."""

    @classmethod
    def for_tool(cls, tool: str, *, cause: BaseException | None = None) -> ToolNotInstalledError:
        package = _TOOL_PACKAGES.get(tool, tool)
        return cls(
            f"{tool} command not found",
            cause=cause,
            context={"tool": tool},
            suggestions=[
                f"Install {package}: sudo apt install {package.split()[0]}",
                f"Ensure {tool} is on PATH",
            ],
        )


class ExternalToolError(VolknobsError):
    """An external tool ran and failed."""

    @property
    def diagnostic(self) -> str:
        return str(self.context.get("stderr", ""))

    @classmethod
    def from_result(
        cls,
        command: Sequence[str],
        returncode: int | None,
        stderr: str,
    ) -> ExternalToolError:
        detail = stderr.strip() or f"exit status {returncode}"
        return cls(
            f"{command[0]} failed: {detail}",
            context={
                "command": " ".join(command),
                "exit_code": returncode,
                "stderr": stderr.strip(),
            },
            suggestions=[f"Run `{' '.join(command)}` manually to see the full output"],
        )

    @classmethod
    def timed_out(cls, command: Sequence[str], timeout_s: float) -> ExternalToolError:
        return cls(
            f"{command[0]} did not respond within {timeout_s:g}s",
            context={"command": " ".join(command), "timeout_s": timeout_s},
            suggestions=[
                "Check that PipeWire and WirePlumber are running",
                "Raise command_timeout_s in the config file",
            ],
        )

    @classmethod
    def could_not_start(cls, command: Sequence[str], cause: OSError) -> ExternalToolError:
        return cls(
            f"{command[0]} could not be started: {cause.strerror or cause}",
            cause=cause,
            context={"command": " ".join(command), "errno": cause.errno},
            suggestions=[f"Check that {command[0]} is an executable file"],
        )
