"""Non-blocking invocation of external command-line tools.

Every call into ``wpctl`` or ``pidof`` goes through ``CommandRunner.run``,
which spawns the process with ``asyncio.create_subprocess_exec`` so the
host event loop keeps running while the tool works. Arguments are passed
as an argv list, never through a shell.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import structlog

from volknobs.domain.constants import BENIGN_STDERR_MARKERS, DEFAULT_COMMAND_TIMEOUT_S
from volknobs.domain.exceptions import ExternalToolError, ToolNotInstalledError

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

__all__ = ["CommandResult", "CommandRunner"]

_LOG_PREVIEW_CHARS = 200


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one tool invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Runs external tools and turns their failures into domain errors.

    Args:
        timeout_s: Upper bound for a single invocation; ``None`` waits forever
        benign_stderr_markers: stderr lines containing any of these are ignored
        logger: Bound structlog logger; defaults to this module's logger

    Raises (from ``run``):
        ToolNotInstalledError: The executable is not on PATH
        ExternalToolError: Timeout, unexpected exit status, or unexpected stderr
    """

    def __init__(
        self,
        timeout_s: float | None = DEFAULT_COMMAND_TIMEOUT_S,
        benign_stderr_markers: Sequence[str] = BENIGN_STDERR_MARKERS,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.benign_stderr_markers = tuple(benign_stderr_markers)
        self._log = logger or structlog.get_logger(__name__)

    async def run(
        self,
        binary: str,
        *args: str,
        ok_returncodes: Sequence[int] = (0,),
    ) -> CommandResult:
        command = (binary, *args)
        self._log.debug("command.start", command=" ".join(command))

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            self._log.error("command.not_installed", tool=binary)
            raise ToolNotInstalledError.for_tool(binary, cause=exc) from exc
        except OSError as exc:
            self._log.error("command.spawn_failed", tool=binary, error=str(exc))
            raise ExternalToolError.could_not_start(command, exc) from exc

        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            self._log.error("command.timeout", command=" ".join(command), timeout_s=self.timeout_s)
            raise ExternalToolError.timed_out(command, self.timeout_s or 0.0) from None

        stdout = stdout_b.decode("utf-8", errors="replace").strip()
        stderr = stderr_b.decode("utf-8", errors="replace").strip()
        returncode = proc.returncode if proc.returncode is not None else -1

        if returncode not in ok_returncodes:
            self._log.error(
                "command.failed",
                command=" ".join(command),
                exit_code=returncode,
                stderr=stderr,
            )
            raise ExternalToolError.from_result(command, returncode, stderr or stdout)

        unexpected = self.unexpected_diagnostics(stderr)
        if unexpected:
            self._log.error("command.stderr", command=" ".join(command), stderr=stderr)
            raise ExternalToolError.from_result(command, returncode, "\n".join(unexpected))

        preview = stdout[:_LOG_PREVIEW_CHARS] + ("..." if len(stdout) > _LOG_PREVIEW_CHARS else "")
        self._log.debug("command.done", command=" ".join(command), exit_code=returncode, output=preview)
        return CommandResult(args=command, returncode=returncode, stdout=stdout, stderr=stderr)

    def unexpected_diagnostics(self, stderr: str) -> list[str]:
        """Return the stderr lines that are not known benign warnings."""
        return [
            line
            for line in stderr.splitlines()
            if line.strip() and not any(marker in line for marker in self.benign_stderr_markers)
        ]
