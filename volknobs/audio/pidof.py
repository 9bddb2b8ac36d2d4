"""Process enumeration by executable name via ``pidof``."""

from __future__ import annotations

from volknobs.audio.runner import CommandRunner
from volknobs.domain.constants import PROCESS_LOOKUP_TOOL

__all__ = ["ProcessLookup"]

# pidof exits 1 when no process matches
_NOT_FOUND_RETURNCODE = 1


class ProcessLookup:
    """Lists live pids for a program name.

    ``find_pids`` returns an empty list when nothing matches and raises
    ``ExternalToolError`` / ``ToolNotInstalledError`` when ``pidof`` itself
    fails, so "not running" stays distinct from "could not check".
    """

    def __init__(self, runner: CommandRunner, binary: str = PROCESS_LOOKUP_TOOL) -> None:
        self.runner = runner
        self.binary = binary

    async def find_pids(self, program_name: str) -> list[int]:
        result = await self.runner.run(
            self.binary,
            program_name,
            ok_returncodes=(0, _NOT_FOUND_RETURNCODE),
        )
        if result.returncode == _NOT_FOUND_RETURNCODE:
            return []
        return [int(token) for token in result.stdout.split() if token.isdigit()]
