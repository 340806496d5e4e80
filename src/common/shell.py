"""Blocking subprocess execution for the npm, node and fnm CLIs."""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled, Timer

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126


@dataclass
class CommandResult:
    """Captured outcome of a finished command."""

    args: List[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(Exception):
    """A command could not be started or exited non-zero."""

    def __init__(self, result: CommandResult):
        self.result = result
        detail = (result.stderr or result.stdout).strip()
        message = f"'{' '.join(result.args)}' exited with status {result.returncode}"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    @property
    def not_found(self) -> bool:
        return self.result.returncode == COMMAND_NOT_FOUND


def run_command(args: Sequence[str], *, env: Optional[dict] = None) -> CommandResult:
    """Run ``args`` to completion and capture its output.

    Raises:
        CommandError: If the executable is missing or the exit status is non-zero.
    """
    cmd = [str(a) for a in args]
    with Timer() as t:
        try:
            proc = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=env,
                check=False,
            )
        except FileNotFoundError as exc:
            raise CommandError(
                CommandResult(cmd, COMMAND_NOT_FOUND, "", f"{cmd[0]}: command not found ({exc})")
            ) from exc
        except OSError as exc:
            raise CommandError(
                CommandResult(cmd, COMMAND_NOT_EXECUTABLE, "", f"{cmd[0]}: cannot execute ({exc})")
            ) from exc

    result = CommandResult(cmd, proc.returncode, proc.stdout or "", proc.stderr or "")
    if is_debug_enabled(logger):
        logger.debug(
            "Command finished",
            extra=extra_context(
                event="command",
                component="shell",
                action=cmd[0],
                status_code=proc.returncode,
                duration_ms=t.duration_ms()
            )
        )
    if proc.returncode != 0:
        raise CommandError(result)
    return result
