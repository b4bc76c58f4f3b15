"""Command execution for the `git` CLI through GitPython."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import git

from drivemirror.errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CommandResult:
    stdout: str
    stderr: str
    exit_code: int


class GitRunner:
    """Run `git <command> <args>` and capture its output."""

    def __init__(self, cwd: Optional[Union[str, Path]] = None) -> None:
        self._cwd = str(cwd) if cwd is not None else None

    def execute(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: Optional[Union[str, Path]] = None,
        silent: bool = False,
        ignore_return_code: bool = False,
    ) -> CommandResult:
        """
        Run one git command.

        Raises:
            CommandError: when the command exits non-zero and
                `ignore_return_code` is False, or cannot be started.
        """
        workdir = str(cwd) if cwd is not None else self._cwd
        argv = ["git", command, *args]
        if not silent:
            logger.info("Running: %s", " ".join(argv))

        try:
            status, stdout, stderr = git.cmd.Git(workdir).execute(
                argv,
                with_extended_output=True,
                with_exceptions=False,
                strip_newline_in_stdout=False,
            )
        except git.exc.GitCommandNotFound as exc:
            raise CommandError(
                "git executable not found",
                details={"command": command},
                cause=exc,
            ) from exc

        result = CommandResult(stdout=stdout or "", stderr=stderr or "", exit_code=int(status or 0))
        if result.exit_code != 0 and not ignore_return_code:
            raise CommandError(
                f"git {command} failed with exit code {result.exit_code}: {result.stderr.strip()}",
                details={"command": command, "args": list(args), "exit_code": result.exit_code},
            )
        if not silent and result.stdout.strip():
            logger.debug("git %s: %s", command, result.stdout.strip())
        return result
