"""Committing mirrored changes onto the head branch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class GitWorkspace:
    """
    The git working tree that receives mirrored files.

    `git` is anything with GitRunner's `execute` signature.
    """

    def __init__(
        self,
        git: Any,
        cwd: Union[str, Path],
        *,
        user_name: str,
        user_email: str,
    ) -> None:
        self._git = git
        self._cwd = Path(cwd)
        self._user_name = user_name
        self._user_email = user_email

    def _run(self, command: str, args: Sequence[str] = (), **kwargs: Any):
        return self._git.execute(command, list(args), cwd=self._cwd, **kwargs)

    def current_branch(self) -> str:
        return self._run("rev-parse", ["--abbrev-ref", "HEAD"], silent=True).stdout.strip()

    def commit_to_branch(self, head_branch: str, paths: Sequence[str], message: str) -> Optional[str]:
        """
        Commit `paths` on `head_branch` (reset to the current HEAD) and force-push it.

        The initial branch is checked out again afterwards, whatever happens.
        Returns the commit hash, or None when the paths hold no changes.

        Raises:
            CommandError: if any git step fails.
        """
        if not paths:
            logger.info("No changed paths to commit")
            return None

        initial = self.current_branch()
        try:
            self._run("checkout", ["-B", head_branch])

            present = sorted(p for p in set(paths) if (self._cwd / p).exists())
            gone = sorted(p for p in set(paths) if not (self._cwd / p).exists())
            if present:
                self._run("add", ["-A", "--", *present])
            if gone:
                self._run("rm", ["--cached", "--ignore-unmatch", "-r", "-q", "--", *gone])

            staged = self._run("diff", ["--cached", "--quiet"], silent=True, ignore_return_code=True)
            if staged.exit_code == 0:
                logger.info("Nothing to commit on %s", head_branch)
                return None

            self._run("config", ["--local", "user.name", self._user_name])
            self._run("config", ["--local", "user.email", self._user_email])
            self._run("commit", ["-m", message])
            commit = self._run("rev-parse", ["HEAD"], silent=True).stdout.strip()
            self._run("push", ["--force", "origin", head_branch])
            logger.info("Pushed %s to %s", commit[:12], head_branch)
            return commit
        finally:
            if initial and initial != "HEAD":
                self._run("checkout", ["--force", initial], ignore_return_code=True)
