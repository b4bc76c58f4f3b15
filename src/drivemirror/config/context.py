"""Immutable per-run settings shared by every component."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(slots=True, frozen=True)
class RunContext:
    """
    Settings resolved once at start-up.

    `workdir` is the git working tree that receives the mirrored files.
    """

    repo_owner: str
    repo_name: str
    workdir: Path
    service_identity: str
    run_id: str
    base_branch: str = "main"
    git_user_name: str = "github-actions[bot]"
    git_user_email: str = "github-actions[bot]@users.noreply.github.com"
    page_size: int = 1000
    permission_concurrency: int = 4
    http_timeout: float = 60.0
    publish_max_attempts: int = 3
    publish_initial_delay: float = 5.0
    render_dir: Optional[Path] = None
    render_resolution: int = 72
    dry_run: bool = False

    @property
    def repo(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"
