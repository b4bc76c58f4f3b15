"""Controller exports for drivemirror."""

from __future__ import annotations

from .drive_controller import GoogleDriveController, ListPage
from .git_runner import CommandResult, GitRunner
from .github_controller import GitHubController

__all__ = [
    "GoogleDriveController",
    "ListPage",
    "GitHubController",
    "GitRunner",
    "CommandResult",
]
