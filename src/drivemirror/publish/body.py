"""Pull request naming and body text."""

from __future__ import annotations

from typing import Iterable, Optional

from drivemirror.util.ids import branch_safe

HEAD_BRANCH_PREFIX = "sync-from-drive-"


def head_branch_name(folder_id: str) -> str:
    return f"{HEAD_BRANCH_PREFIX}{branch_safe(folder_id)}"


def pr_title(folder_id: str) -> str:
    return f"Sync changes from Google Drive ({folder_id})"


def commit_message(folder_id: str, run_id: str) -> str:
    return f"Sync changes from Google Drive ({folder_id})\n\nRun ID: {run_id}"


def folder_url(folder_id: str) -> str:
    return f"https://drive.google.com/drive/folders/{folder_id}"


def format_pr_body(
    folder_id: str,
    run_id: str,
    added_updated: Iterable[tuple[str, Optional[str]]],
    removed: Iterable[str],
) -> str:
    """
    Markdown body listing what the sync changed.

    `added_updated` holds `(path, view_url)` pairs; both lists are sorted so
    the same change always produces the same text.
    """
    lines = [
        f"This PR syncs changes detected in Google Drive folder [{folder_id}]({folder_url(folder_id)}).",
    ]

    items = sorted(set(added_updated), key=lambda pair: (pair[0], pair[1] or ""))
    if items:
        lines.append("")
        lines.append("**Added/Updated:**")
        for path, link in items:
            shown = f"`{path}`"
            lines.append(f"*   [{shown}]({link})" if link else f"*   {shown}")

    removed_paths = sorted(set(removed))
    if removed_paths:
        lines.append("")
        lines.append("**Removed:**")
        for path in removed_paths:
            lines.append(f"*   `{path}`")

    lines.append("")
    lines.append(f"*Source Drive Folder ID: {folder_id}*")
    lines.append(f"*Workflow Run ID: {run_id}*")
    return "\n".join(lines)
