"""Loading and validation of `sync.json`."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from drivemirror.errors import ValidationError

logger = logging.getLogger(__name__)

UNTRACK_POLICIES: tuple[str, ...] = ("ignore", "remove", "request")


@dataclass(slots=True, frozen=True)
class DriveTarget:
    drive_folder_id: str
    drive_url: str = ""
    on_untrack: str = "ignore"

    def __post_init__(self) -> None:
        if not isinstance(self.drive_folder_id, str) or not self.drive_folder_id.strip():
            raise ValidationError("drive_folder_id must be a non-empty string")
        if self.on_untrack not in UNTRACK_POLICIES:
            raise ValidationError(
                "on_untrack must be one of: ignore, remove, request",
                details={"on_untrack": self.on_untrack, "folder_id": self.drive_folder_id},
            )


@dataclass(slots=True, frozen=True)
class SourceConfig:
    repo: str

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo.split("/", 1)[1]


@dataclass(slots=True, frozen=True)
class SyncConfig:
    """
    Parsed `sync.json`.

    Example:
        {
          "source": {"repo": "owner/name"},
          "ignore": ["drafts/**"],
          "targets": {"forks": [{"drive_folder_id": "...", "on_untrack": "ignore"}]}
        }
    """

    source: SourceConfig
    ignore: tuple[str, ...] = ()
    targets: tuple[DriveTarget, ...] = ()


def parse_sync_config(data: Any) -> SyncConfig:
    """
    Validate a decoded `sync.json` document.

    Raises:
        ValidationError: on any structural problem.
    """
    if not isinstance(data, dict):
        raise ValidationError("sync.json must contain a JSON object")

    source = data.get("source")
    if not isinstance(source, dict):
        raise ValidationError("sync.json: 'source' must be an object")
    repo = source.get("repo")
    if not isinstance(repo, str) or repo.count("/") != 1 or not all(repo.split("/")):
        raise ValidationError(
            "sync.json: 'source.repo' must look like 'owner/name'",
            details={"repo": repo},
        )

    ignore = data.get("ignore", [])
    if not isinstance(ignore, list) or not all(isinstance(p, str) for p in ignore):
        raise ValidationError("sync.json: 'ignore' must be a list of strings")

    targets = data.get("targets", {})
    if not isinstance(targets, dict):
        raise ValidationError("sync.json: 'targets' must be an object")
    forks = targets.get("forks", [])
    if not isinstance(forks, list):
        raise ValidationError("sync.json: 'targets.forks' must be a list")

    parsed: list[DriveTarget] = []
    for index, fork in enumerate(forks):
        if not isinstance(fork, dict):
            raise ValidationError(
                "sync.json: each target must be an object",
                details={"index": index},
            )
        drive_url = fork.get("drive_url", "")
        parsed.append(
            DriveTarget(
                drive_folder_id=fork.get("drive_folder_id", ""),
                drive_url=drive_url if isinstance(drive_url, str) else "",
                on_untrack=fork.get("on_untrack") or "ignore",
            )
        )

    return SyncConfig(
        source=SourceConfig(repo=repo),
        ignore=tuple(p for p in ignore if p.strip()),
        targets=tuple(parsed),
    )


def load_sync_config(path: Union[str, Path]) -> SyncConfig:
    """Read and validate `sync.json` from disk."""
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(
            "Failed to read sync config",
            details={"path": str(config_path)},
            cause=exc,
        ) from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            f"Failed to parse sync config: {exc.msg}",
            details={"path": str(config_path), "line": exc.lineno},
            cause=exc,
        ) from exc

    config = parse_sync_config(data)
    logger.debug(
        "Loaded %s: repo=%s, %d ignore pattern(s), %d target(s)",
        config_path,
        config.source.repo,
        len(config.ignore),
        len(config.targets),
    )
    return config
