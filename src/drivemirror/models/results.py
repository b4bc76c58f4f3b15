"""Result models for one sync run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

ResolutionStatus = Literal["reported", "resolved", "failed", "skipped"]
MaterializeStatus = Literal["success", "failed", "skipped"]
PublishStatus = Literal["created", "updated", "no_changes"]


@dataclass(slots=True, frozen=True)
class UntrackedItem:
    """
    A remote item with no local counterpart under this run's tracking rules.

    `ownership_transfer_requested` is only ever True on a copy made after a
    transfer request call returned success.
    """

    id: str
    path: str
    name: str
    url: Optional[str] = None
    owner_email: Optional[str] = None
    ownership_transfer_requested: bool = False


@dataclass(slots=True, frozen=True)
class UntrackedResolution:
    item: UntrackedItem
    status: ResolutionStatus
    error_type: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(slots=True)
class MaterializeResult:
    """Outcome of applying one Materialize or Remove action."""

    path: str
    status: MaterializeStatus
    written: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    rendered: list[str] = field(default_factory=list)
    remote_id: Optional[str] = None
    view_url: Optional[str] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(slots=True, frozen=True)
class PublishResult:
    status: PublishStatus
    base: str
    number: Optional[int] = None
    url: Optional[str] = None
    attempts: int = 0


@dataclass(slots=True)
class TargetReport:
    """Aggregate outcome for one configured Drive folder."""

    folder_id: str
    summary: dict[str, int] = field(default_factory=dict)
    results: list[MaterializeResult] = field(default_factory=list)
    untracked: list[UntrackedResolution] = field(default_factory=list)
    kept_paths: list[str] = field(default_factory=list)
    accepted_transfers: list[str] = field(default_factory=list)
    dropped_folders: list[str] = field(default_factory=list)
    commit: Optional[str] = None
    publish: Optional[PublishResult] = None


@dataclass(slots=True)
class RunReport:
    run_id: str
    targets: list[TargetReport] = field(default_factory=list)
    cancelled: bool = False
