"""Public model exports for drivemirror."""

from __future__ import annotations

from .local_item import LocalItem, LocalTree, SidecarRecord
from .remote_item import (
    Permission,
    RemoteItem,
    RemoteTree,
    permissions_from_payload,
    remote_item_from_payload,
)
from .results import (
    MaterializeResult,
    PublishResult,
    RunReport,
    TargetReport,
    UntrackedItem,
    UntrackedResolution,
)

__all__ = [
    "Permission",
    "RemoteItem",
    "RemoteTree",
    "permissions_from_payload",
    "remote_item_from_payload",
    "LocalItem",
    "LocalTree",
    "SidecarRecord",
    "UntrackedItem",
    "UntrackedResolution",
    "MaterializeResult",
    "PublishResult",
    "TargetReport",
    "RunReport",
]
