"""drivemirror public API."""

from __future__ import annotations

from drivemirror.apply import Materializer, PageRenderer, render_pages_to_images
from drivemirror.auth import AuthInfo, DriveAuthClient
from drivemirror.classify import Strategy, StrategyKind, classify
from drivemirror.config import DriveTarget, RunContext, SyncConfig, load_sync_config
from drivemirror.errors import (
    ApiError,
    AuthError,
    CommandError,
    ConflictError,
    DriveMirrorError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    LocalScanError,
    NetworkError,
    NotFoundError,
    PartialItemFailure,
    PermissionError,
    PublishError,
    QuotaExceededError,
    RateLimitError,
    RemoteListingError,
    RunCancelledError,
    ServerError,
    TransientRemoteError,
    ValidationError,
    map_http_error,
)
from drivemirror.manager import SyncManager
from drivemirror.models import (
    LocalItem,
    LocalTree,
    Permission,
    PublishResult,
    RemoteItem,
    RemoteTree,
    RunReport,
    TargetReport,
    UntrackedItem,
    UntrackedResolution,
)
from drivemirror.plan import ActionKind, Materialize, NoOp, ReconciliationEngine, Remove, SyncPlan
from drivemirror.policy import UntrackedPolicy
from drivemirror.publish import GitWorkspace, PublishProtocol
from drivemirror.scan import LocalTreeScanner, RemoteTreeScanner
from drivemirror.util.cancel import CancellationToken

__all__ = [
    # High-level
    "SyncManager",
    "SyncConfig",
    "DriveTarget",
    "RunContext",
    "load_sync_config",
    "CancellationToken",
    # Auth
    "AuthInfo",
    "DriveAuthClient",
    # Components
    "LocalTreeScanner",
    "RemoteTreeScanner",
    "ReconciliationEngine",
    "UntrackedPolicy",
    "Materializer",
    "PageRenderer",
    "render_pages_to_images",
    "GitWorkspace",
    "PublishProtocol",
    "classify",
    "Strategy",
    "StrategyKind",
    # Plan / Models
    "ActionKind",
    "Materialize",
    "Remove",
    "NoOp",
    "SyncPlan",
    "RemoteItem",
    "Permission",
    "RemoteTree",
    "LocalItem",
    "LocalTree",
    "UntrackedItem",
    "UntrackedResolution",
    "PublishResult",
    "TargetReport",
    "RunReport",
    # Errors
    "DriveMirrorError",
    "TransientRemoteError",
    "RateLimitError",
    "QuotaExceededError",
    "ServerError",
    "NetworkError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "ApiError",
    "ValidationError",
    "InvalidStateError",
    "PartialItemFailure",
    "LocalScanError",
    "RemoteListingError",
    "CommandError",
    "PublishError",
    "RunCancelledError",
    "HttpErrorInfo",
    "map_http_error",
]
