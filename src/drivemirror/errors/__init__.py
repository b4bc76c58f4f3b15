"""Public error exports for drivemirror."""

from __future__ import annotations

from .exceptions import (
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
    describe_error,
    map_http_error,
)

__all__ = [
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
    "describe_error",
]
