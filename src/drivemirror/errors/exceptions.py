"""Exception hierarchy and HTTP error mapping for drivemirror."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class DriveMirrorError(Exception):
    """
    Base exception for drivemirror.

    Attributes:
        details: Optional structured information (e.g., HTTP status, item id).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause

    @property
    def status_code(self) -> Optional[int]:
        """Upstream HTTP status, when the error came from an API response."""
        value = self.details.get("status_code")
        return value if isinstance(value, int) else None


class TransientRemoteError(DriveMirrorError):
    """Base for failures worth retrying (rate limits, 5xx, timeouts)."""


class RateLimitError(TransientRemoteError):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(TransientRemoteError):
    """Raised when quota is exceeded (HTTP 403 with quota-related reason)."""


class ServerError(TransientRemoteError):
    """Raised for HTTP 5xx responses."""


class NetworkError(TransientRemoteError):
    """Raised when network/timeout issues prevent the request."""


class AuthError(DriveMirrorError):
    """Raised when credentials cannot be loaded, refreshed or are rejected (401)."""


class PermissionError(DriveMirrorError):
    """Raised when access is denied (HTTP 403 non-quota). Never retried."""


class InvalidArgumentError(DriveMirrorError):
    """Raised when request arguments are invalid (HTTP 400, etc.)."""


class NotFoundError(DriveMirrorError):
    """Raised when a remote resource is not found (HTTP 404)."""


class ConflictError(DriveMirrorError):
    """Raised on HTTP 409/412/422."""


class ApiError(DriveMirrorError):
    """Raised for unclassified API errors."""


class ValidationError(DriveMirrorError):
    """Raised for malformed config, credentials or items missing required fields."""


class InvalidStateError(DriveMirrorError):
    """Raised when a plan or component is used in an invalid state."""


class PartialItemFailure(DriveMirrorError):
    """One item (file, permission fetch, conversion) failed; the run continues."""


class LocalScanError(DriveMirrorError):
    """Raised when the local tree cannot be scanned at all."""


class RemoteListingError(DriveMirrorError):
    """Raised when the root of a remote tree cannot be listed."""


class CommandError(DriveMirrorError):
    """Raised when a version-control command exits non-zero."""


class PublishError(DriveMirrorError):
    """Raised when the pull request cannot be created or updated."""


class RunCancelledError(DriveMirrorError):
    """Raised when cancellation was requested at a point where partial results are unsafe."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to drivemirror exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "dailyLimitExceeded",
    "usageLimits",
    "storageQuotaExceeded",
)


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in _QUOTA_REASON_KEYWORDS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> DriveMirrorError:
    """
    Map an HTTP error to a drivemirror exception.

    Policy:
        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> PermissionError, or QuotaExceededError if quota-related
        - 404 -> NotFoundError
        - 409/412/422 -> ConflictError
        - 429 -> RateLimitError
        - 5xx -> ServerError
        - otherwise -> ApiError

    The upstream message is kept verbatim as the exception message.
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        if _is_quota_reason(info.reason):
            return QuotaExceededError(message, details=details, cause=cause)
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412, 422):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)
    if 500 <= info.status_code <= 599:
        return ServerError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)


def describe_error(exc: BaseException) -> str:
    """Render an error as `Type: message (HTTP status)` for logs and reports."""
    text = f"{exc.__class__.__name__}: {exc}"
    status = exc.status_code if isinstance(exc, DriveMirrorError) else None
    if status:
        text += f" (HTTP {status})"
    return text
