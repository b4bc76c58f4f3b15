"""Google Drive API controller."""

from __future__ import annotations

import io
import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, TypeVar

from drivemirror.auth import AuthInfo, DriveAuthClient
from drivemirror.errors import (
    ApiError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    TransientRemoteError,
    map_http_error,
)

from .fields import FILE_FIELDS, LIST_FIELDS, PERMISSION_FIELDS, PERMISSION_LIST_FIELDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


@dataclass(slots=True)
class ListPage:
    """One page of a folder listing (raw Drive `files` dicts)."""

    items: list[dict[str, Any]] = field(default_factory=list)
    next_page_token: Optional[str] = None


class GoogleDriveController:
    """
    Drive API controller.

    Notes:
        - The Drive `service` object is NOT exposed.
        - One service object is built per thread; the httplib2 transport
          underneath is not thread-safe.
        - `supports_all_drives` is applied to all requests consistently.
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        scopes: Optional[Sequence[str]] = None,
        supports_all_drives: bool = True,
        http_timeout: float = 60.0,
    ) -> None:
        use_scopes = list(scopes) if scopes is not None else list(DriveAuthClient.DEFAULT_SCOPES)
        client = DriveAuthClient(auth_info, http_timeout=http_timeout)
        client.get_credentials(use_scopes, ensure_valid=True)
        self._init(
            lambda: client.build_drive_service(use_scopes, ensure_valid=True),
            supports_all_drives=supports_all_drives,
        )

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        supports_all_drives: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "GoogleDriveController":
        """Create controller from a pre-built Drive service shared by all threads (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init(lambda: service, supports_all_drives=supports_all_drives, sleep=sleep)
        return obj

    def _init(
        self,
        service_factory: Callable[[], Any],
        *,
        supports_all_drives: bool,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._service_factory = service_factory
        self._local = threading.local()
        self._supports_all_drives = supports_all_drives
        self._retry_policy = _RetryPolicy()
        self._sleep = sleep

    @property
    def _service(self) -> Any:
        service = getattr(self._local, "service", None)
        if service is None:
            service = self._service_factory()
            self._local.service = service
        return service

    # ----------------------------
    # Public API
    # ----------------------------
    def get(self, item_id: str) -> dict[str, Any]:
        req = self._service.files().get(
            fileId=item_id,
            fields=FILE_FIELDS,
            **self._common_get_kwargs(),
        )
        return self._execute(req.execute)

    def list_children_page(
        self,
        folder_id: str,
        page_token: Optional[str] = None,
        page_size: int = 1000,
    ) -> ListPage:
        """List one page of the non-trashed children of `folder_id`."""
        req = self._service.files().list(
            q=f"'{folder_id}' in parents and trashed=false",
            fields=LIST_FIELDS,
            pageToken=page_token,
            pageSize=page_size,
            **self._common_list_kwargs(),
        )
        data = self._execute(req.execute)
        files = data.get("files", []) or []
        token = data.get("nextPageToken")
        return ListPage(
            items=[f for f in files if isinstance(f, dict)],
            next_page_token=token if isinstance(token, str) and token else None,
        )

    def list_permissions(self, item_id: str) -> list[dict[str, Any]]:
        """All permissions of an item, following pagination."""
        result: list[dict[str, Any]] = []
        page_token: Optional[str] = None

        while True:
            req = self._service.permissions().list(
                fileId=item_id,
                fields=PERMISSION_LIST_FIELDS,
                pageToken=page_token,
                **self._common_get_kwargs(),
            )
            data = self._execute(req.execute)
            result.extend(p for p in data.get("permissions", []) or [] if isinstance(p, dict))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return result

    def export(self, item_id: str, mime_type: str) -> bytes:
        """Export a Google-native document to `mime_type`."""
        req = self._service.files().export_media(fileId=item_id, mimeType=mime_type)
        data = self._execute(req.execute)
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    def download(self, item_id: str) -> bytes:
        """Download the raw bytes of a non-native file."""
        try:
            from googleapiclient.http import MediaIoBaseDownload
        except Exception as exc:  # pragma: no cover
            raise ApiError("google-api-python-client is not available", cause=exc) from exc

        req = self._service.files().get_media(
            fileId=item_id,
            **self._common_get_kwargs(),
        )
        buffer = io.BytesIO()
        downloader = MediaIoBaseDownload(buffer, req)
        done = False
        while not done:
            _status, done = self._execute(downloader.next_chunk)
        return buffer.getvalue()

    def copy(self, item_id: str, new_type: str, new_name: str) -> str:
        """Copy an item converting it to `new_type`; returns the new id."""
        if not new_name:
            raise InvalidArgumentError("new_name must be a non-empty string")
        body = {"name": new_name, "mimeType": new_type}
        req = self._service.files().copy(
            fileId=item_id,
            body=body,
            fields="id",
            **self._common_write_kwargs(),
        )
        data = self._execute(req.execute)
        new_id = data.get("id")
        if not isinstance(new_id, str) or not new_id:
            raise ApiError("Drive copy returned no id", details={"item_id": item_id})
        return new_id

    def trash(self, item_id: str) -> None:
        body = {"trashed": True}
        req = self._service.files().update(
            fileId=item_id,
            body=body,
            fields="id",
            **self._common_write_kwargs(),
        )
        self._execute(req.execute)

    def delete_permanently(self, item_id: str) -> None:
        req = self._service.files().delete(
            fileId=item_id,
            **self._common_write_kwargs(),
        )
        self._execute(req.execute)

    def request_ownership_transfer(self, item_id: str, new_owner: str) -> None:
        """
        Ask the current owner to transfer `item_id` to `new_owner`.

        An existing permission of `new_owner` is upgraded; otherwise a new
        owner permission is created. Either way the owner has to approve.
        """
        existing_id: Optional[str] = None
        for perm in self.list_permissions(item_id):
            if perm.get("emailAddress") == new_owner and isinstance(perm.get("id"), str):
                existing_id = perm["id"]
                break

        if existing_id is not None:
            req = self._service.permissions().update(
                fileId=item_id,
                permissionId=existing_id,
                body={"role": "owner"},
                transferOwnership=True,
                fields=PERMISSION_FIELDS,
                **self._common_write_kwargs(),
            )
        else:
            req = self._service.permissions().create(
                fileId=item_id,
                body={"role": "owner", "type": "user", "emailAddress": new_owner},
                transferOwnership=True,
                sendNotificationEmail=True,
                emailMessage=(
                    f"Please approve ownership transfer of this item to {new_owner} "
                    f"so it can be mirrored. Item ID: {item_id}"
                ),
                fields=PERMISSION_FIELDS,
                **self._common_write_kwargs(),
            )
        self._execute(req.execute)

    def accept_ownership_transfer(self, item_id: str, permission_id: str) -> None:
        """Accept a pending transfer; the body must stay empty."""
        req = self._service.permissions().update(
            fileId=item_id,
            permissionId=permission_id,
            body={},
            transferOwnership=True,
            fields="id,role",
            **self._common_write_kwargs(),
        )
        self._execute(req.execute)

    # ----------------------------
    # Internals
    # ----------------------------
    def _common_get_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _common_list_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True, "includeItemsFromAllDrives": True}

    def _common_write_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                    logger.debug(
                        "Transient Drive error (%s), retrying in %.1fs",
                        mapped.__class__.__name__,
                        delay,
                    )
                    self._sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception) -> bool:
        return isinstance(exc, TransientRemoteError)

    def _map_exception(self, exc: Exception) -> Exception:
        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if HttpError is not None and isinstance(exc, HttpError):
            info = _http_error_to_info(exc)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Drive API error", cause=exc)


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = None
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                details["domain"] = errors[0].get("domain")
                details["reason_detail"] = errors[0].get("reason")
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        try:
            status_code = int(status_code)
        except (TypeError, ValueError):
            status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
