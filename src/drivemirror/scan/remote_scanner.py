"""Recursive traversal of a Drive folder tree."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional

from drivemirror.errors import (
    DriveMirrorError,
    RemoteListingError,
    RunCancelledError,
    ValidationError,
    describe_error,
)
from drivemirror.models import (
    Permission,
    RemoteItem,
    RemoteTree,
    permissions_from_payload,
    remote_item_from_payload,
)
from drivemirror.util.cancel import CancellationToken

logger = logging.getLogger(__name__)


def safe_segment(name: str) -> str:
    """Drive names may contain '/', which cannot appear in a path segment."""
    return name.replace("/", "_")


@dataclass(slots=True)
class _FolderResult:
    files: list[tuple[str, RemoteItem]] = field(default_factory=list)
    folders: dict[str, RemoteItem] = field(default_factory=dict)
    dropped: list[str] = field(default_factory=list)

    def merge(self, other: "_FolderResult") -> None:
        self.files.extend(other.files)
        self.folders.update(other.folders)
        self.dropped.extend(other.dropped)


class RemoteTreeScanner:
    """
    Build a RemoteTree from a Drive folder.

    Folders are recursed depth-first; each recursion returns its own result
    which the caller merges. Permissions are fetched through a bounded
    thread pool.
    """

    def __init__(
        self,
        drive: Any,
        service_identity: Optional[str],
        *,
        page_size: int = 1000,
        permission_concurrency: int = 4,
        cancel: Optional[CancellationToken] = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        if permission_concurrency <= 0:
            raise ValueError("permission_concurrency must be positive")
        self._drive = drive
        self._service_identity = service_identity
        self._page_size = page_size
        self._permission_concurrency = permission_concurrency
        self._cancel = cancel or CancellationToken()

    def scan(self, root_folder_id: str) -> RemoteTree:
        """
        Traverse the tree under `root_folder_id` (root itself excluded).

        Raises:
            RemoteListingError: if the root folder cannot be listed.
            RunCancelledError: if cancellation was requested mid-scan.
        """
        seen: set[str] = set()
        with ThreadPoolExecutor(max_workers=self._permission_concurrency) as executor:
            try:
                result = self._scan_folder(root_folder_id, "", seen, executor)
            except RunCancelledError:
                raise
            except DriveMirrorError as exc:
                raise RemoteListingError(
                    f"Failed to list Drive folder {root_folder_id}: {exc}",
                    details={"folder_id": root_folder_id, **exc.details},
                    cause=exc,
                ) from exc

        files = sorted(result.files, key=lambda pair: (pair[0], pair[1].id))
        logger.info(
            "Found %d file(s) in %d folder(s) under Drive folder %s",
            len(files),
            len(result.folders),
            root_folder_id,
        )
        return RemoteTree(
            root_folder_id=root_folder_id,
            files=files,
            folders=result.folders,
            dropped_folders=result.dropped,
        )

    # ----------------------------
    # Internals
    # ----------------------------
    def _check_cancelled(self) -> None:
        if self._cancel.cancelled:
            raise RunCancelledError("Remote scan cancelled")

    def _scan_folder(
        self,
        folder_id: str,
        prefix: str,
        seen: set[str],
        executor: Executor,
    ) -> _FolderResult:
        seen.add(folder_id)
        result = _FolderResult()

        children = self._list_all(folder_id)
        subfolders: list[tuple[str, RemoteItem]] = []
        file_payloads: list[tuple[str, dict[str, Any]]] = []

        for data in children:
            try:
                entry = remote_item_from_payload(data, service_identity=self._service_identity)
            except ValidationError as exc:
                logger.warning("Skipping Drive item in folder %s: %s", folder_id, exc)
                continue
            path = f"{prefix}{safe_segment(entry.name)}"
            if entry.is_folder:
                result.folders[path] = entry
                subfolders.append((path, entry))
            else:
                file_payloads.append((path, data))

        self._check_cancelled()
        ids = [data["id"] for _, data in file_payloads]
        permissions = list(executor.map(self._fetch_permissions, ids))
        self._check_cancelled()

        for (path, data), perms in zip(file_payloads, permissions):
            item = remote_item_from_payload(
                data,
                service_identity=self._service_identity,
                permissions=perms,
            )
            logger.debug("Remote file %s (%s, %s)", path, item.id, item.content_type)
            result.files.append((path, item))

        for path, folder in subfolders:
            if folder.id in seen:
                logger.debug("Folder %s (%s) already visited", path, folder.id)
                continue
            self._check_cancelled()
            try:
                child = self._scan_folder(folder.id, f"{path}/", seen, executor)
            except RunCancelledError:
                raise
            except DriveMirrorError as exc:
                logger.warning(
                    "Dropping subtree %s (%s): %s",
                    path,
                    folder.id,
                    describe_error(exc),
                )
                result.dropped.append(path)
                continue
            result.merge(child)

        return result

    def _list_all(self, folder_id: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            self._check_cancelled()
            page = self._drive.list_children_page(folder_id, page_token, self._page_size)
            items.extend(page.items)
            page_token = page.next_page_token
            if not page_token:
                break
        return items

    def _fetch_permissions(self, item_id: str) -> tuple[Permission, ...]:
        if self._cancel.cancelled:
            return ()
        try:
            return permissions_from_payload(self._drive.list_permissions(item_id))
        except DriveMirrorError as exc:
            logger.warning(
                "Could not fetch permissions for %s, continuing without them: %s",
                item_id,
                describe_error(exc),
            )
            return ()
