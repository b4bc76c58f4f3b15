"""Data model for items discovered in the remote Drive tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from drivemirror.errors import ValidationError
from drivemirror.util.mime import is_folder
from drivemirror.util.time import parse_rfc3339_or_none


@dataclass(slots=True, frozen=True)
class Permission:
    """One Drive permission entry on an item."""

    principal: Optional[str]
    role: str
    pending_transfer: bool = False
    permission_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class RemoteItem:
    """
    One node (file or folder) of the remote tree.

    Built fresh on every traversal and never mutated; `id` is unique within
    one traversal. `content_hash` is absent for folders and Google-native types.
    """

    id: str
    name: str
    content_type: str
    content_hash: Optional[str] = None
    modified_at: Optional[datetime] = None
    owned_by_service_identity: bool = False
    permissions: tuple[Permission, ...] = ()
    view_url: Optional[str] = None
    owner_email: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return is_folder(self.content_type)


@dataclass(slots=True)
class RemoteTree:
    """Result of one remote traversal: files with their logical paths and a folder index."""

    root_folder_id: str
    files: list[tuple[str, RemoteItem]] = field(default_factory=list)
    folders: dict[str, RemoteItem] = field(default_factory=dict)
    dropped_folders: list[str] = field(default_factory=list)

    def ids(self) -> set[str]:
        return {item.id for _, item in self.files}


def permissions_from_payload(payload: list[dict[str, Any]]) -> tuple[Permission, ...]:
    """Convert Drive permission dicts, keeping backend order and dropping duplicates."""
    seen: set[tuple[Optional[str], str, bool]] = set()
    result: list[Permission] = []
    for p in payload:
        if not isinstance(p, dict):
            continue
        principal = p.get("emailAddress")
        perm = Permission(
            principal=principal if isinstance(principal, str) else None,
            role=str(p.get("role") or ""),
            pending_transfer=bool(p.get("pendingOwner", False)),
            permission_id=p.get("id") if isinstance(p.get("id"), str) else None,
        )
        key = (perm.principal, perm.role, perm.pending_transfer)
        if key in seen:
            continue
        seen.add(key)
        result.append(perm)
    return tuple(result)


def remote_item_from_payload(
    data: dict[str, Any],
    *,
    service_identity: Optional[str] = None,
    permissions: tuple[Permission, ...] = (),
) -> RemoteItem:
    """
    Build a RemoteItem from a Drive `files` resource dict.

    Raises:
        ValidationError: if `id` or `name` is missing.
    """
    item_id = data.get("id")
    name = data.get("name")
    if not isinstance(item_id, str) or not item_id:
        raise ValidationError("Drive item has no id", details={"item": data})
    if not isinstance(name, str) or not name:
        raise ValidationError("Drive item has no name", details={"id": item_id})

    owner_emails = [
        o.get("emailAddress")
        for o in data.get("owners") or []
        if isinstance(o, dict) and isinstance(o.get("emailAddress"), str)
    ]
    owned = bool(service_identity) and service_identity in owner_emails

    md5 = data.get("md5Checksum")
    link = data.get("webViewLink")
    mime_type = data.get("mimeType")

    return RemoteItem(
        id=item_id,
        name=name,
        content_type=mime_type if isinstance(mime_type, str) and mime_type else "unknown",
        content_hash=md5 if isinstance(md5, str) and md5 else None,
        modified_at=parse_rfc3339_or_none(data.get("modifiedTime")),
        owned_by_service_identity=owned,
        permissions=permissions,
        view_url=link if isinstance(link, str) else None,
        owner_email=owner_emails[0] if owner_emails else None,
    )
