"""Sidecar (link) file naming, serialization and parsing."""

from __future__ import annotations

import json
import re
from typing import Optional

from drivemirror.errors import ValidationError
from drivemirror.models import RemoteItem, SidecarRecord
from drivemirror.util.mime import PDF_MIME
from drivemirror.util.time import parse_rfc3339_or_none, to_rfc3339

SIDECAR_SUFFIX: str = ".link.json"

TYPE_EXTENSIONS: dict[str, str] = {
    "application/vnd.google-apps.document": "doc",
    "application/vnd.google-apps.spreadsheet": "sheet",
    "application/vnd.google-apps.presentation": "slides",
    "application/vnd.google-apps.form": "form",
    "application/vnd.google-apps.drawing": "drawing",
    "application/vnd.google-apps.script": "script",
    "application/vnd.google-apps.fusiontable": "fusiontable",
    "application/vnd.google-apps.site": "site",
    "application/vnd.google-apps.map": "map",
    PDF_MIME: "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
}

_TYPED_SUFFIXES: tuple[str, ...] = tuple(
    sorted({f".{ext}{SIDECAR_SUFFIX}" for ext in TYPE_EXTENSIONS.values()}, key=len, reverse=True)
)

_DASH_RUN = re.compile(r"--+")


def sidecar_suffix(content_type: Optional[str]) -> str:
    """`.<ext>.link.json` for known types, `.link.json` otherwise."""
    ext = TYPE_EXTENSIONS.get(content_type or "")
    return f".{ext}{SIDECAR_SUFFIX}" if ext else SIDECAR_SUFFIX


def sidecar_name(name: str, item_id: str, content_type: Optional[str]) -> str:
    """`<name>--<id><suffix>`; runs of dashes in the name collapse to one."""
    safe_name = _DASH_RUN.sub("-", name)
    return f"{safe_name}--{item_id}{sidecar_suffix(content_type)}"


def is_sidecar_name(filename: str) -> bool:
    return parse_sidecar_name(filename) is not None


def parse_sidecar_name(filename: str) -> Optional[tuple[str, str]]:
    """
    Recover `(name, id)` from a sidecar file name.

    Returns None when the name does not follow the sidecar pattern.
    """
    if not filename.endswith(SIDECAR_SUFFIX):
        return None

    stem = filename[: -len(SIDECAR_SUFFIX)]
    for suffix in _TYPED_SUFFIXES:
        if filename.endswith(suffix):
            stem = filename[: -len(suffix)]
            break

    name, sep, item_id = stem.partition("--")
    if not sep:
        return None
    # a name ending in '-' leaves extra dashes in front of the id
    while item_id.startswith("-"):
        name += "-"
        item_id = item_id[1:]
    if not name or not item_id:
        return None
    return name, item_id


def write_sidecar(item: RemoteItem) -> str:
    """Serialize a remote item's metadata; key order is fixed."""
    payload = {
        "id": item.id,
        "name": item.name,
        "mimeType": item.content_type,
        "modifiedTime": to_rfc3339(item.modified_at) if item.modified_at else None,
        "md5Checksum": item.content_hash,
        "webViewLink": item.view_url,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def parse_sidecar(text: str) -> SidecarRecord:
    """
    Parse sidecar JSON text.

    Raises:
        ValidationError: if the text is not a JSON object with string `id` and `name`.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid sidecar JSON: {exc.msg}", cause=exc) from exc

    if not isinstance(data, dict):
        raise ValidationError("Sidecar must contain a JSON object")

    item_id = data.get("id")
    name = data.get("name")
    if not isinstance(item_id, str) or not item_id:
        raise ValidationError("Sidecar has no id")
    if not isinstance(name, str) or not name:
        raise ValidationError("Sidecar has no name", details={"id": item_id})

    def _opt_str(key: str) -> Optional[str]:
        value = data.get(key)
        return value if isinstance(value, str) and value else None

    return SidecarRecord(
        id=item_id,
        name=name,
        content_type=_opt_str("mimeType"),
        modified_at=parse_rfc3339_or_none(data.get("modifiedTime")),
        content_hash=_opt_str("md5Checksum"),
        view_url=_opt_str("webViewLink"),
    )
