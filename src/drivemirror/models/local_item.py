"""Data model for the scanned working tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(slots=True, frozen=True)
class LocalItem:
    """One regular file under the scan root; `relative_path` uses '/' separators."""

    relative_path: str
    content_hash: str


@dataclass(slots=True, frozen=True)
class SidecarRecord:
    """
    Metadata stored in a sidecar (link) file.

    `content_type` is None when the sidecar body could not be parsed and only
    the id embedded in the filename is known.
    """

    id: str
    name: str
    content_type: Optional[str] = None
    modified_at: Optional[datetime] = None
    content_hash: Optional[str] = None
    view_url: Optional[str] = None

    def identity(self) -> dict[str, Optional[str]]:
        return {"id": self.id, "content_type": self.content_type, "name": self.name}


@dataclass(slots=True)
class LocalTree:
    root: Path
    items: dict[str, LocalItem] = field(default_factory=dict)
    sidecars: dict[str, SidecarRecord] = field(default_factory=dict)
