"""Mapping from Drive MIME types to materialization strategies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from drivemirror.util.mime import (
    GOOGLE_DOCUMENT,
    GOOGLE_DRAWING,
    GOOGLE_PRESENTATION,
    GOOGLE_SPREADSHEET,
    PDF_MIME,
)


class StrategyKind(str, Enum):
    """How a remote item is turned into local files."""

    DIRECT_EXPORT = "DIRECT_EXPORT"
    DIRECT_DOWNLOAD = "DIRECT_DOWNLOAD"
    CONVERT_THEN_EXPORT = "CONVERT_THEN_EXPORT"
    LINK_ONLY = "LINK_ONLY"


@dataclass(slots=True, frozen=True)
class Strategy:
    kind: StrategyKind
    export_type: Optional[str] = None
    intermediate_type: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return self.kind is not StrategyKind.LINK_ONLY


EXPORTABLE_NATIVE_TYPES: frozenset[str] = frozenset(
    {GOOGLE_DOCUMENT, GOOGLE_SPREADSHEET, GOOGLE_PRESENTATION, GOOGLE_DRAWING}
)

CONVERSION_TABLE: dict[str, str] = {
    # word processing
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": GOOGLE_DOCUMENT,
    "application/msword": GOOGLE_DOCUMENT,
    "application/vnd.oasis.opendocument.text": GOOGLE_DOCUMENT,
    "application/rtf": GOOGLE_DOCUMENT,
    "text/rtf": GOOGLE_DOCUMENT,
    "text/plain": GOOGLE_DOCUMENT,
    # presentations
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": GOOGLE_PRESENTATION,
    "application/vnd.ms-powerpoint": GOOGLE_PRESENTATION,
    "application/vnd.oasis.opendocument.presentation": GOOGLE_PRESENTATION,
    # spreadsheets
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": GOOGLE_SPREADSHEET,
    "application/vnd.ms-excel": GOOGLE_SPREADSHEET,
    "application/vnd.oasis.opendocument.spreadsheet": GOOGLE_SPREADSHEET,
}

_DOWNLOAD = Strategy(StrategyKind.DIRECT_DOWNLOAD)
_EXPORT_PDF = Strategy(StrategyKind.DIRECT_EXPORT, export_type=PDF_MIME)
_LINK_ONLY = Strategy(StrategyKind.LINK_ONLY)


def classify(content_type: str) -> Strategy:
    """
    Choose the materialization strategy for a MIME type.

    The mapping is total: anything not recognised is LINK_ONLY.
    """
    if content_type in EXPORTABLE_NATIVE_TYPES:
        return _EXPORT_PDF
    if content_type == PDF_MIME:
        return _DOWNLOAD
    intermediate = CONVERSION_TABLE.get(content_type)
    if intermediate is not None:
        return Strategy(
            StrategyKind.CONVERT_THEN_EXPORT,
            export_type=PDF_MIME,
            intermediate_type=intermediate,
        )
    return _LINK_ONLY


def content_filename(name: str, strategy: Strategy) -> Optional[str]:
    """File name of the content artifact, or None for sidecar-only items."""
    if not strategy.has_content:
        return None
    if strategy.kind is StrategyKind.DIRECT_DOWNLOAD or name.lower().endswith(".pdf"):
        return name
    return f"{name}.pdf"
