"""Rendering of document pages to raster images."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Union

from drivemirror.errors import PartialItemFailure

logger = logging.getLogger(__name__)


class PageRenderer(Protocol):
    """Anything that can count and rasterize the pages of a document (PDF bytes)."""

    def page_count(self, document: bytes) -> int: ...

    def render_page(self, document: bytes, index: int, resolution: int) -> bytes: ...


def page_filename(index: int) -> str:
    """1-based, zero-padded PNG name for a 0-based page index."""
    return f"{index + 1:04d}.png"


def render_pages_to_images(
    renderer: PageRenderer,
    document: bytes,
    output_dir: Union[str, Path],
    resolution: int = 72,
) -> list[Path]:
    """
    Render every page of `document` into `output_dir` as 0001.png, 0002.png, ...

    PNG files left in `output_dir` by an earlier render are deleted first. A
    page that fails to render is logged and skipped; pages already written
    are kept.

    Raises:
        PartialItemFailure: if the page count cannot be determined.
    """
    if resolution <= 0:
        raise ValueError("resolution must be positive")

    try:
        count = renderer.page_count(document)
    except Exception as exc:
        raise PartialItemFailure("Could not read document pages", cause=exc) from exc

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    for stale in sorted(out.glob("*.png")):
        stale.unlink()

    written: list[Path] = []
    for index in range(count):
        target = out / page_filename(index)
        try:
            image = renderer.render_page(document, index, resolution)
            target.write_bytes(image)
        except Exception as exc:
            logger.warning("Failed to render page %d into %s: %s", index + 1, out, exc)
            continue
        written.append(target)

    logger.debug("Rendered %d/%d page(s) into %s", len(written), count, out)
    return written
