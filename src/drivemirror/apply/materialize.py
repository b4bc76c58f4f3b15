"""Execution of plan actions against the working tree."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from drivemirror.classify.sidecar import write_sidecar
from drivemirror.classify.strategy import StrategyKind
from drivemirror.errors import (
    DriveMirrorError,
    InvalidStateError,
    PartialItemFailure,
    describe_error,
)
from drivemirror.models import MaterializeResult, RemoteItem
from drivemirror.plan.actions import Action, Materialize, NoOp, Remove, validate_unique_targets
from drivemirror.util.cancel import CancellationToken

from .render import PageRenderer, render_pages_to_images

logger = logging.getLogger(__name__)

CONVERSION_COPY_SUFFIX = " (temp conversion)"


class Materializer:
    """
    Apply Materialize/Remove actions under a root directory.

    Content is fetched by one function per strategy kind. Files are written
    through a temporary file and renamed into place, so a failed item never
    leaves a truncated file behind.
    """

    def __init__(
        self,
        drive: Any,
        root: Union[str, Path],
        *,
        cancel: Optional[CancellationToken] = None,
        renderer: Optional[PageRenderer] = None,
        render_dir: Optional[Union[str, Path]] = None,
        render_resolution: int = 72,
    ) -> None:
        self._drive = drive
        self._root = Path(root)
        self._cancel = cancel or CancellationToken()
        self._renderer = renderer
        self._render_dir = Path(render_dir) if render_dir is not None else None
        self._render_resolution = render_resolution
        self._fetchers: dict[StrategyKind, Callable[[Materialize], bytes]] = {
            StrategyKind.DIRECT_DOWNLOAD: self._fetch_download,
            StrategyKind.DIRECT_EXPORT: self._fetch_export,
            StrategyKind.CONVERT_THEN_EXPORT: self._fetch_convert_then_export,
        }

    def apply(
        self,
        actions: Iterable[Action],
        *,
        apply_removals: bool = True,
    ) -> list[MaterializeResult]:
        """
        Apply actions in order. NoOps are skipped silently.

        Removals are reported as skipped when `apply_removals` is False.

        Raises:
            InvalidStateError: if two actions target the same path.
        """
        action_list = list(actions)
        validate_unique_targets(action_list)

        results: list[MaterializeResult] = []
        for action in action_list:
            if isinstance(action, NoOp):
                continue
            if self._cancel.cancelled:
                results.append(MaterializeResult(path=action.target_path, status="skipped"))
                continue
            if isinstance(action, Materialize):
                results.append(self._apply_materialize(action))
            elif isinstance(action, Remove):
                if apply_removals:
                    results.append(self._apply_remove(action))
                else:
                    logger.info("Keeping %s (remote item %s is gone)", action.local_path, action.remote_id)
                    results.append(
                        MaterializeResult(path=action.local_path, status="skipped", remote_id=action.remote_id)
                    )
            else:
                raise InvalidStateError(f"Unsupported action: {action!r}")
        return results

    # ----------------------------
    # Actions
    # ----------------------------
    def _apply_materialize(self, action: Materialize) -> MaterializeResult:
        item = action.item
        result = MaterializeResult(
            path=action.target_path,
            status="success",
            remote_id=item.id,
            view_url=item.view_url,
        )
        try:
            content: Optional[bytes] = None
            if action.content_path is not None:
                fetch = self._fetchers.get(action.strategy.kind)
                if fetch is None:
                    raise InvalidStateError(
                        "Strategy has no content to fetch",
                        details={"kind": action.strategy.kind.value, "path": action.content_path},
                    )
                content = fetch(action)
                self._write(action.content_path, content)
                result.written.append(action.content_path)

            self._write(action.sidecar_path, write_sidecar(item).encode("utf-8"))
            result.written.append(action.sidecar_path)

            for stale in action.stale_paths:
                if self._delete(stale):
                    result.removed.append(stale)
        except (DriveMirrorError, OSError) as exc:
            logger.warning("Failed to materialize %s (%s): %s", action.path, item.id, describe_error(exc))
            result.status = "failed"
            result.error_type = exc.__class__.__name__
            result.error_message = str(exc)
            return result

        logger.info("Materialized %s (%s)", action.path, action.reason)

        if content is not None and self._renderer is not None and self._render_dir is not None:
            result.rendered = self._render(action, content)
        return result

    def _apply_remove(self, action: Remove) -> MaterializeResult:
        result = MaterializeResult(path=action.local_path, status="success", remote_id=action.remote_id)
        try:
            if self._delete(action.local_path):
                result.removed.append(action.local_path)
        except OSError as exc:
            logger.warning("Failed to remove %s: %s", action.local_path, exc)
            result.status = "failed"
            result.error_type = exc.__class__.__name__
            result.error_message = str(exc)
            return result
        logger.info("Removed %s (%s)", action.local_path, action.reason)
        return result

    # ----------------------------
    # Content fetchers (one per strategy kind)
    # ----------------------------
    def _fetch_download(self, action: Materialize) -> bytes:
        return self._drive.download(action.item.id)

    def _fetch_export(self, action: Materialize) -> bytes:
        return self._drive.export(action.item.id, action.strategy.export_type)

    def _fetch_convert_then_export(self, action: Materialize) -> bytes:
        item: RemoteItem = action.item
        temp_id = self._drive.copy(
            item.id,
            action.strategy.intermediate_type,
            f"{item.name}{CONVERSION_COPY_SUFFIX}",
        )
        logger.debug("Created temporary conversion copy %s of %s", temp_id, item.id)
        try:
            return self._drive.export(temp_id, action.strategy.export_type)
        finally:
            try:
                self._drive.delete_permanently(temp_id)
            except DriveMirrorError as exc:
                logger.warning(
                    "Failed to delete temporary conversion copy %s of %s: %s",
                    temp_id,
                    item.id,
                    describe_error(exc),
                )

    # ----------------------------
    # File system
    # ----------------------------
    def _abs(self, relative_path: str) -> Path:
        target = (self._root / relative_path).resolve()
        root = self._root.resolve()
        if target != root and root not in target.parents:
            raise InvalidStateError("Path escapes the sync root", details={"path": relative_path})
        return target

    def _write(self, relative_path: str, data: bytes) -> None:
        target = self._abs(relative_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".drivemirror-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _delete(self, relative_path: str) -> bool:
        target = self._abs(relative_path)
        if not target.exists():
            return False
        target.unlink()
        self._prune_empty_dirs(target.parent)
        return True

    def _prune_empty_dirs(self, directory: Path) -> None:
        root = self._root.resolve()
        current = directory
        while current != root and root in current.parents:
            try:
                current.rmdir()
            except OSError:
                return
            current = current.parent

    def _render(self, action: Materialize, content: bytes) -> list[str]:
        assert self._renderer is not None and self._render_dir is not None
        stem = action.content_path[:-4] if action.content_path.lower().endswith(".pdf") else action.content_path
        out_dir = self._render_dir / stem
        previous = sorted(out_dir.glob("*.png")) if out_dir.is_dir() else []
        try:
            pages = render_pages_to_images(self._renderer, content, out_dir, self._render_resolution)
        except PartialItemFailure as exc:
            logger.warning("Could not render %s: %s", action.content_path, describe_error(exc))
            return []
        # deleted pages of a longer earlier render are reported so they get unstaged
        gone = [str(p) for p in previous if not p.exists()]
        return [str(p) for p in pages] + gone
