"""Reconciliation of a remote Drive tree against the local working tree."""

from __future__ import annotations

import dataclasses
import logging
import posixpath
from typing import Callable, Optional

from drivemirror.classify.sidecar import parse_sidecar_name, sidecar_name
from drivemirror.classify.strategy import Strategy, StrategyKind, classify, content_filename
from drivemirror.models import LocalTree, RemoteItem, RemoteTree, SidecarRecord, UntrackedItem
from drivemirror.scan.remote_scanner import safe_segment
from drivemirror.util.time import same_instant

from .actions import Action, Materialize, NoOp, Remove, validate_unique_targets
from .sync_plan import SyncPlan

logger = logging.getLogger(__name__)


def _join(directory: str, filename: str) -> str:
    return posixpath.join(directory, filename) if directory else filename


class ReconciliationEngine:
    """
    Diff a RemoteTree against a LocalTree.

    The engine is pure: it reads both trees and returns a SyncPlan without
    touching the file system or the network. Identical inputs always give
    identical plans.
    """

    def __init__(self, is_ignored: Optional[Callable[[str], bool]] = None) -> None:
        self._is_ignored = is_ignored or (lambda _path: False)

    def reconcile(self, remote_tree: RemoteTree, local_tree: LocalTree) -> SyncPlan:
        untracked: list[UntrackedItem] = []
        tracked: list[tuple[str, RemoteItem]] = []
        for path, item in sorted(remote_tree.files, key=lambda pair: (pair[0], pair[1].id)):
            if self._is_ignored(path):
                untracked.append(
                    UntrackedItem(
                        id=item.id,
                        path=path,
                        name=item.name,
                        url=item.view_url,
                        owner_email=item.owner_email,
                    )
                )
            else:
                tracked.append((path, item))

        sidecars_by_id: dict[str, list[str]] = {}
        for sc_path in sorted(local_tree.sidecars):
            sidecars_by_id.setdefault(local_tree.sidecars[sc_path].id, []).append(sc_path)

        actions: list[Action] = []
        claimed_content: set[str] = set()
        for path, item in tracked:
            actions.append(self._plan_item(path, item, local_tree, sidecars_by_id, claimed_content))

        remote_ids = remote_tree.ids()
        for sc_path in sorted(local_tree.sidecars):
            record = local_tree.sidecars[sc_path]
            if record.id in remote_ids:
                continue
            if _under_dropped(sc_path, remote_tree.dropped_folders):
                logger.debug("Keeping %s; its Drive folder could not be listed", sc_path)
                continue
            actions.append(Remove(sc_path, record.id, reason="remote item no longer exists"))
            content = _derived_content_path(sc_path, record, None)
            if content is not None and content in local_tree.items:
                actions.append(Remove(content, record.id, reason="remote item no longer exists"))

        actions = _drop_colliding_deletes(actions, remote_tree.dropped_folders)
        validate_unique_targets(actions)
        actions.sort(key=lambda a: (a.target_path, a.kind.value))

        plan = SyncPlan(actions=actions, untracked=untracked)
        logger.info("Plan: %s", plan.summary())
        return plan

    # ----------------------------
    # Internals
    # ----------------------------
    def _plan_item(
        self,
        path: str,
        item: RemoteItem,
        local: LocalTree,
        sidecars_by_id: dict[str, list[str]],
        claimed_content: set[str],
    ) -> Action:
        strategy = classify(item.content_type)
        directory, name = posixpath.split(path)
        sc_path = _join(directory, sidecar_name(name, item.id, item.content_type))

        content_path: Optional[str] = None
        filename = content_filename(name, strategy)
        if filename is not None:
            content_path = _join(directory, filename)
            if content_path in claimed_content:
                logger.warning(
                    "Content path %s is already taken; writing only the sidecar for %s",
                    content_path,
                    item.id,
                )
                content_path = None
            else:
                claimed_content.add(content_path)

        existing = sidecars_by_id.get(item.id, [])
        stale: list[str] = []
        for old in existing:
            if old == sc_path:
                continue
            stale.append(old)
            old_content = _derived_content_path(old, local.sidecars[old], item.content_type)
            if old_content is not None and old_content != content_path and old_content in local.items:
                stale.append(old_content)

        reason = self._change_reason(item, strategy, sc_path, content_path, local, existing)
        if reason is None and stale:
            reason = "duplicate sidecar"
        if reason is None:
            return NoOp(path=sc_path, remote_id=item.id, content_path=content_path)

        logger.debug("Materialize %s (%s): %s", path, item.id, reason)
        return Materialize(
            item=item,
            strategy=strategy,
            path=path,
            sidecar_path=sc_path,
            content_path=content_path,
            stale_paths=tuple(sorted(set(stale))),
            reason=reason,
        )

    @staticmethod
    def _change_reason(
        item: RemoteItem,
        strategy: Strategy,
        sc_path: str,
        content_path: Optional[str],
        local: LocalTree,
        existing: list[str],
    ) -> Optional[str]:
        if not existing:
            return "new"
        if sc_path not in existing:
            return "renamed or moved"

        record = local.sidecars[sc_path]
        expected = {"id": item.id, "content_type": item.content_type, "name": item.name}
        if record.identity() != expected:
            return "metadata changed"

        if content_path is not None and content_path not in local.items:
            return "content missing"

        if strategy.kind is StrategyKind.DIRECT_DOWNLOAD and content_path is not None and item.content_hash:
            if local.items[content_path].content_hash != item.content_hash:
                return "content changed"
            return None

        if item.content_hash:
            if record.content_hash != item.content_hash:
                return "content changed"
            return None

        if not same_instant(record.modified_at, item.modified_at):
            return "modified"
        return None


def _derived_content_path(
    sidecar_path: str,
    record: SidecarRecord,
    fallback_type: Optional[str],
) -> Optional[str]:
    """Content file that sits next to an existing sidecar, judged from its recorded type."""
    directory, filename = posixpath.split(sidecar_path)
    content_type = record.content_type or fallback_type
    if content_type is None:
        return None
    if record.content_type is not None:
        name = safe_segment(record.name)
    else:
        parsed = parse_sidecar_name(filename)
        if parsed is None:
            return None
        name = parsed[0]
    filename = content_filename(name, classify(content_type))
    return _join(directory, filename) if filename else None


def _under_dropped(path: str, dropped_folders: list[str]) -> bool:
    return any(path == d or path.startswith(d + "/") for d in dropped_folders)


def _drop_colliding_deletes(actions: list[Action], dropped_folders: list[str]) -> list[Action]:
    """Never delete a path that some action writes or keeps, or one inside an unlisted folder."""
    kept_paths: set[str] = set()
    for action in actions:
        if isinstance(action, Materialize):
            kept_paths.update(action.targets()[: 2 if action.content_path else 1])
        elif isinstance(action, NoOp):
            kept_paths.update(action.targets())

    result: list[Action] = []
    removed: set[str] = set()
    for action in actions:
        if isinstance(action, Remove):
            if action.local_path in kept_paths or action.local_path in removed:
                logger.debug("Dropping removal of %s; the path is still in use", action.local_path)
                continue
            removed.add(action.local_path)
            result.append(action)
        elif isinstance(action, Materialize) and action.stale_paths:
            stale = tuple(
                p
                for p in action.stale_paths
                if p not in kept_paths and p not in removed and not _under_dropped(p, dropped_folders)
            )
            removed.update(stale)
            result.append(dataclasses.replace(action, stale_paths=stale))
        else:
            result.append(action)
    return result
