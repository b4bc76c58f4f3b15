"""SyncManager: orchestrates scan -> reconcile -> apply -> publish for every target."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional

from drivemirror.apply import Materializer, PageRenderer
from drivemirror.auth import AuthInfo
from drivemirror.config import DriveTarget, RunContext, SyncConfig
from drivemirror.controller import GitHubController, GitRunner, GoogleDriveController
from drivemirror.errors import RunCancelledError
from drivemirror.models import LocalTree, MaterializeResult, RemoteTree, RunReport, TargetReport
from drivemirror.plan import ReconciliationEngine, SyncPlan
from drivemirror.policy import UntrackedPolicy, accept_pending_transfers
from drivemirror.publish import (
    GitWorkspace,
    PublishProtocol,
    commit_message,
    format_pr_body,
    head_branch_name,
    pr_title,
)
from drivemirror.scan import LocalTreeScanner, RemoteTreeScanner
from drivemirror.util.cancel import CancellationToken

logger = logging.getLogger(__name__)


class SyncManager:
    """
    High-level entry point: mirror every configured Drive folder into the
    working tree and publish each as a pull request.

    Policy:
        - Per-item failures (files, permissions, untracked items) are recorded
          in the TargetReport and the run continues.
        - Raise for fatal errors: config/credentials, root listing, local
          scan, git commands and publish after exhausted retries.
    """

    def __init__(
        self,
        config: SyncConfig,
        context: RunContext,
        auth_info: AuthInfo,
        github_token: str,
        *,
        cancel: Optional[CancellationToken] = None,
        renderer: Optional[PageRenderer] = None,
    ) -> None:
        drive = GoogleDriveController(auth_info, http_timeout=context.http_timeout)
        github = GitHubController(github_token, timeout=context.http_timeout)
        git = GitRunner(context.workdir)
        self._init(config, context, drive, github, git, cancel=cancel, renderer=renderer)

    @classmethod
    def from_controllers(
        cls,
        config: SyncConfig,
        context: RunContext,
        drive: Any,
        github: Any,
        git: Any,
        *,
        cancel: Optional[CancellationToken] = None,
        renderer: Optional[PageRenderer] = None,
        sleep: Any = None,
    ) -> "SyncManager":
        """Create manager with injected controllers (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init(config, context, drive, github, git, cancel=cancel, renderer=renderer, sleep=sleep)
        return obj

    def _init(
        self,
        config: SyncConfig,
        context: RunContext,
        drive: Any,
        github: Any,
        git: Any,
        *,
        cancel: Optional[CancellationToken],
        renderer: Optional[PageRenderer],
        sleep: Any = None,
    ) -> None:
        self._config = config
        self._context = context
        self._drive = drive
        self._github = github
        self._git = git
        self._cancel = cancel or CancellationToken()
        self._renderer = renderer
        self._sleep = sleep

    @property
    def cancel_token(self) -> CancellationToken:
        return self._cancel

    def run(self) -> RunReport:
        """Sync every target in order; stops early when cancelled."""
        report = RunReport(run_id=self._context.run_id)
        for target in self._config.targets:
            if self._cancel.cancelled:
                report.cancelled = True
                break
            logger.info(
                "Processing Drive folder %s (on_untrack=%s)",
                target.drive_folder_id,
                target.on_untrack,
            )
            try:
                report.targets.append(self.sync_target(target))
            except RunCancelledError:
                logger.warning("Run cancelled while processing %s", target.drive_folder_id)
                report.cancelled = True
                break
        return report

    def plan_target(self, target: DriveTarget) -> tuple[SyncPlan, RemoteTree, LocalTree]:
        """Scan both trees concurrently and reconcile them."""
        ctx = self._context
        local_scanner = LocalTreeScanner(self._config.ignore)
        remote_scanner = RemoteTreeScanner(
            self._drive,
            ctx.service_identity,
            page_size=ctx.page_size,
            permission_concurrency=ctx.permission_concurrency,
            cancel=self._cancel,
        )

        with ThreadPoolExecutor(max_workers=2) as executor:
            local_future = executor.submit(local_scanner.scan, ctx.workdir)
            remote_future = executor.submit(remote_scanner.scan, target.drive_folder_id)
            remote_tree = remote_future.result()
            local_tree = local_future.result()

        rules = local_scanner.rules_for(Path(ctx.workdir))
        plan = ReconciliationEngine(is_ignored=rules.matches).reconcile(remote_tree, local_tree)
        return plan, remote_tree, local_tree

    def sync_target(self, target: DriveTarget) -> TargetReport:
        ctx = self._context
        folder_id = target.drive_folder_id
        plan, remote_tree, _local_tree = self.plan_target(target)

        report = TargetReport(folder_id=folder_id, dropped_folders=list(remote_tree.dropped_folders))
        report.summary = plan.summary()

        if ctx.dry_run:
            if not plan.has_changes:
                logger.info("[dry-run] Drive folder %s is already mirrored", folder_id)
            for action in plan.actions:
                logger.info("[dry-run] %s %s", action.kind.value, action.target_path)
            return report

        report.accepted_transfers = accept_pending_transfers(
            self._drive, remote_tree, ctx.service_identity, self._cancel
        )

        policy = UntrackedPolicy(self._drive, target.on_untrack, ctx.service_identity, self._cancel)
        report.untracked = policy.resolve(plan.untracked)

        materializer = Materializer(
            self._drive,
            ctx.workdir,
            cancel=self._cancel,
            renderer=self._renderer,
            render_dir=ctx.render_dir,
            render_resolution=ctx.render_resolution,
        )
        report.results = materializer.apply(plan.actions, apply_removals=policy.removes_local_artifacts)
        report.kept_paths = [r.path for r in report.results if r.status == "skipped" and not r.written]
        _summarize_results(report)

        if self._cancel.cancelled:
            raise RunCancelledError("Run cancelled before publishing", details={"folder_id": folder_id})

        added_updated, removed, changed = _collect_changes(report.results, Path(ctx.workdir))
        if not changed:
            logger.info("No local changes for Drive folder %s", folder_id)
            return report

        head = head_branch_name(folder_id)
        workspace = GitWorkspace(
            self._git,
            ctx.workdir,
            user_name=ctx.git_user_name,
            user_email=ctx.git_user_email,
        )
        report.commit = workspace.commit_to_branch(head, changed, commit_message(folder_id, ctx.run_id))
        if report.commit is None:
            return report

        protocol_kwargs: dict[str, Any] = {
            "max_attempts": ctx.publish_max_attempts,
            "initial_delay": ctx.publish_initial_delay,
        }
        if self._sleep is not None:
            protocol_kwargs["sleep"] = self._sleep
        protocol = PublishProtocol(self._github, ctx.repo_owner, ctx.repo_name, **protocol_kwargs)
        report.publish = protocol.publish(
            head,
            ctx.base_branch,
            pr_title(folder_id),
            format_pr_body(folder_id, ctx.run_id, added_updated, removed),
        )
        return report


def _collect_changes(
    results: list[MaterializeResult],
    workdir: Path,
) -> tuple[list[tuple[str, Optional[str]]], list[str], list[str]]:
    added_updated: list[tuple[str, Optional[str]]] = []
    removed: list[str] = []
    changed: list[str] = []
    root = workdir.resolve()
    for r in results:
        if r.status != "success":
            continue
        if r.written:
            added_updated.append((r.path, r.view_url))
        elif r.removed:
            removed.extend(r.removed)
        changed.extend(r.written)
        changed.extend(r.removed)
        for page in r.rendered:
            page_path = Path(page).resolve()
            if root in page_path.parents:
                changed.append(page_path.relative_to(root).as_posix())
    return added_updated, removed, sorted(set(changed))


def _summarize_results(report: TargetReport) -> None:
    for r in report.results:
        key = f"apply_{r.status}"
        report.summary[key] = report.summary.get(key, 0) + 1
    for u in report.untracked:
        key = f"untracked_{u.status}"
        report.summary[key] = report.summary.get(key, 0) + 1
