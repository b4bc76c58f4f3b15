"""Idempotent create-or-update of the sync pull request."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from drivemirror.errors import DriveMirrorError, InvalidStateError, PublishError
from drivemirror.models import PublishResult

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES: frozenset[int] = frozenset({403, 404, 422})
NO_COMMITS_MARKER = "no commits between"


class PublishState(str, Enum):
    RESOLVE_BASE = "RESOLVE_BASE"
    CHECK_EXISTING = "CHECK_EXISTING"
    UPDATE = "UPDATE"
    CREATE = "CREATE"
    BACKOFF = "BACKOFF"
    DONE = "DONE"
    NOTHING_TO_PUBLISH = "NOTHING_TO_PUBLISH"


TERMINAL_STATES: frozenset[PublishState] = frozenset({PublishState.DONE, PublishState.NOTHING_TO_PUBLISH})


@dataclass(slots=True)
class _PublishRun:
    head_branch: str
    base: str
    title: str
    body: str
    attempt: int = 1
    delay: float = 0.0
    existing: Optional[dict[str, Any]] = None
    result: Optional[PublishResult] = None


def is_no_commits_error(exc: DriveMirrorError) -> bool:
    return exc.status_code == 422 and NO_COMMITS_MARKER in str(exc).lower()


class PublishProtocol:
    """
    State machine that opens or updates one pull request per head branch.

    RESOLVE_BASE -> CHECK_EXISTING -> UPDATE | CREATE -> DONE. HTTP 403/404/422
    go through BACKOFF back to CHECK_EXISTING while attempts remain. A 422
    saying there are no commits between the branches ends in
    NOTHING_TO_PUBLISH instead of an error.
    """

    def __init__(
        self,
        github: Any,
        owner: str,
        repo: str,
        *,
        max_attempts: int = 3,
        initial_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._github = github
        self._owner = owner
        self._repo = repo
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._sleep = sleep
        self._handlers: dict[PublishState, Callable[[_PublishRun], PublishState]] = {
            PublishState.RESOLVE_BASE: self._resolve_base,
            PublishState.CHECK_EXISTING: self._check_existing,
            PublishState.UPDATE: self._update,
            PublishState.CREATE: self._create,
            PublishState.BACKOFF: self._backoff,
        }

    def publish(self, head_branch: str, base: str, title: str, body: str) -> PublishResult:
        """
        Run the state machine to a terminal state.

        Raises:
            PublishError: on a non-retryable error or once attempts run out.
        """
        run = _PublishRun(
            head_branch=head_branch,
            base=base,
            title=title,
            body=body,
            delay=self._initial_delay,
        )
        state = PublishState.RESOLVE_BASE
        while state not in TERMINAL_STATES:
            logger.debug("Publish state %s (attempt %d)", state.value, run.attempt)
            state = self._handlers[state](run)

        if state is PublishState.NOTHING_TO_PUBLISH:
            logger.info("No commits between %s and %s; nothing to publish", run.base, head_branch)
            return PublishResult(status="no_changes", base=run.base, attempts=run.attempt)

        if run.result is None:
            raise InvalidStateError("Publish finished without a result")
        return run.result

    # ----------------------------
    # States
    # ----------------------------
    def _resolve_base(self, run: _PublishRun) -> PublishState:
        try:
            repo = self._github.get_repo(self._owner, self._repo)
        except DriveMirrorError as exc:
            logger.warning(
                "Could not fetch repository info; using base '%s': %s",
                run.base,
                exc,
            )
            return PublishState.CHECK_EXISTING

        default = repo.get("default_branch") if isinstance(repo, dict) else None
        if isinstance(default, str) and default:
            run.base = default
            logger.info("Target repository default branch: %s", default)
        return PublishState.CHECK_EXISTING

    def _check_existing(self, run: _PublishRun) -> PublishState:
        head_ref = f"{self._owner}:{run.head_branch}"
        logger.info("Checking for existing PR: head=%s base=%s", head_ref, run.base)
        try:
            pulls = self._github.list_pulls(self._owner, self._repo, head=head_ref, base=run.base)
        except DriveMirrorError as exc:
            return self._on_error(run, "list pull requests", exc)

        if pulls:
            run.existing = pulls[0]
            return PublishState.UPDATE
        run.existing = None
        return PublishState.CREATE

    def _update(self, run: _PublishRun) -> PublishState:
        assert run.existing is not None
        number = run.existing.get("number")
        try:
            data = self._github.update_pull(
                self._owner,
                self._repo,
                number,
                title=run.title,
                body=run.body,
                base=run.base,
            )
        except DriveMirrorError as exc:
            return self._on_error(run, f"update pull request #{number}", exc)

        run.result = PublishResult(
            status="updated",
            base=run.base,
            number=data.get("number", number),
            url=data.get("html_url"),
            attempts=run.attempt,
        )
        logger.info("Pull request updated: %s", run.result.url)
        return PublishState.DONE

    def _create(self, run: _PublishRun) -> PublishState:
        try:
            data = self._github.create_pull(
                self._owner,
                self._repo,
                title=run.title,
                head=run.head_branch,
                base=run.base,
                body=run.body,
            )
        except DriveMirrorError as exc:
            return self._on_error(run, "create pull request", exc)

        run.result = PublishResult(
            status="created",
            base=run.base,
            number=data.get("number"),
            url=data.get("html_url"),
            attempts=run.attempt,
        )
        logger.info("Pull request created: %s", run.result.url)
        return PublishState.DONE

    def _backoff(self, run: _PublishRun) -> PublishState:
        logger.warning("Retrying PR operation in %.1f seconds", run.delay)
        self._sleep(run.delay)
        run.delay *= 2
        run.attempt += 1
        return PublishState.CHECK_EXISTING

    def _on_error(self, run: _PublishRun, operation: str, exc: DriveMirrorError) -> PublishState:
        logger.warning("PR operation attempt %d failed (%s): %s", run.attempt, operation, exc)
        if is_no_commits_error(exc):
            return PublishState.NOTHING_TO_PUBLISH
        if exc.status_code in RETRYABLE_STATUSES and run.attempt < self._max_attempts:
            return PublishState.BACKOFF
        raise PublishError(
            f"Failed to {operation} after {run.attempt} attempt(s): {exc}",
            details={
                "operation": operation,
                "status_code": exc.status_code,
                "upstream_message": str(exc),
                "attempts": run.attempt,
            },
            cause=exc,
        ) from exc
